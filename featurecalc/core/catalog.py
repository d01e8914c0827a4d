"""
Operation Catalog - master operations, operations, and the links between them.

The catalog provides:
1. MasterOperation / Operation records
2. YAML loading of both libraries (default library ships in featurecalc/data)
3. Linking of operations to masters by label
4. Keyword / ID selection of operations

Catalog files:

    # master_operations.yaml
    master_operations:
      - id: 1
        label: statistics
        code: featurecalc.core.masters.statistics:compute
        outputs: [mean, std, kurtosis]

    # operations.yaml
    operations:
      - id: 1
        code_string: statistics.kurtosis     # <master label>.<field>
        keywords: [distribution, moments]
      - id: 2
        code_string: rms                     # master's direct output
"""

import importlib
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import yaml

from featurecalc.core.exceptions import CatalogCorruptError

logger = logging.getLogger(__name__)

# Master ID carried by an operation that has not been linked to a master
UNLINKED_MASTER_ID = 0

DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_OPERATIONS_PATH = DATA_DIR / "operations.yaml"
DEFAULT_MASTER_OPERATIONS_PATH = DATA_DIR / "master_operations.yaml"

PathLike = Union[str, Path]


@dataclass(frozen=True)
class MasterOperation:
    """
    A shared computation evaluated at most once per series.

    func is called as func(x, y) with the raw and z-scored series and
    returns a scalar or a mapping of named sub-results. outputs declares
    the mapping's field names (empty = undeclared).
    """
    id: int
    label: str
    func: Callable = field(repr=False, compare=False)
    code: Optional[str] = None
    outputs: Tuple[str, ...] = ()

    def __post_init__(self):
        if not callable(self.func):
            raise CatalogCorruptError(
                f"Master operation {self.id} ({self.label}) has no callable code"
            )
        object.__setattr__(self, "outputs", tuple(self.outputs))

    def __call__(self, x, y):
        return self.func(x, y)


@dataclass(frozen=True)
class Operation:
    """
    A single feature: one scalar read from one master operation's output.

    field names the sub-result to extract; "" reads the master's direct
    output. master_label is the catalog link key; master_id is filled in
    by link_operations.
    """
    id: int
    master_id: int = UNLINKED_MASTER_ID
    field: str = ""
    name: str = ""
    master_label: str = ""
    keywords: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "keywords", tuple(self.keywords))
        if not self.name:
            object.__setattr__(self, "name", self.code_string or f"op_{self.id}")

    @property
    def code_string(self) -> str:
        """Catalog form: '<master label>.<field>' or '<master label>'."""
        if self.master_label and self.field:
            return f"{self.master_label}.{self.field}"
        return self.master_label or self.field

    @property
    def is_linked(self) -> bool:
        return self.master_id != UNLINKED_MASTER_ID


def parse_code_string(code_string: str) -> Tuple[str, str]:
    """
    Split an operation code string into (master label, field).

    'statistics.kurtosis' -> ('statistics', 'kurtosis')
    'rms'                 -> ('rms', '')
    """
    label, _, field_name = code_string.strip().partition(".")
    return label, field_name


def resolve_code(code: str) -> Callable:
    """
    Import a master operation callable from 'package.module:function'.

    Raises:
        CatalogCorruptError: if the module or attribute cannot be loaded
    """
    module_name, sep, attr = code.partition(":")
    if not sep or not module_name or not attr:
        raise CatalogCorruptError(
            f"Master code '{code}' must have the form 'package.module:function'"
        )
    try:
        module = importlib.import_module(module_name)
        func = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise CatalogCorruptError(f"Could not load master code '{code}': {e}") from e
    if not callable(func):
        raise CatalogCorruptError(f"Master code '{code}' is not callable")
    return func


def _read_entries(path: PathLike, key: str) -> List[Dict[str, Any]]:
    """Read the list stored under `key` in a catalog YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    entries = raw.get(key) if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        raise CatalogCorruptError(f"{path}: expected a '{key}' list")
    return entries


def _require(entry: Dict[str, Any], key: str, path: PathLike, index: int) -> Any:
    if not isinstance(entry, dict) or key not in entry:
        raise CatalogCorruptError(f"{path}: entry {index} is missing '{key}'")
    return entry[key]


def load_master_operations(path: Optional[PathLike] = None) -> List[MasterOperation]:
    """
    Load master operations from YAML.

    Args:
        path: Catalog file (default: packaged master_operations.yaml)

    Raises:
        CatalogCorruptError: on missing keys, non-positive or duplicate IDs,
            or code that cannot be imported
    """
    path = DEFAULT_MASTER_OPERATIONS_PATH if path is None else Path(path)
    masters = []
    seen_ids = set()

    for i, entry in enumerate(_read_entries(path, "master_operations")):
        master_id = int(_require(entry, "id", path, i))
        label = str(_require(entry, "label", path, i))
        code = str(_require(entry, "code", path, i))

        if master_id <= UNLINKED_MASTER_ID:
            raise CatalogCorruptError(f"{path}: master '{label}' has reserved ID {master_id}")
        if master_id in seen_ids:
            raise CatalogCorruptError(f"{path}: duplicate master ID {master_id}")
        seen_ids.add(master_id)

        masters.append(MasterOperation(
            id=master_id,
            label=label,
            func=resolve_code(code),
            code=code,
            outputs=tuple(entry.get("outputs") or ()),
        ))

    logger.debug("Loaded %d master operations from %s", len(masters), path)
    return masters


def load_operations(path: Optional[PathLike] = None) -> List[Operation]:
    """
    Load operations from YAML. Operations are returned unlinked unless the
    file pins a master_id.

    Args:
        path: Catalog file (default: packaged operations.yaml)
    """
    path = DEFAULT_OPERATIONS_PATH if path is None else Path(path)
    operations = []
    seen_ids = set()

    for i, entry in enumerate(_read_entries(path, "operations")):
        op_id = int(_require(entry, "id", path, i))
        code_string = str(_require(entry, "code_string", path, i))

        if op_id in seen_ids:
            raise CatalogCorruptError(f"{path}: duplicate operation ID {op_id}")
        seen_ids.add(op_id)

        label, field_name = parse_code_string(code_string)
        operations.append(Operation(
            id=op_id,
            master_id=int(entry.get("master_id", UNLINKED_MASTER_ID)),
            field=field_name,
            name=str(entry.get("name") or code_string),
            master_label=label,
            keywords=tuple(entry.get("keywords") or ()),
        ))

    logger.debug("Loaded %d operations from %s", len(operations), path)
    return operations


def link_operations(
    operations: Sequence[Operation],
    masters: Sequence[MasterOperation],
) -> List[Operation]:
    """
    Link each operation to its master by label.

    Operations whose label matches no master get master_id 0; the
    dependency resolver refuses to run them. Operations without a
    master_label are passed through unchanged.

    Raises:
        CatalogCorruptError: on duplicate master labels, or a field that a
            master's declared outputs do not include
    """
    by_label: Dict[str, MasterOperation] = {}
    for master in masters:
        if master.label in by_label:
            raise CatalogCorruptError(f"Duplicate master label '{master.label}'")
        by_label[master.label] = master

    linked = []
    n_unlinked = 0
    for op in operations:
        if not op.master_label:
            # Built in code with an explicit master_id
            linked.append(op)
            continue
        master = by_label.get(op.master_label)
        if master is None:
            n_unlinked += 1
            logger.warning("No master operation '%s' for operation '%s'", op.master_label, op.name)
            linked.append(replace(op, master_id=UNLINKED_MASTER_ID))
            continue

        if op.field and master.outputs and op.field not in master.outputs:
            raise CatalogCorruptError(
                f"Operation '{op.name}' reads '{op.field}', which master "
                f"'{master.label}' does not declare ({', '.join(master.outputs)})"
            )
        linked.append(replace(op, master_id=master.id))

    logger.debug("Linked %d/%d operations", len(linked) - n_unlinked, len(linked))
    return linked


def select_operations(
    operations: Sequence[Operation],
    keywords: Optional[Iterable[str]] = None,
    ids: Optional[Iterable[int]] = None,
) -> List[Operation]:
    """
    Subset operations by keyword (any match) and/or ID, preserving order.
    """
    keyword_set = set(keywords) if keywords is not None else None
    id_set = set(ids) if ids is not None else None

    selected = []
    for op in operations:
        if keyword_set is not None and not keyword_set.intersection(op.keywords):
            continue
        if id_set is not None and op.id not in id_set:
            continue
        selected.append(op)
    return selected


# Default library (lazy initialized)
_default_catalog: Optional[Tuple[Tuple[Operation, ...], Tuple[MasterOperation, ...]]] = None


def default_catalog() -> Tuple[List[Operation], List[MasterOperation]]:
    """Get the packaged library, linked. Loaded once per process."""
    global _default_catalog
    if _default_catalog is None:
        masters = load_master_operations()
        operations = link_operations(load_operations(), masters)
        _default_catalog = (tuple(operations), tuple(masters))
    operations, masters = _default_catalog
    return list(operations), list(masters)


def reset_default_catalog():
    """Reset the cached default library (for testing)."""
    global _default_catalog
    _default_catalog = None
