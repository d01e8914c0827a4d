"""
Operation Evaluator.

Reads one scalar per operation out of its master's result. Operations are
free: the cost was paid by the master, so a successful read reports the
master's elapsed time.

    master failed        -> 0, fatal, elapsed 0
    field ''             -> master's direct output
    field 'name'         -> payload['name']
    field not in payload -> 0, fatal, elapsed NaN (logged retrieval error)
"""

import logging
import numbers
from collections.abc import Mapping
from typing import Any, List, NamedTuple, Sequence, Tuple

import numpy as np

from featurecalc.core.catalog import Operation
from featurecalc.core.exceptions import ExtractionError, FieldMissingError
from featurecalc.core.master import MasterResult

logger = logging.getLogger(__name__)


class OperationOutput(NamedTuple):
    """Raw (unclassified) output of one operation."""
    raw: complex
    fatal: bool
    elapsed: float


FAILED_MASTER_OUTPUT = OperationOutput(0j, True, 0.0)
RETRIEVAL_ERROR_OUTPUT = OperationOutput(0j, True, float("nan"))


def _as_number(value: Any, what: str) -> complex:
    """Coerce a single numeric value; anything else is an extraction error."""
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise ExtractionError(f"{what} is an array of shape {value.shape}, not a scalar")
        value = value.reshape(-1)[0]
    if not isinstance(value, (numbers.Number, np.number)) or isinstance(value, np.datetime64):
        raise ExtractionError(f"{what} is {type(value).__name__}, not a number")
    try:
        return complex(value)
    except (OverflowError, ValueError, TypeError) as e:
        raise ExtractionError(f"{what} cannot be read as a number: {e}") from e


def extract_value(payload: Any, field: str, label: str) -> complex:
    """
    Read `field` from a master payload.

    Raises:
        FieldMissingError: if the payload has no such field
        ExtractionError: if the value found is not a single number
    """
    if not field:
        if isinstance(payload, Mapping):
            raise ExtractionError(
                f"Output of '{label}' is a mapping ({', '.join(map(str, payload))}); "
                f"operation must name a field"
            )
        return _as_number(payload, f"Output of '{label}'")

    if not isinstance(payload, Mapping):
        raise FieldMissingError(field, label)
    if field not in payload:
        raise FieldMissingError(field, label, sorted(map(str, payload)))
    return _as_number(payload[field], f"'{label}.{field}'")


def evaluate_operation(operation: Operation, result: MasterResult) -> OperationOutput:
    """Evaluate one operation against its master's result."""
    if not result.ok:
        return FAILED_MASTER_OUTPUT

    try:
        value = extract_value(result.payload, operation.field, result.label)
    except ExtractionError as e:
        logger.warning(
            "Error retrieving element '%s' from '%s' for operation %d: %s",
            operation.field, result.label, operation.id, e,
        )
        return RETRIEVAL_ERROR_OUTPUT

    return OperationOutput(value, False, result.elapsed)


def evaluate_operation_batch(
    pairs: Sequence[Tuple[Operation, MasterResult]],
) -> List[OperationOutput]:
    """Evaluate a contiguous chunk of (operation, master result) pairs."""
    return [evaluate_operation(op, result) for op, result in pairs]
