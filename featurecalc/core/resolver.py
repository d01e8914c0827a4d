"""
Dependency Resolver.

Works out which master operations a run needs, and where each operation
finds its master's result:

    operations  [op1(m=7), op2(m=3), op3(m=7)]
    masters     [m3, m5, m7]

    plan.masters       [m3, m7]         evaluate these, once each
    plan.master_index  [1, 0, 1]        op -> position in plan.masters
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from featurecalc.core.catalog import UNLINKED_MASTER_ID, MasterOperation, Operation
from featurecalc.core.exceptions import CatalogCorruptError


@dataclass(frozen=True)
class ExecutionPlan:
    """Masters to evaluate plus the operation -> master position map."""
    masters: List[MasterOperation]
    master_index: np.ndarray

    @property
    def n_masters(self) -> int:
        return len(self.masters)

    @property
    def n_operations(self) -> int:
        return int(self.master_index.size)


def resolve_dependencies(
    operations: Sequence[Operation],
    masters: Sequence[MasterOperation],
) -> ExecutionPlan:
    """
    Determine the distinct master operations needed by `operations`.

    Args:
        operations: Operations to compute, in output order
        masters: Available master operations

    Returns:
        ExecutionPlan with masters ordered by ID

    Raises:
        CatalogCorruptError: if an operation is unlinked (master ID 0), its
            master ID is missing from `masters`, or master IDs repeat
    """
    by_id: Dict[int, MasterOperation] = {}
    for master in masters:
        if master.id in by_id:
            raise CatalogCorruptError(f"Duplicate master operation ID {master.id}")
        by_id[master.id] = master

    for op in operations:
        if op.master_id == UNLINKED_MASTER_ID:
            raise CatalogCorruptError(
                f"The operations catalog is corrupt: there is no link from "
                f"'{op.name}' (operation {op.id}) to a master operation"
            )
        if op.master_id not in by_id:
            raise CatalogCorruptError(
                f"Operation '{op.name}' (operation {op.id}) references missing "
                f"master operation {op.master_id}"
            )

    needed_ids = sorted({op.master_id for op in operations})
    position = {master_id: i for i, master_id in enumerate(needed_ids)}

    return ExecutionPlan(
        masters=[by_id[master_id] for master_id in needed_ids],
        master_index=np.array([position[op.master_id] for op in operations], dtype=np.intp),
    )
