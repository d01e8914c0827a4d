"""
Master Evaluator.

Runs one master operation on (x, y) and records what happened. A raising
callable does not propagate: the failure is kept on the result, so sibling
masters (possibly running in other workers) carry on.
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional

import numpy as np

from featurecalc.core.catalog import MasterOperation
from featurecalc.core.exceptions import MasterEvaluationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MasterResult:
    """
    Outcome of one master operation on one series.

    Exactly one of payload / failure is meaningful: failure is None on
    success. elapsed is the wall time of this master alone, in seconds.
    """
    master_id: int
    label: str
    elapsed: float
    payload: Any = None
    failure: Optional[MasterEvaluationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def __reduce__(self):
        # MappingProxyType payloads do not pickle; rebuild from a plain dict
        payload = dict(self.payload) if isinstance(self.payload, Mapping) else self.payload
        return (_rebuild_result, (self.master_id, self.label, self.elapsed, payload, self.failure))


def _rebuild_result(master_id, label, elapsed, payload, failure) -> MasterResult:
    return MasterResult(master_id, label, elapsed, _freeze(payload), failure)


def _freeze(payload: Any) -> Any:
    """Make a mapping payload read-only."""
    if isinstance(payload, Mapping):
        return MappingProxyType(dict(payload))
    return payload


def evaluate_master(
    master: MasterOperation,
    x: np.ndarray,
    y: np.ndarray,
    verbose: bool = False,
) -> MasterResult:
    """
    Evaluate a single master operation.

    Args:
        master: Master operation to run
        x: Raw series values
        y: Z-scored series values
        verbose: Log each evaluation at INFO instead of DEBUG

    Returns:
        MasterResult holding either the payload or a failure marker
    """
    start = time.perf_counter()
    try:
        payload = master(x, y)
    except Exception as e:
        elapsed = time.perf_counter() - start
        logger.warning(
            "Master operation %d (%s) failed after %.4fs: %s: %s",
            master.id, master.label, elapsed, type(e).__name__, e,
        )
        failure = MasterEvaluationFailure(master.id, master.label, f"{type(e).__name__}: {e}")
        return MasterResult(master.id, master.label, elapsed, failure=failure)

    elapsed = time.perf_counter() - start
    logger.log(
        logging.INFO if verbose else logging.DEBUG,
        "Master operation %d (%s) evaluated in %.4fs", master.id, master.label, elapsed,
    )
    return MasterResult(master.id, master.label, elapsed, payload=_freeze(payload))
