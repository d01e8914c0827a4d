"""
Execution coordinator primitives.

fan_out() runs independent tasks either in a plain loop or across joblib
workers. Results always come back in task order, so callers index them
the same way in both modes. Tasks return failures as data; fan_out adds
no error handling of its own.
"""

import logging
from typing import Any, Callable, List, Sequence, TypeVar

from joblib import Parallel, cpu_count, delayed, effective_n_jobs, parallel_config

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACKENDS = ("loky", "threading", "multiprocessing")


def parallel_available(n_jobs: int = -1, backend: str = "loky") -> bool:
    """Check whether more than one worker would actually run."""
    if n_jobs == 1 or cpu_count() < 2:
        return False
    try:
        with parallel_config(backend=backend):
            return effective_n_jobs(n_jobs) > 1
    except (ValueError, RuntimeError) as e:
        logger.debug("Parallel backend '%s' unavailable: %s", backend, e)
        return False


def n_workers(n_jobs: int = -1) -> int:
    """Number of workers joblib would use for n_jobs."""
    return max(1, effective_n_jobs(n_jobs))


def chunked(items: Sequence[T], n_chunks: int) -> List[List[T]]:
    """Split items into at most n_chunks contiguous, near-equal chunks."""
    n_chunks = max(1, min(n_chunks, len(items)))
    size, extra = divmod(len(items), n_chunks)
    chunks = []
    start = 0
    for i in range(n_chunks):
        stop = start + size + (1 if i < extra else 0)
        chunks.append(list(items[start:stop]))
        start = stop
    return [chunk for chunk in chunks if chunk]


def fan_out(
    func: Callable[..., Any],
    tasks: Sequence[tuple],
    parallel: bool = False,
    n_jobs: int = -1,
    backend: str = "loky",
) -> List[Any]:
    """
    Run func(*task) for every task.

    Args:
        func: Task function. Must be picklable for process backends.
        tasks: Argument tuples, one per task
        parallel: Use joblib workers when available
        n_jobs: joblib worker count (-1 = all cores)
        backend: joblib backend name

    Returns:
        List of results in task order
    """
    if parallel and len(tasks) > 1 and parallel_available(n_jobs, backend):
        return Parallel(n_jobs=n_jobs, backend=backend)(
            delayed(func)(*task) for task in tasks
        )

    if parallel and len(tasks) > 1:
        logger.debug("Parallel execution unavailable, running %d tasks serially", len(tasks))
    return [func(*task) for task in tasks]
