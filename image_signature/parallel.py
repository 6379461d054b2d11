"""
Fork-join helpers for row-parallel image passes.

A pass is split into contiguous row bands sized to the number of CPUs.
Each band runs on a worker thread and returns a local accumulator; the
accumulators are folded sequentially on the calling thread once every
worker has been joined, so no lock is ever taken on the result.

numpy releases the GIL inside its array kernels, which is where the
per-band work spends its time, so threads rather than processes are
used and the pixel arrays are shared without copying.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple, TypeVar

from .config import MIN_BATCH_SIZE, WORKERS
from .errors import ParallelExecutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")


def cpu_count() -> int:
    return os.cpu_count() or 1


def batch_size_by_core(total_size: int,
                       min_size_per_core: int = MIN_BATCH_SIZE) -> int:
    """Rows per band: an even share per CPU, never below the minimum."""
    return max(total_size // cpu_count(), min_size_per_core)


def row_ranges(total: int, batch_size: int) -> List[Tuple[int, int]]:
    """
    Split ``[0, total)`` into half-open ``(start, stop)`` bands.

    The last band absorbs the remainder and may be shorter.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [(start, min(start + batch_size, total))
            for start in range(0, total, batch_size)]


def _resolve_workers(workers: Optional[int], band_count: int) -> int:
    if not workers:
        workers = WORKERS or cpu_count()
    return max(1, min(workers, band_count))


def run_bands(work: Callable[[int, int], P],
              total: int,
              batch_size: Optional[int] = None,
              workers: Optional[int] = None) -> List[P]:
    """
    Run ``work(start, stop)`` for every row band and return the results
    in band order.

    Raises:
        ParallelExecutionError: If any band raised. All bands are
            allowed to finish first and every failure is reported.
    """
    ranges = row_ranges(total, batch_size or batch_size_by_core(total))
    if not ranges:
        return []

    max_workers = _resolve_workers(workers, len(ranges))
    logger.debug(
        f"Fork-join over {total} rows: {len(ranges)} bands, "
        f"{max_workers} workers"
    )

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(work, start, stop)
                   for start, stop in ranges]

    # Leaving the executor joins every worker
    results = []
    errors = []
    for future in futures:
        error = future.exception()
        if error is not None:
            errors.append(error)
        else:
            results.append(future.result())

    if errors:
        logger.error(f"{len(errors)} of {len(ranges)} bands failed")
        raise ParallelExecutionError(errors)

    return results


def parallel_reduce(work: Callable[[int, int], P],
                    total: int,
                    merge: Callable[[T, P], T],
                    initial: T,
                    batch_size: Optional[int] = None,
                    workers: Optional[int] = None) -> T:
    """
    Map row bands to local accumulators, then fold them into ``initial``.

    Args:
        work: Computes a local accumulator for rows ``[start, stop)``.
        total: Number of rows.
        merge: ``merge(acc, partial)`` returning the new accumulator.
            Called on the calling thread only, in band order.
        initial: Starting accumulator.
        batch_size: Rows per band. Defaults to batch_size_by_core(total).
        workers: Thread count. Defaults to config.WORKERS or CPU count.

    Returns:
        The folded accumulator.
    """
    acc = initial
    for partial in run_bands(work, total, batch_size, workers):
        acc = merge(acc, partial)
    return acc
