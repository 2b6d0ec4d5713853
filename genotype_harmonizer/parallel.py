"""Keyed task execution, sequential or in a process pool.

Per-chromosome remapping and per-build anchor comparison are independent,
side-effect-free tasks. Results are always returned in the order of the task
keys, so parallel and sequential runs produce identical output.
"""

import logging
import os
from collections.abc import Callable, Mapping
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")
R = TypeVar("R")


def default_worker_count(n_tasks: int, max_workers: int | None = None) -> int:
    """Worker count capped by CPU count, task count and ``max_workers``."""
    workers = os.cpu_count() or 1
    if max_workers is not None:
        workers = min(workers, max_workers)
    return max(1, min(workers, n_tasks))


def run_tasks(
    func: Callable[[T], R],
    tasks: Mapping[K, T],
    parallelize: bool = False,
    max_workers: int | None = None,
) -> dict[K, R]:
    """Run ``func`` over every task, keyed like ``tasks``.

    Args:
        func: Module-level function (must be picklable when parallelized)
        tasks: Mapping of key -> task argument
        parallelize: Use a process pool when there is more than one task
        max_workers: Maximum number of worker processes

    Returns:
        Mapping of key -> result, in the iteration order of ``tasks``
    """
    if not parallelize or len(tasks) <= 1:
        return {key: func(task) for key, task in tasks.items()}

    workers = default_worker_count(len(tasks), max_workers)
    logger.debug("Running %d tasks with %d workers", len(tasks), workers)

    results: dict[K, R] = {}
    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(func, task): key for key, task in tasks.items()}
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    return {key: results[key] for key in tasks}
