"""
Partition Execution

Caller-driven cancellation and the thread pool that runs per-partition work.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from seller_economics.domain.errors import QueryCancelled

T = TypeVar("T")
R = TypeVar("R")


class CancellationToken:
    """
    Cancelled explicitly or by an optional monotonic deadline.

    The engine checks the token between partitions only, so a group is either
    fully folded or not folded at all.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_seconds if timeout_seconds else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise QueryCancelled("Query cancelled before completion")


def map_partitions(
    func: Callable[[T], R],
    items: Sequence[T],
    worker_count: int = 1,
    token: Optional[CancellationToken] = None,
) -> List[R]:
    """
    Apply ``func`` to every partition, preserving input order.

    Returning is the barrier: every partition has finished when the list
    comes back. The token is checked before each partition starts.
    """
    token = token or CancellationToken()

    def _run(item: T) -> R:
        token.raise_if_cancelled()
        return func(item)

    if worker_count <= 1 or len(items) <= 1:
        return [_run(item) for item in items]

    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="economics") as executor:
        futures = [executor.submit(_run, item) for item in items]
        try:
            return [future.result() for future in futures]
        except Exception:
            for future in futures:
                future.cancel()
            raise
