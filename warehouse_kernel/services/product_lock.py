"""
ProductLockRegistry -- per-product serialization of stock mutations.

Responsibility:
    Hand out one in-process lock per product id so that two allocations (or
    an allocation and a receipt) against the same product never interleave
    their read-plan-write steps.  The lock is held across commit.

Architecture position:
    Kernel > Services.  No database access.  Cross-process safety comes from
    the Batch Store's conditional UPDATE and row locks on PostgreSQL; this
    registry removes the in-process race so that path is the exception.

Invariants enforced:
    - Multiple product locks are always acquired in sorted id order, so a
      receipt touching products {A, B} and one touching {B, A} cannot
      deadlock.
"""

import threading
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from warehouse_kernel.logging_config import get_logger

logger = get_logger("services.product_lock")


class ProductLockRegistry:
    """Lazily-created re-entrant lock per product id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, product_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(product_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[product_id] = lock
            return lock

    @contextmanager
    def hold(self, product_ids: Iterable[str]) -> Iterator[tuple[str, ...]]:
        """Acquire the locks for ``product_ids`` (deduplicated, sorted)."""
        ordered = tuple(sorted(set(product_ids)))
        acquired: list[threading.RLock] = []
        start = time.monotonic()
        try:
            for product_id in ordered:
                lock = self._lock_for(product_id)
                lock.acquire()
                acquired.append(lock)
            logger.debug(
                "product_locks_acquired",
                extra={
                    "product_ids": list(ordered),
                    "wait_ms": round((time.monotonic() - start) * 1000, 2),
                },
            )
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


default_product_locks = ProductLockRegistry()
