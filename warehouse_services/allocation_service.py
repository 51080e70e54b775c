"""
Allocator -- FIFO issue against a product's batches.

Responsibility:
    Select which batches an issue draws from, in the Batch Store's issue
    order, and write each touched batch's new remainder.

Architecture position:
    Services -- stateful orchestration over the kernel ``BatchStore`` and the
    pure ``plan_allocation`` engine.  Flush-only: the module workflow that
    calls ``allocate`` owns the transaction and the per-product lock.

Invariants enforced:
    - Σ quantity taken == min(requested, Σ available remainders).
    - Batches are drawn oldest-first (or expiry-first under FEFO).
    - Every remainder write is conditional on the remainder the plan was
      computed from; no batch goes negative.

Failure modes:
    - InvalidQuantityError for a non-positive request.
    - ConcurrentModificationError if a batch changed between read and write
      (the enclosing transaction must then roll back).
    - A shortfall is returned on the result, not raised.
"""

import time

from warehouse_engines.allocation import AllocationPlan, plan_allocation
from warehouse_kernel.logging_config import get_logger
from warehouse_kernel.services.batch_store import BatchStore

logger = get_logger("services.allocation")


class Allocator:
    """Plans and applies batch draws for one product at a time."""

    def __init__(self, batch_store: BatchStore):
        self._batches = batch_store

    def allocate(self, product_id: str, quantity_needed: int) -> AllocationPlan:
        """
        Draw up to ``quantity_needed`` units of ``product_id`` from its batches.

        Returns:
            The applied AllocationPlan.  ``plan.as_pairs()`` gives the ordered
            ``(batch_id, quantity_taken)`` sequence; ``plan.shortfall`` is
            non-zero when the batches were exhausted first.
        """
        t0 = time.monotonic()
        available = self._batches.list_available(product_id, for_update=True)
        plan = plan_allocation(product_id, quantity_needed, available)

        for draw in plan.draws:
            self._batches.decrement_remaining(
                draw.batch_id,
                expected_remaining=draw.remaining_before,
                new_remaining=draw.remaining_after,
            )
            logger.debug(
                "batch_consumed",
                extra={
                    "product_id": product_id,
                    "batch_id": draw.batch_id,
                    "quantity_taken": draw.quantity_taken,
                    "remaining_after": draw.remaining_after,
                },
            )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        log = logger.info if plan.is_complete else logger.warning
        log(
            "allocation_applied" if plan.is_complete else "allocation_short",
            extra={
                "product_id": product_id,
                "requested": quantity_needed,
                "allocated": plan.allocated,
                "shortfall": plan.shortfall,
                "batches_touched": len(plan.draws),
                "duration_ms": duration_ms,
            },
        )
        return plan
