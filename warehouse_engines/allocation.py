"""
warehouse_engines.allocation -- batch draw planning for stock issues.

Responsibility:
    Given the available batches of one product, already in issue order,
    decide how many units to take from each to satisfy a requested quantity.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The stateful Allocator in
    ``warehouse_services.allocation_service`` fetches the batches, calls
    ``plan_allocation`` and writes the resulting remainders.

Invariants enforced:
    - Batches are walked strictly in the order given; each contributes
      ``min(remaining, still_needed)``.
    - Total taken == min(requested, Σ remaining).
    - No batch is planned below zero; batches with nothing taken are omitted.
    - The walk stops as soon as the request is satisfied.

Failure modes:
    - InvalidQuantityError if the requested quantity is not positive.
    - A shortfall is reported on the plan, not raised: the caller decides
      whether a partial source is acceptable (the fulfillment workflow
      treats it as a conflict).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from warehouse_kernel.domain.dtos import BatchSnapshot
from warehouse_kernel.exceptions import InvalidQuantityError
from warehouse_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True, slots=True)
class BatchDraw:
    """Units taken from one batch, with the remainder before and after."""

    batch_id: str
    quantity_taken: int
    remaining_before: int

    @property
    def remaining_after(self) -> int:
        return self.remaining_before - self.quantity_taken


@dataclass(frozen=True, slots=True)
class AllocationPlan:
    """Ordered draws for one product and the quantity left unsourced."""

    product_id: str
    requested: int
    draws: tuple[BatchDraw, ...]

    @property
    def allocated(self) -> int:
        return sum(d.quantity_taken for d in self.draws)

    @property
    def shortfall(self) -> int:
        return self.requested - self.allocated

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0

    def as_pairs(self) -> list[tuple[str, int]]:
        """``(batch_id, quantity_taken)`` in draw order."""
        return [(d.batch_id, d.quantity_taken) for d in self.draws]


def plan_allocation(
    product_id: str,
    quantity_needed: int,
    batches: Iterable[BatchSnapshot],
) -> AllocationPlan:
    """
    Walk ``batches`` in order, taking ``min(remaining, still_needed)`` from each.

    Preconditions:
        - ``quantity_needed`` > 0.
        - ``batches`` are in issue order (the Batch Store's policy order).

    Returns:
        AllocationPlan; ``shortfall`` > 0 when the batches ran out.
    """
    if quantity_needed is None or quantity_needed <= 0:
        raise InvalidQuantityError("quantity_needed", quantity_needed)

    still_needed = quantity_needed
    draws: list[BatchDraw] = []
    for batch in batches:
        if still_needed == 0:
            break
        take = min(max(batch.quantity_remaining, 0), still_needed)
        if take <= 0:
            continue
        draws.append(BatchDraw(batch.batch_id, take, batch.quantity_remaining))
        still_needed -= take

    plan = AllocationPlan(product_id, quantity_needed, tuple(draws))
    logger.debug(
        "allocation_planned",
        extra={
            "product_id": product_id,
            "requested": quantity_needed,
            "allocated": plan.allocated,
            "batch_count": len(draws),
        },
    )
    return plan
