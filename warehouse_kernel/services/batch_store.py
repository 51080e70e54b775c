"""
BatchStore -- lot-level inventory records.

Responsibility:
    Create batches, list the available ones in issue order, and write new
    remainders.  The remainder write is the only mutation a batch ever sees
    after INSERT.

Architecture position:
    Kernel > Services.  Flush-only; the caller owns commit/rollback.

Invariants enforced:
    - A new batch starts with quantity_remaining == quantity_in.
    - ``list_available`` returns only batches with remaining > 0, in the one
      order fixed by the store's IssuePolicy (never a mix of policies).
    - ``decrement_remaining`` is a compare-and-swap: the UPDATE matches only
      if the row still holds the remainder the caller planned against, so two
      concurrent allocators can never both consume the same units.

Failure modes:
    - InvalidQuantityError if a write would go negative, exceed quantity_in,
      or increase the remainder.
    - ConcurrentModificationError if the conditional UPDATE matched no row.
    - BatchNotFoundError for unknown ids.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import case, select, update

from warehouse_kernel.domain.clock import Clock
from warehouse_kernel.domain.dtos import BatchSnapshot, IssuePolicy
from warehouse_kernel.domain.validation import require_positive_quantity
from warehouse_kernel.exceptions import (
    BatchNotFoundError,
    ConcurrentModificationError,
    InvalidQuantityError,
)
from warehouse_kernel.logging_config import get_logger
from warehouse_kernel.models.product_batch import ProductBatch
from warehouse_kernel.services.base import BaseService

logger = get_logger("services.batch_store")


class BatchStore(BaseService):
    """Lot store with policy-ordered availability and conditional decrements."""

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        issue_policy: IssuePolicy = IssuePolicy.FIFO,
    ):
        super().__init__(session, clock)
        self.issue_policy = IssuePolicy(issue_policy)

    def create_batch(
        self,
        product_id: str,
        po_id: str | None,
        quantity_in: int,
        unit_cost: Decimal,
        expiry_date: date | None = None,
    ) -> BatchSnapshot:
        """
        Insert a new lot with its full quantity available.

        Raises:
            InvalidQuantityError: ``quantity_in`` <= 0 or ``unit_cost`` < 0.
        """
        require_positive_quantity(quantity_in, "quantity_in")
        if unit_cost is None or unit_cost < 0:
            raise InvalidQuantityError("unit_cost", unit_cost, "cannot be negative")

        batch = ProductBatch(
            product_id=product_id,
            po_id=po_id,
            quantity_in=quantity_in,
            quantity_remaining=quantity_in,
            unit_cost=unit_cost,
            expiry_date=expiry_date,
            received_date=self.clock.now(),
        )
        self.session.add(batch)
        self.session.flush()

        logger.info(
            "batch_created",
            extra={
                "batch_id": batch.id,
                "product_id": product_id,
                "po_id": po_id,
                "quantity_in": quantity_in,
                "unit_cost": unit_cost,
            },
        )
        return batch.to_dto()

    def _issue_order(self):
        fifo = (ProductBatch.received_date.asc(), ProductBatch.id.asc())
        if self.issue_policy is IssuePolicy.FEFO:
            no_expiry_last = case((ProductBatch.expiry_date.is_(None), 1), else_=0)
            return (no_expiry_last, ProductBatch.expiry_date.asc(), *fifo)
        return fifo

    def list_available(self, product_id: str, for_update: bool = False) -> list[BatchSnapshot]:
        """
        Batches of ``product_id`` with remaining > 0, in issue order.

        With ``for_update`` the rows are locked (SELECT ... FOR UPDATE) on
        backends that support it; SQLite ignores the clause.
        """
        stmt = (
            select(ProductBatch)
            .where(
                ProductBatch.product_id == product_id,
                ProductBatch.quantity_remaining > 0,
            )
            .order_by(*self._issue_order())
        )
        if for_update:
            stmt = stmt.with_for_update()
        return [b.to_dto() for b in self.session.scalars(stmt)]

    def get_batch(self, batch_id: str) -> BatchSnapshot:
        batch = self.session.get(ProductBatch, batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch.to_dto()

    def decrement_remaining(
        self,
        batch_id: str,
        expected_remaining: int,
        new_remaining: int,
    ) -> None:
        """
        Set the absolute remainder of ``batch_id`` to ``new_remaining``.

        Preconditions:
            - 0 <= ``new_remaining`` <= ``expected_remaining``.

        Postconditions:
            - The row's quantity_remaining equals ``new_remaining``, provided it
              still held ``expected_remaining`` when the UPDATE ran.

        Raises:
            InvalidQuantityError: Negative or increasing remainder.
            ConcurrentModificationError: The row no longer holds
                ``expected_remaining`` (or does not exist).
        """
        if new_remaining < 0:
            raise InvalidQuantityError("quantity_remaining", new_remaining, "cannot be negative")
        if new_remaining > expected_remaining:
            raise InvalidQuantityError(
                "quantity_remaining", new_remaining,
                f"cannot exceed previous remainder {expected_remaining}",
            )

        result = self.session.execute(
            update(ProductBatch)
            .where(
                ProductBatch.id == batch_id,
                ProductBatch.quantity_remaining == expected_remaining,
            )
            .values(quantity_remaining=new_remaining)
        )
        if result.rowcount != 1:
            logger.warning(
                "batch_decrement_conflict",
                extra={
                    "batch_id": batch_id,
                    "expected_remaining": expected_remaining,
                    "new_remaining": new_remaining,
                },
            )
            raise ConcurrentModificationError("ProductBatch", batch_id)

        logger.debug(
            "batch_remaining_updated",
            extra={
                "batch_id": batch_id,
                "previous_remaining": expected_remaining,
                "new_remaining": new_remaining,
            },
        )
