"""
Module: warehouse_kernel.models.product_batch
Responsibility: ORM persistence for inventory lots.  A batch is one receipt of
    a product at one unit cost; issues draw its remainder down.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - 0 <= quantity_remaining <= quantity_in (CHECK constraint).
    - quantity_in, unit_cost, product_id, po_id, received_date are immutable
      after INSERT (ORM listeners in db/immutability.py).
    - quantity_remaining never increases; it is written only through
      BatchStore.decrement_remaining (conditional UPDATE).
    - Batches are never deleted.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_kernel.db.base import ID_LENGTH, Base
from warehouse_kernel.domain import identifiers
from warehouse_kernel.domain.dtos import BatchSnapshot


class ProductBatch(Base):
    """Inventory lot with an immutable quantity-in and unit cost."""

    __tablename__ = "product_batches"
    __id_prefix__ = identifiers.BATCH

    __table_args__ = (
        CheckConstraint("quantity_in > 0", name="ck_batch_quantity_in_positive"),
        CheckConstraint(
            "quantity_remaining >= 0 AND quantity_remaining <= quantity_in",
            name="ck_batch_remaining_range",
        ),
        CheckConstraint("unit_cost >= 0", name="ck_batch_unit_cost_non_negative"),
        Index("idx_batch_product_available", "product_id", "quantity_remaining"),
        Index("idx_batch_received", "product_id", "received_date"),
        Index("idx_batch_po", "po_id"),
    )

    product_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("products.id"), nullable=False,
    )
    # Absent for manual stock-in and initial stock; purchase orders are a
    # module table, so referenced without FK
    po_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    quantity_in: Mapped[int] = mapped_column(nullable=False)
    quantity_remaining: Mapped[int] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    expiry_date: Mapped[date | None] = mapped_column(nullable=True)
    received_date: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> BatchSnapshot:
        return BatchSnapshot(
            batch_id=self.id,
            product_id=self.product_id,
            quantity_in=self.quantity_in,
            quantity_remaining=self.quantity_remaining,
            unit_cost=self.unit_cost,
            received_date=self.received_date,
            expiry_date=self.expiry_date,
            po_id=self.po_id,
        )

    def __repr__(self) -> str:
        return (
            f"<ProductBatch {self.id} product={self.product_id} "
            f"{self.quantity_remaining}/{self.quantity_in}>"
        )
