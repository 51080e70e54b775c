"""
Module: warehouse_kernel.models.stock_transaction
Responsibility: ORM persistence for the stock ledger -- one immutable row per
    batch touched by every stock-affecting operation.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: UPDATE and DELETE are rejected by ORM listeners
      (db/immutability.py).
    - quantity > 0; direction is carried by transaction_type (IN / OUT).

Audit relevance:
    Ledger rows are the audit trail for every receipt and issue.  The
    conservation check (Σ IN - Σ OUT == Σ batch remainders) reads them.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_kernel.db.base import ID_LENGTH, Base
from warehouse_kernel.domain import identifiers
from warehouse_kernel.domain.dtos import TransactionRecord, TransactionType


class StockTransaction(Base):
    """Immutable stock movement fact."""

    __tablename__ = "stock_transactions"
    __id_prefix__ = identifiers.STOCK_TRANSACTION

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_txn_quantity_positive"),
        CheckConstraint(
            "transaction_type IN ('IN', 'OUT')", name="ck_stock_txn_type",
        ),
        Index("idx_stock_txn_product", "product_id", "transaction_type"),
        Index("idx_stock_txn_reference", "reference_id"),
        Index("idx_stock_txn_date", "transaction_date"),
    )

    transaction_type: Mapped[str] = mapped_column(String(3), nullable=False)
    product_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("products.id"), nullable=False,
    )
    batch_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("product_batches.id"), nullable=False,
    )
    quantity: Mapped[int] = mapped_column(nullable=False)

    # Purchase order id for receipts, request id for issues
    reference_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    staff_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_date: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> TransactionRecord:
        return TransactionRecord(
            transaction_id=self.id,
            transaction_type=TransactionType(self.transaction_type),
            product_id=self.product_id,
            quantity=self.quantity,
            batch_id=self.batch_id,
            staff_id=self.staff_id,
            transaction_date=self.transaction_date,
            reference_id=self.reference_id,
            description=self.description,
        )

    def __repr__(self) -> str:
        return (
            f"<StockTransaction {self.id} {self.transaction_type} "
            f"{self.quantity} of {self.product_id}>"
        )
