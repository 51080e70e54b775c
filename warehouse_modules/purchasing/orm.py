"""
Module: warehouse_modules.purchasing.orm
Responsibility: SQLAlchemy ORM persistence for purchase orders and their lines.
Architecture position: Modules > Purchasing > ORM.  Inherits from the kernel
    bases; line products reference ``products.id``.

Invariants enforced:
    - Line quantity > 0 (CHECK).
    - Status stored as its display string (see PurchaseOrderStatus).
    - Line quantity/unit_price hold the currently agreed values and are
      overwritten by pricing and receiving; they are not a history.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from warehouse_kernel.db.base import ID_LENGTH, Base, TrackedBase
from warehouse_kernel.domain import identifiers
from warehouse_modules.purchasing.models import (
    PurchaseItemView,
    PurchaseOrderStatus,
    PurchaseOrderView,
)


class PurchaseOrderModel(TrackedBase):
    """Vendor order header.  ``created_by_id`` is the ordering staff member."""

    __tablename__ = "purchase_orders"
    __id_prefix__ = identifiers.PURCHASE_ORDER

    __table_args__ = (
        Index("idx_po_status", "status"),
        Index("idx_po_supplier", "supplier_id"),
    )

    supplier_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    po_date: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PurchaseOrderStatus.NEW.value,
    )
    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    received_by_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    items: Mapped[list["PurchaseItemModel"]] = relationship(
        back_populates="purchase_order",
        order_by="PurchaseItemModel.line_no",
        cascade="all, delete-orphan",
    )

    def to_dto(self) -> PurchaseOrderView:
        return PurchaseOrderView(
            po_id=self.id,
            supplier_id=self.supplier_id,
            staff_id=self.created_by_id,
            po_date=self.po_date,
            status=PurchaseOrderStatus(self.status),
            total_amount=self.total_amount,
            items=tuple(item.to_dto() for item in self.items),
        )


class PurchaseItemModel(Base):
    """One product line on a purchase order."""

    __tablename__ = "purchase_items"
    __id_prefix__ = identifiers.PURCHASE_ITEM

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_po_item_quantity_positive"),
        Index("idx_po_item_po", "po_id"),
    )

    po_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("purchase_orders.id"), nullable=False,
    )
    product_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("products.id"), nullable=False,
    )
    line_no: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    purchase_order: Mapped[PurchaseOrderModel] = relationship(back_populates="items")

    def to_dto(self) -> PurchaseItemView:
        return PurchaseItemView(
            po_item_id=self.id,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )
