"""
Module: warehouse_modules.fulfillment.orm
Responsibility: SQLAlchemy ORM persistence for customer sales orders and the
    pick requests issued against them.
Architecture position: Modules > Fulfillment > ORM.  Inherits from the kernel
    bases; lines reference ``products.id``.

Invariants enforced:
    - 0 <= fulfilled_qty <= quantity on every line (CHECK), so
      ``remaining_qty`` can never go negative.
    - ``remaining_qty`` is a hybrid property: the same expression works on
      instances and inside SQL filters.
    - Lines keep their entry order (``line_no``); order cascades fill lines
      in that order.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from warehouse_kernel.db.base import ID_LENGTH, Base, TrackedBase
from warehouse_kernel.domain import identifiers
from warehouse_modules.fulfillment.models import (
    RequestItemView,
    RequestStatus,
    RequestView,
    SalesOrderItemView,
    SalesOrderStatus,
    SalesOrderView,
)


class SalesOrderModel(TrackedBase):
    """Customer order header.  ``created_by_id`` is the staff member who took it."""

    __tablename__ = "sales_orders"
    __id_prefix__ = identifiers.SALES_ORDER

    __table_args__ = (
        Index("idx_order_status", "status"),
        Index("idx_order_customer", "customer_id"),
    )

    order_date: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=SalesOrderStatus.CONFIRMED.value,
    )
    customer_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    closed_by_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    items: Mapped[list["SalesOrderItemModel"]] = relationship(
        back_populates="order",
        order_by="SalesOrderItemModel.line_no",
        cascade="all, delete-orphan",
    )

    def to_dto(self) -> SalesOrderView:
        return SalesOrderView(
            order_id=self.id,
            order_date=self.order_date,
            status=SalesOrderStatus(self.status),
            customer_id=self.customer_id,
            staff_id=self.created_by_id,
            total_amount=self.total_amount,
            closed_by=self.closed_by_id,
            items=tuple(item.to_dto() for item in self.items),
        )


class SalesOrderItemModel(Base):
    __tablename__ = "sales_order_items"
    __id_prefix__ = identifiers.SALES_ORDER_ITEM

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
        CheckConstraint(
            "fulfilled_qty >= 0 AND fulfilled_qty <= quantity",
            name="ck_order_item_fulfilled_range",
        ),
        Index("idx_order_item_order", "order_id"),
        Index("idx_order_item_product", "product_id"),
    )

    order_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("sales_orders.id"), nullable=False,
    )
    product_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("products.id"), nullable=False,
    )
    line_no: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    line_total: Mapped[Decimal] = mapped_column(nullable=False)
    fulfilled_qty: Mapped[int] = mapped_column(nullable=False, default=0)

    order: Mapped[SalesOrderModel] = relationship(back_populates="items")

    @hybrid_property
    def remaining_qty(self) -> int:
        return self.quantity - self.fulfilled_qty

    def to_dto(self) -> SalesOrderItemView:
        return SalesOrderItemView(
            order_item_id=self.id,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            line_total=self.line_total,
            fulfilled_qty=self.fulfilled_qty,
        )


class RequestModel(TrackedBase):
    """Pick request header.  ``created_by_id`` is the requesting staff member."""

    __tablename__ = "requests"
    __id_prefix__ = identifiers.REQUEST

    __table_args__ = (
        Index("idx_request_status", "status"),
        Index("idx_request_order", "order_id"),
    )

    request_date: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=RequestStatus.AWAITING_APPROVAL.value,
    )
    order_id: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), ForeignKey("sales_orders.id"), nullable=True,
    )
    # Customer master data lives outside this system (no FK)
    customer_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)
    approved_date: Mapped[datetime | None] = mapped_column(nullable=True)
    closed_by_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    items: Mapped[list["RequestItemModel"]] = relationship(
        back_populates="request",
        order_by="RequestItemModel.line_no",
        cascade="all, delete-orphan",
    )

    def to_dto(self) -> RequestView:
        return RequestView(
            request_id=self.id,
            request_date=self.request_date,
            status=RequestStatus(self.status),
            staff_id=self.created_by_id,
            order_id=self.order_id,
            customer_id=self.customer_id,
            description=self.description,
            approved_by=self.approved_by_id,
            approved_date=self.approved_date,
            closed_by=self.closed_by_id,
            items=tuple(item.to_dto() for item in self.items),
        )


class RequestItemModel(Base):
    __tablename__ = "request_items"
    __id_prefix__ = identifiers.REQUEST_ITEM

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_request_item_quantity_positive"),
        CheckConstraint(
            "fulfilled_qty >= 0 AND fulfilled_qty <= quantity",
            name="ck_request_item_fulfilled_range",
        ),
        Index("idx_request_item_request", "request_id"),
    )

    request_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("requests.id"), nullable=False,
    )
    product_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("products.id"), nullable=False,
    )
    line_no: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    fulfilled_qty: Mapped[int] = mapped_column(nullable=False, default=0)

    request: Mapped[RequestModel] = relationship(back_populates="items")

    @hybrid_property
    def remaining_qty(self) -> int:
        return self.quantity - self.fulfilled_qty

    def to_dto(self) -> RequestItemView:
        return RequestItemView(
            request_item_id=self.id,
            product_id=self.product_id,
            quantity=self.quantity,
            fulfilled_qty=self.fulfilled_qty,
        )
