"""
Module: warehouse_kernel.models.product
Responsibility: ORM persistence for products -- the aggregate that carries the
    on-hand counter and the current weighted-average unit cost.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity >= 0 (CHECK constraint).
    - quantity equals the sum of the product's batch remainders.  Stock
      operations update both in one transaction; the reconciliation selector
      reports drift, treating batches as authoritative.
    - cost_price is written only by receiving (weighted average) and product
      creation; admin edits touch name/description/unit/sell_price only.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_kernel.db.base import ID_LENGTH, TrackedBase
from warehouse_kernel.domain import identifiers
from warehouse_kernel.domain.dtos import ProductView


class Product(TrackedBase):
    """
    A stocked product.

    ``quantity`` is denormalized from batch remainders so that the fast
    availability check needs no aggregate query.
    """

    __tablename__ = "products"
    __id_prefix__ = identifiers.PRODUCT

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"),
        Index("idx_product_active", "is_active"),
        Index("idx_product_supplier", "supplier_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(String(30), nullable=False, default="unit")

    quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    cost_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    sell_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Supplier master data lives outside this system (no FK)
    supplier_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_dto(self) -> ProductView:
        return ProductView(
            product_id=self.id,
            name=self.name,
            unit=self.unit,
            quantity=self.quantity,
            cost_price=self.cost_price,
            sell_price=self.sell_price,
            is_active=self.is_active,
            description=self.description,
            supplier_id=self.supplier_id,
        )

    def __repr__(self) -> str:
        return f"<Product {self.id} qty={self.quantity} cost={self.cost_price}>"
