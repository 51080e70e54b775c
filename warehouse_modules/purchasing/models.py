"""
Purchasing Domain Models (``warehouse_modules.purchasing.models``).

Frozen value objects for purchase orders: status enum, caller input lines
for creation / pricing / receiving, and read views returned by the service.
No database identity and no I/O.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PurchaseOrderStatus(str, Enum):
    """Lifecycle of a vendor order."""
    NEW = "New order"
    PENDING = "Pending"
    RECEIVED = "Received"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class PurchaseLineInput:
    """A line on a new purchase order; price may be agreed later."""
    product_id: str
    quantity: int
    unit_price: Decimal | None = None


@dataclass(frozen=True)
class PricedLine:
    """A supplier-quoted price for an existing purchase line."""
    po_item_id: str
    unit_price: Decimal | None


@dataclass(frozen=True)
class ReceivedLine:
    """What actually arrived for an existing purchase line."""
    po_item_id: str
    quantity: int
    unit_price: Decimal | None


@dataclass(frozen=True)
class PurchaseItemView:
    po_item_id: str
    product_id: str
    quantity: int
    unit_price: Decimal | None


@dataclass(frozen=True)
class PurchaseOrderView:
    po_id: str
    supplier_id: str
    staff_id: str
    po_date: datetime
    status: PurchaseOrderStatus
    total_amount: Decimal
    items: tuple[PurchaseItemView, ...] = ()

    def item(self, po_item_id: str) -> PurchaseItemView | None:
        return next((i for i in self.items if i.po_item_id == po_item_id), None)
