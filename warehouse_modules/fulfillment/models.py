"""
Fulfillment Domain Models (``warehouse_modules.fulfillment.models``).

Frozen value objects for pick requests and customer sales orders: status
enums, caller input lines, read views, and the outcome of a fulfillment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from warehouse_kernel.domain.dtos import TransactionRecord


class RequestStatus(str, Enum):
    """Lifecycle of a pick request."""
    AWAITING_APPROVAL = "Awaiting Approval"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PENDING = "Pending"
    CLOSED = "Closed"


class SalesOrderStatus(str, Enum):
    """Lifecycle of a customer order."""
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    CLOSED = "Closed"


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class RequestLineInput:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderLineInput:
    product_id: str
    quantity: int
    unit_price: Decimal


# =============================================================================
# Views
# =============================================================================


@dataclass(frozen=True)
class RequestItemView:
    request_item_id: str
    product_id: str
    quantity: int
    fulfilled_qty: int

    @property
    def remaining_qty(self) -> int:
        return self.quantity - self.fulfilled_qty


@dataclass(frozen=True)
class RequestView:
    """Read snapshot of a pick request and its lines."""
    request_id: str
    request_date: datetime
    status: RequestStatus
    staff_id: str
    order_id: str | None = None
    customer_id: str | None = None
    description: str | None = None
    approved_by: str | None = None
    approved_date: datetime | None = None
    closed_by: str | None = None
    items: tuple[RequestItemView, ...] = ()

    @property
    def has_open_lines(self) -> bool:
        return any(i.remaining_qty > 0 for i in self.items)

    def item(self, request_item_id: str) -> RequestItemView | None:
        return next((i for i in self.items if i.request_item_id == request_item_id), None)


@dataclass(frozen=True)
class SalesOrderItemView:
    order_item_id: str
    product_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    fulfilled_qty: int

    @property
    def remaining_qty(self) -> int:
        return self.quantity - self.fulfilled_qty


@dataclass(frozen=True)
class SalesOrderView:
    """Read snapshot of a customer order and its lines."""
    order_id: str
    order_date: datetime
    status: SalesOrderStatus
    customer_id: str
    staff_id: str
    total_amount: Decimal
    closed_by: str | None = None
    items: tuple[SalesOrderItemView, ...] = ()

    @property
    def has_open_lines(self) -> bool:
        return any(i.remaining_qty > 0 for i in self.items)

    def remaining_for(self, product_id: str) -> int:
        """Unfilled quantity across every line of ``product_id``."""
        return sum(i.remaining_qty for i in self.items if i.product_id == product_id)


@dataclass(frozen=True)
class BatchTake:
    batch_id: str
    quantity: int


@dataclass(frozen=True)
class FulfillmentResult:
    """
    Outcome of issuing stock against one request line.

    ``takes`` lists the batches drawn, in issue order; ``transactions`` the
    OUT ledger rows written for them (one per take).
    """
    request_id: str
    request_item_id: str
    product_id: str
    quantity: int
    takes: tuple[BatchTake, ...]
    transactions: tuple[TransactionRecord, ...]
    request_status: RequestStatus
    product_quantity_after: int
    order_id: str | None = None
    order_status: SalesOrderStatus | None = None
