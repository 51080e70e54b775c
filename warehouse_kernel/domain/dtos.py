"""
Kernel data transfer objects (``warehouse_kernel.domain.dtos``).

Frozen value objects handed across layer boundaries instead of live ORM
instances.  Pure data: ZERO I/O, no session, no lazy loading.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    """Direction of a stock movement."""
    IN = "IN"
    OUT = "OUT"


class IssuePolicy(str, Enum):
    """
    Order in which available batches are drawn.

    FIFO: oldest received first, tie-break batch id ascending.
    FEFO: earliest expiry first (no expiry last), then FIFO order.
    """
    FIFO = "fifo"
    FEFO = "fefo"


@dataclass(frozen=True)
class ProductView:
    """Read snapshot of a product."""
    product_id: str
    name: str
    unit: str
    quantity: int
    cost_price: Decimal | None
    sell_price: Decimal
    is_active: bool
    description: str | None = None
    supplier_id: str | None = None


@dataclass(frozen=True, slots=True)
class BatchSnapshot:
    """
    Read snapshot of an inventory lot.

    ``quantity_remaining`` is the value observed when the snapshot was taken;
    it is what a conditional decrement compares against.
    """
    batch_id: str
    product_id: str
    quantity_in: int
    quantity_remaining: int
    unit_cost: Decimal
    received_date: datetime
    expiry_date: date | None = None
    po_id: str | None = None

    @property
    def is_available(self) -> bool:
        return self.quantity_remaining > 0


@dataclass(frozen=True)
class StockReconciliation:
    """
    Counter / batch / ledger comparison for one product.

    Consistent when the product counter, the sum of batch remainders and the
    ledger balance (Σ IN - Σ OUT) all agree.  Batches are authoritative.
    """
    product_id: str
    product_quantity: int
    batch_remaining: int
    ledger_in: int
    ledger_out: int

    @property
    def ledger_balance(self) -> int:
        return self.ledger_in - self.ledger_out

    @property
    def counter_drift(self) -> int:
        """Product counter minus authoritative batch total."""
        return self.product_quantity - self.batch_remaining

    @property
    def is_consistent(self) -> bool:
        return self.product_quantity == self.batch_remaining == self.ledger_balance


@dataclass(frozen=True)
class TransactionRecord:
    """Read snapshot of one stock ledger row."""
    transaction_id: str
    transaction_type: TransactionType
    product_id: str
    quantity: int
    batch_id: str
    staff_id: str
    transaction_date: datetime
    reference_id: str | None = None
    description: str | None = None

    @property
    def signed_quantity(self) -> int:
        """Quantity with OUT movements negated."""
        if self.transaction_type is TransactionType.OUT:
            return -self.quantity
        return self.quantity
