"""
Inventory Domain Models.

Value objects returned by the inventory service.
"""

from dataclasses import dataclass

from warehouse_kernel.domain.dtos import BatchSnapshot, TransactionRecord


@dataclass(frozen=True)
class StockInResult:
    """A manual stock-in: the lot it created and the ledger row recording it."""
    product_id: str
    quantity: int
    batch: BatchSnapshot
    transaction: TransactionRecord
    product_quantity_after: int
