"""Flush-only kernel services."""

from warehouse_kernel.services.batch_store import BatchStore
from warehouse_kernel.services.product_lock import ProductLockRegistry, default_product_locks
from warehouse_kernel.services.stock_ledger import StockLedger

__all__ = [
    "BatchStore",
    "ProductLockRegistry",
    "StockLedger",
    "default_product_locks",
]
