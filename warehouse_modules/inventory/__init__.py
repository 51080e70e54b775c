"""
Inventory Module (``warehouse_modules.inventory``).

Responsibility
--------------
Product master data, manual stock-in, batch and ledger queries, and stock
reconciliation.  ``InventoryConfig`` (``config``) also carries the settings
shared by the purchasing and fulfillment modules: the issue policy and the
minimum unit price.

Architecture position
---------------------
**Modules layer** -- ``InventoryService`` (``service``) owns the transaction
boundary and delegates to the kernel Batch Store, Stock Ledger and
selectors.
"""

from warehouse_modules.inventory.config import InventoryConfig
from warehouse_modules.inventory.models import StockInResult

__all__ = [
    "InventoryConfig",
    "StockInResult",
]
