"""
Purchasing Module (``warehouse_modules.purchasing``).

Responsibility
--------------
Vendor purchase orders: creation, supplier pricing or rejection, and
receiving.  Receiving is the only way purchased goods enter stock: each
received line becomes a costed batch, re-averages the product cost, and
writes one IN ledger row.

Architecture position
---------------------
**Modules layer** -- status enum and value objects (``models``), ORM
(``orm``), the state machine (``workflows``), and ``PurchasingService``
(``service``), which owns the transaction boundary and delegates to the
costing engine, the Batch Store and the Stock Ledger.

Failure modes
-------------
* Validation / not-found errors are raised before any write.
* ``InvalidStatusTransitionError`` once an order is Received or Rejected.
* Database exceptions propagate after session rollback.
"""

from warehouse_modules.purchasing.models import (
    PricedLine,
    PurchaseItemView,
    PurchaseLineInput,
    PurchaseOrderStatus,
    PurchaseOrderView,
    ReceivedLine,
)
from warehouse_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = [
    "PricedLine",
    "PurchaseItemView",
    "PurchaseLineInput",
    "PurchaseOrderStatus",
    "PurchaseOrderView",
    "ReceivedLine",
    "PURCHASE_ORDER_WORKFLOW",
]
