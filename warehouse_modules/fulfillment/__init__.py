"""
Fulfillment Module (``warehouse_modules.fulfillment``).

Responsibility
--------------
Customer sales orders, the pick requests raised against them, and the
stock issue that draws request quantities out of inventory batches.

Architecture position
---------------------
**Modules layer** -- status enums and value objects (``models``), ORM
(``orm``), state machines (``workflows``), and three services owning the
transaction boundary:

* ``SalesOrderService`` (``orders``) -- order entry and close.
* ``RequestService`` (``requests``) -- request creation, approval, close.
* ``FulfillmentService`` (``service``) -- stock issue via the Allocator,
  with the OUT ledger rows and the order cascade.

Failure modes
-------------
* Validation / not-found errors are raised before any write.
* Conflicts (status, stock, open lines) roll back the whole operation.
"""

from warehouse_modules.fulfillment.models import (
    BatchTake,
    FulfillmentResult,
    OrderLineInput,
    RequestItemView,
    RequestLineInput,
    RequestStatus,
    RequestView,
    SalesOrderItemView,
    SalesOrderStatus,
    SalesOrderView,
)
from warehouse_modules.fulfillment.workflows import REQUEST_WORKFLOW, SALES_ORDER_WORKFLOW

__all__ = [
    "BatchTake",
    "FulfillmentResult",
    "OrderLineInput",
    "RequestItemView",
    "RequestLineInput",
    "RequestStatus",
    "RequestView",
    "SalesOrderItemView",
    "SalesOrderStatus",
    "SalesOrderView",
    "REQUEST_WORKFLOW",
    "SALES_ORDER_WORKFLOW",
]
