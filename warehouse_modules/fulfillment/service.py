"""
Fulfillment Service (``warehouse_modules.fulfillment.service``).

Responsibility
--------------
Issue stock against an approved pick request line: draw the quantity from
the product's batches, write one OUT ledger row per batch touched, lower
the product counter, and cascade the quantity into the linked customer
order.

Architecture
------------
Layer: **Modules** -- orchestration that owns the transaction boundary.

1. ``REQUEST_WORKFLOW`` / ``SALES_ORDER_WORKFLOW`` decide whether the
   request and its order may be issued against.
2. ``Allocator`` (services) plans and applies the batch draws.
3. ``StockLedger`` (kernel, flush-only) appends the OUT rows.

Invariants
----------
- The whole issue (line progress, batch remainders, ledger rows, product
  counter, request and order status) commits or rolls back together.
- The product's lock is held from the first read inside the unit of work
  until after commit, so concurrent issues of one product serialize.
- Request and order line remainders never go negative (checked here and by
  CHECK constraints).

Failure Modes
-------------
- InvalidQuantityError / MissingFieldError / ExceedsRemainingError.
- RequestItemNotFoundError / ProductNotFoundError / SalesOrderNotFoundError
  / OrderItemNotFoundError.
- InvalidStatusTransitionError when the request is not Approved or Pending.
- InsufficientStockError (counter check) and InsufficientBatchCoverageError
  (batch check) when stock cannot cover the issue.
- OrderOverFulfillmentError when the linked order cannot absorb the issue.
"""

from __future__ import annotations

from sqlalchemy import select

from warehouse_kernel.domain.dtos import TransactionType
from warehouse_kernel.domain.validation import require_positive_quantity, require_text
from warehouse_kernel.exceptions import (
    ExceedsRemainingError,
    InsufficientBatchCoverageError,
    InsufficientStockError,
    OrderItemNotFoundError,
    OrderOverFulfillmentError,
    ProductNotFoundError,
    RequestItemNotFoundError,
    SalesOrderNotFoundError,
)
from warehouse_kernel.logging_config import LogContext, get_logger
from warehouse_kernel.models.product import Product
from warehouse_kernel.services.batch_store import BatchStore
from warehouse_kernel.services.stock_ledger import StockLedger
from warehouse_modules._service_base import ModuleService
from warehouse_modules.fulfillment.models import (
    BatchTake,
    FulfillmentResult,
    RequestStatus,
    SalesOrderStatus,
)
from warehouse_modules.fulfillment.orm import (
    RequestItemModel,
    RequestModel,
    SalesOrderItemModel,
    SalesOrderModel,
)
from warehouse_modules.fulfillment.workflows import REQUEST_WORKFLOW, SALES_ORDER_WORKFLOW
from warehouse_services.allocation_service import Allocator

logger = get_logger("modules.fulfillment.service")


class FulfillmentService(ModuleService):
    """
    Issues stock against pick request lines.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(self, session, clock=None, config=None, locks=None):
        super().__init__(session, clock, config, locks)
        self._allocator = Allocator(
            BatchStore(session, self._clock, self._config.issue_policy),
        )
        self._ledger = StockLedger(session, self._clock)

    def _order_lines(self, order_id: str, product_id: str) -> list[SalesOrderItemModel]:
        stmt = (
            select(SalesOrderItemModel)
            .where(
                SalesOrderItemModel.order_id == order_id,
                SalesOrderItemModel.product_id == product_id,
            )
            .order_by(SalesOrderItemModel.line_no)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self._session.scalars(stmt))

    def _plan_order_fill(
        self, order_id: str, product_id: str, quantity: int,
    ) -> list[tuple[SalesOrderItemModel, int]]:
        """Spread ``quantity`` over the order's lines for ``product_id`` in line order."""
        lines = self._order_lines(order_id, product_id)
        if not lines:
            raise OrderItemNotFoundError(order_id, product_id)
        remaining = sum(line.remaining_qty for line in lines)
        if remaining < quantity:
            raise OrderOverFulfillmentError(order_id, product_id, quantity, remaining)

        fills: list[tuple[SalesOrderItemModel, int]] = []
        still_needed = quantity
        for line in lines:
            if still_needed == 0:
                break
            take = min(line.remaining_qty, still_needed)
            if take > 0:
                fills.append((line, take))
                still_needed -= take
        return fills

    def fulfill_item(
        self,
        request_item_id: str,
        fulfill_qty: int,
        staff_id: str,
    ) -> FulfillmentResult:
        """
        Issue ``fulfill_qty`` units against one request line.

        Preconditions:
            - ``fulfill_qty`` > 0 and <= the line's remaining quantity.
            - ``staff_id`` non-blank.
            - The request is Approved or Pending.
            - The product exists and its counter and batches cover the issue.
            - If the request is linked to an order, the order's lines for the
              product can absorb the issue.

        Postconditions:
            - Line ``fulfilled_qty`` += ``fulfill_qty``.
            - Batches drawn in issue order; one OUT ledger row per batch
              (reference = request id).
            - Product quantity -= ``fulfill_qty``.
            - Request status ``Pending``; linked order lines filled in line
              order and order status ``Pending``.
        """
        quantity = require_positive_quantity(fulfill_qty, "fulfill_qty")
        staff_id = require_text(staff_id, "staff_id")

        item = self._fresh(RequestItemModel, request_item_id)
        if item is None:
            raise RequestItemNotFoundError(request_item_id)
        product_id = item.product_id
        request_id = item.request_id

        with self._locks.hold([product_id]), \
                LogContext.bind(actor_id=staff_id, request_id=request_id, product_id=product_id), \
                self._unit_of_work("fulfill_item"):
            item = self._fresh(RequestItemModel, request_item_id, lock=True)
            if quantity > item.remaining_qty:
                raise ExceedsRemainingError(request_item_id, quantity, item.remaining_qty)

            request = self._fresh(RequestModel, request_id, lock=True)
            request_status = REQUEST_WORKFLOW.next_state(request_id, request.status, "issue")

            product = self._fresh(Product, product_id, lock=True)
            if product is None:
                raise ProductNotFoundError(product_id)
            if product.quantity < quantity:
                raise InsufficientStockError(product_id, quantity, product.quantity)

            order = None
            order_status = None
            fills: list[tuple[SalesOrderItemModel, int]] = []
            if request.order_id is not None:
                order = self._fresh(SalesOrderModel, request.order_id, lock=True)
                if order is None:
                    raise SalesOrderNotFoundError(request.order_id)
                order_status = SALES_ORDER_WORKFLOW.next_state(order.id, order.status, "issue")
                fills = self._plan_order_fill(order.id, product_id, quantity)

            item.fulfilled_qty = item.fulfilled_qty + quantity

            plan = self._allocator.allocate(product_id, quantity)
            if not plan.is_complete:
                raise InsufficientBatchCoverageError(product_id, quantity, plan.allocated)

            transactions = tuple(
                self._ledger.record(
                    TransactionType.OUT,
                    product_id=product_id,
                    quantity=taken,
                    staff_id=staff_id,
                    batch_id=batch_id,
                    reference_id=request_id,
                    description=f"Fulfill Request ID {request_id}",
                )
                for batch_id, taken in plan.as_pairs()
            )

            product.quantity = product.quantity - quantity
            request.status = request_status

            if order is not None:
                for line, take in fills:
                    line.fulfilled_qty = line.fulfilled_qty + take
                order.status = order_status

            self._session.flush()

            logger.info(
                "request_item_fulfilled",
                extra={
                    "request_item_id": request_item_id,
                    "quantity": quantity,
                    "batches_touched": len(plan.draws),
                    "remaining_qty": item.remaining_qty,
                    "product_quantity_after": product.quantity,
                    "order_id": request.order_id,
                },
            )

            result = FulfillmentResult(
                request_id=request_id,
                request_item_id=request_item_id,
                product_id=product_id,
                quantity=quantity,
                takes=tuple(BatchTake(b, q) for b, q in plan.as_pairs()),
                transactions=transactions,
                request_status=RequestStatus(request.status),
                product_quantity_after=product.quantity,
                order_id=request.order_id,
                order_status=SalesOrderStatus(order_status) if order_status else None,
            )
        return result
