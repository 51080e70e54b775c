"""
Pick Request Service (``warehouse_modules.fulfillment.requests``).

Responsibility
--------------
Pick request lifecycle around the stock issue itself: creation (optionally
against a customer order), approval or rejection, close, and the work-queue
queries a warehouse floor needs.

Invariants
----------
- A request linked to an order only asks for products on that order, and
  never more per product than the order still has unfilled.
- A request closes only when every line is fully fulfilled.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import select

from warehouse_kernel.domain.validation import require_positive_quantity, require_text
from warehouse_kernel.exceptions import (
    ExceedsOrderRemainingError,
    MissingFieldError,
    OpenLinesError,
    ProductNotFoundError,
    ProductNotOnOrderError,
    RequestNotFoundError,
    SalesOrderNotFoundError,
)
from warehouse_kernel.logging_config import LogContext, get_logger
from warehouse_kernel.models.product import Product
from warehouse_modules._service_base import ModuleService
from warehouse_modules.fulfillment.models import RequestLineInput, RequestStatus, RequestView
from warehouse_modules.fulfillment.orm import RequestItemModel, RequestModel, SalesOrderModel
from warehouse_modules.fulfillment.workflows import REQUEST_WORKFLOW

logger = get_logger("modules.fulfillment.requests")


class RequestService(ModuleService):
    """
    Pick request creation, approval and close.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    # =========================================================================
    # Queries
    # =========================================================================

    def _get(self, request_id: str, lock: bool = False) -> RequestModel:
        request = self._fresh(RequestModel, request_id, lock=lock)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def get_request(self, request_id: str) -> RequestView:
        return self._get(request_id).to_dto()

    def _items(self, request_id: str) -> list[RequestItemModel]:
        stmt = (
            select(RequestItemModel)
            .where(RequestItemModel.request_id == request_id)
            .order_by(RequestItemModel.line_no)
            .execution_options(populate_existing=True)
        )
        return list(self._session.scalars(stmt))

    def _list(self, *criteria) -> list[RequestView]:
        stmt = (
            select(RequestModel)
            .where(*criteria)
            .order_by(RequestModel.request_date, RequestModel.id)
            .execution_options(populate_existing=True)
        )
        return [r.to_dto() for r in self._session.scalars(stmt)]

    def pending_approval(self) -> list[RequestView]:
        return self._list(RequestModel.status == RequestStatus.AWAITING_APPROVAL.value)

    def approved_requests(self) -> list[RequestView]:
        """Requests stock may be issued against that still have an open line."""
        return self._list(
            RequestModel.status.in_(
                (RequestStatus.APPROVED.value, RequestStatus.PENDING.value)
            ),
            RequestModel.items.any(RequestItemModel.remaining_qty > 0),
        )

    def ready_to_close(self) -> list[RequestView]:
        return self._list(
            RequestModel.status == RequestStatus.PENDING.value,
            ~RequestModel.items.any(RequestItemModel.remaining_qty > 0),
        )

    def requests_for_order(self, order_id: str) -> list[RequestView]:
        return self._list(RequestModel.order_id == order_id)

    # =========================================================================
    # Commands
    # =========================================================================

    def create_request(
        self,
        staff_id: str,
        lines: Sequence[RequestLineInput],
        order_id: str | None = None,
        customer_id: str | None = None,
        description: str | None = None,
    ) -> RequestView:
        """
        Raise a pick request in ``Awaiting Approval`` status.

        Preconditions:
            - ``staff_id`` non-blank; at least one line; quantities > 0;
              every product exists.
            - With ``order_id``: the order exists, every product is on it,
              and the summed quantity per product does not exceed the
              order's unfilled quantity for that product.

        Raises:
            MissingFieldError, InvalidQuantityError, ProductNotFoundError,
            SalesOrderNotFoundError, ProductNotOnOrderError,
            ExceedsOrderRemainingError.
        """
        staff_id = require_text(staff_id, "staff_id")
        if not lines:
            raise MissingFieldError("lines")

        prepared: list[tuple[str, int]] = []
        requested: dict[str, int] = defaultdict(int)
        for line in lines:
            product_id = require_text(line.product_id, "product_id")
            quantity = require_positive_quantity(line.quantity)
            if self._session.get(Product, product_id) is None:
                raise ProductNotFoundError(product_id)
            prepared.append((product_id, quantity))
            requested[product_id] += quantity

        if order_id is not None:
            order = self._fresh(SalesOrderModel, order_id)
            if order is None:
                raise SalesOrderNotFoundError(order_id)
            view = order.to_dto()
            ordered_products = {i.product_id for i in view.items}
            for product_id, quantity in requested.items():
                if product_id not in ordered_products:
                    raise ProductNotOnOrderError(order_id, product_id)
                remaining = view.remaining_for(product_id)
                if quantity > remaining:
                    raise ExceedsOrderRemainingError(order_id, product_id, quantity, remaining)
            if customer_id is None:
                customer_id = view.customer_id

        with LogContext.bind(actor_id=staff_id), self._unit_of_work("create_request"):
            request = RequestModel(
                request_date=self._clock.now(),
                status=REQUEST_WORKFLOW.initial_state,
                order_id=order_id,
                customer_id=customer_id,
                description=description,
                created_by_id=staff_id,
            )
            for line_no, (product_id, quantity) in enumerate(prepared, start=1):
                request.items.append(RequestItemModel(
                    product_id=product_id,
                    line_no=line_no,
                    quantity=quantity,
                    fulfilled_qty=0,
                ))
            self._session.add(request)
            self._session.flush()

            logger.info(
                "request_created",
                extra={
                    "request_id": request.id,
                    "order_id": order_id,
                    "line_count": len(prepared),
                },
            )
            view = request.to_dto()
        return view

    def _decide(self, request_id: str, approver_id: str, action: str, event: str) -> RequestView:
        approver_id = require_text(approver_id, "approver_id")
        with LogContext.bind(actor_id=approver_id, request_id=request_id), \
                self._unit_of_work(f"{action}_request"):
            request = self._get(request_id, lock=True)
            request.status = REQUEST_WORKFLOW.next_state(request_id, request.status, action)
            request.approved_by_id = approver_id
            request.approved_date = self._clock.now()
            self._session.flush()

            logger.info(
                event,
                extra={"request_id": request_id, "status": request.status},
            )
            return request.to_dto()

    def approve_request(self, request_id: str, approver_id: str) -> RequestView:
        return self._decide(request_id, approver_id, "approve", "request_approved")

    def reject_request(self, request_id: str, approver_id: str) -> RequestView:
        return self._decide(request_id, approver_id, "reject", "request_rejected")

    def close_request(self, request_id: str, staff_id: str) -> RequestView:
        """
        Close a fully fulfilled request.

        Raises:
            RequestNotFoundError, MissingFieldError,
            OpenLinesError: Some line still has remaining quantity.
            InvalidStatusTransitionError: The request is not Pending.
        """
        staff_id = require_text(staff_id, "staff_id")
        with LogContext.bind(actor_id=staff_id, request_id=request_id), \
                self._unit_of_work("close_request"):
            request = self._get(request_id, lock=True)
            open_lines = [i.id for i in self._items(request_id) if i.remaining_qty > 0]
            if open_lines:
                raise OpenLinesError("Request", request_id, open_lines)
            request.status = REQUEST_WORKFLOW.next_state(request_id, request.status, "close")
            request.closed_by_id = staff_id
            self._session.flush()

            logger.info("request_closed", extra={"request_id": request_id})
            return request.to_dto()
