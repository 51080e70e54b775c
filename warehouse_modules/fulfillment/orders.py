"""
Sales Order Service (``warehouse_modules.fulfillment.orders``).

Customer order entry and close.  Lines are filled by stock issues against
linked pick requests (see ``FulfillmentService``); an order closes once
every line is filled and every linked request is closed.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select

from warehouse_engines.costing import extended_cost, round_money
from warehouse_kernel.domain.validation import (
    require_positive_quantity,
    require_price,
    require_text,
)
from warehouse_kernel.exceptions import (
    MissingFieldError,
    OpenLinesError,
    OpenRequestsError,
    ProductNotFoundError,
    SalesOrderNotFoundError,
)
from warehouse_kernel.logging_config import LogContext, get_logger
from warehouse_kernel.models.product import Product
from warehouse_modules._service_base import ModuleService
from warehouse_modules.fulfillment.models import (
    OrderLineInput,
    RequestStatus,
    SalesOrderStatus,
    SalesOrderView,
)
from warehouse_modules.fulfillment.orm import (
    RequestModel,
    SalesOrderItemModel,
    SalesOrderModel,
)
from warehouse_modules.fulfillment.workflows import SALES_ORDER_WORKFLOW

logger = get_logger("modules.fulfillment.orders")


class SalesOrderService(ModuleService):
    """
    Customer order entry and close.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def _get(self, order_id: str, lock: bool = False) -> SalesOrderModel:
        order = self._fresh(SalesOrderModel, order_id, lock=lock)
        if order is None:
            raise SalesOrderNotFoundError(order_id)
        return order

    def get_order(self, order_id: str) -> SalesOrderView:
        return self._get(order_id).to_dto()

    def _list(self, *criteria) -> list[SalesOrderView]:
        stmt = (
            select(SalesOrderModel)
            .where(*criteria)
            .order_by(SalesOrderModel.order_date, SalesOrderModel.id)
            .execution_options(populate_existing=True)
        )
        return [o.to_dto() for o in self._session.scalars(stmt)]

    def confirmed_orders(self) -> list[SalesOrderView]:
        return self._list(SalesOrderModel.status == SalesOrderStatus.CONFIRMED.value)

    def ready_to_close(self) -> list[SalesOrderView]:
        """Pending orders whose every line is filled."""
        return self._list(
            SalesOrderModel.status == SalesOrderStatus.PENDING.value,
            ~SalesOrderModel.items.any(SalesOrderItemModel.remaining_qty > 0),
        )

    def create_order(
        self,
        customer_id: str,
        staff_id: str,
        lines: Sequence[OrderLineInput],
    ) -> SalesOrderView:
        """
        Enter a customer order in ``Confirmed`` status.

        Line total = unit price × quantity; header total = Σ line totals.

        Raises:
            MissingFieldError, InvalidQuantityError, InvalidPriceError,
            ProductNotFoundError.
        """
        customer_id = require_text(customer_id, "customer_id")
        staff_id = require_text(staff_id, "staff_id")
        if not lines:
            raise MissingFieldError("lines")

        prepared: list[tuple[str, int, Decimal]] = []
        for line in lines:
            product_id = require_text(line.product_id, "product_id")
            quantity = require_positive_quantity(line.quantity)
            price = round_money(require_price(line.unit_price, "unit_price", Decimal("0")))
            if self._session.get(Product, product_id) is None:
                raise ProductNotFoundError(product_id)
            prepared.append((product_id, quantity, price))

        with LogContext.bind(actor_id=staff_id), self._unit_of_work("create_order"):
            order = SalesOrderModel(
                order_date=self._clock.now(),
                status=SALES_ORDER_WORKFLOW.initial_state,
                customer_id=customer_id,
                created_by_id=staff_id,
            )
            total = Decimal("0")
            for line_no, (product_id, quantity, price) in enumerate(prepared, start=1):
                line_total = extended_cost(price, quantity)
                total += line_total
                order.items.append(SalesOrderItemModel(
                    product_id=product_id,
                    line_no=line_no,
                    quantity=quantity,
                    unit_price=price,
                    line_total=line_total,
                    fulfilled_qty=0,
                ))
            order.total_amount = round_money(total)
            self._session.add(order)
            self._session.flush()

            logger.info(
                "sales_order_created",
                extra={
                    "order_id": order.id,
                    "customer_id": customer_id,
                    "line_count": len(prepared),
                    "total_amount": order.total_amount,
                },
            )
            view = order.to_dto()
        return view

    def close_order(self, order_id: str, staff_id: str) -> SalesOrderView:
        """
        Close an order whose lines are filled and whose requests are closed.

        Raises:
            SalesOrderNotFoundError, MissingFieldError,
            OpenLinesError: Some line still has remaining quantity.
            OpenRequestsError: A linked request is not Closed.
            InvalidStatusTransitionError: The order is not Pending.
        """
        staff_id = require_text(staff_id, "staff_id")
        with LogContext.bind(actor_id=staff_id), self._unit_of_work("close_order"):
            order = self._get(order_id, lock=True)
            lines = self._session.scalars(
                select(SalesOrderItemModel)
                .where(SalesOrderItemModel.order_id == order_id)
                .execution_options(populate_existing=True)
            ).all()
            open_lines = [line.id for line in lines if line.remaining_qty > 0]
            if open_lines:
                raise OpenLinesError("SalesOrder", order_id, open_lines)

            open_requests = list(self._session.scalars(
                select(RequestModel.id).where(
                    RequestModel.order_id == order_id,
                    RequestModel.status != RequestStatus.CLOSED.value,
                )
            ))
            if open_requests:
                raise OpenRequestsError(order_id, open_requests)

            order.status = SALES_ORDER_WORKFLOW.next_state(order_id, order.status, "close")
            order.closed_by_id = staff_id
            self._session.flush()

            logger.info("sales_order_closed", extra={"order_id": order_id})
            return order.to_dto()
