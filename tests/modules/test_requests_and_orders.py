"""
Tests for pick request and customer order lifecycles.

Covers:
- Request creation, approval, rejection and close
- Order-linked request checks against the order's unfilled quantity
- Order close guards (open lines, open requests)
- The list queries that drive the approval and close screens
"""

from decimal import Decimal

import pytest

from tests.conftest import TEST_APPROVER_ID, TEST_CUSTOMER_ID, TEST_STAFF_ID
from warehouse_kernel.exceptions import (
    ExceedsOrderRemainingError,
    InvalidPriceError,
    InvalidStatusTransitionError,
    MissingFieldError,
    OpenLinesError,
    OpenRequestsError,
    ProductNotFoundError,
    ProductNotOnOrderError,
    RequestNotFoundError,
    SalesOrderNotFoundError,
)
from warehouse_modules.fulfillment.models import (
    OrderLineInput,
    RequestLineInput,
    RequestStatus,
    SalesOrderStatus,
)


@pytest.fixture
def stocked(make_product):
    return make_product(quantity=50, cost="2.00")


class TestRequestLifecycle:
    """Awaiting Approval -> Approved -> Pending -> Closed, and Rejected."""

    def test_create_request(self, request_service, stocked):
        request = request_service.create_request(
            TEST_STAFF_ID,
            [RequestLineInput(stocked.product_id, 3), RequestLineInput(stocked.product_id, 2)],
            description="Line-side replenishment",
        )

        assert request.status is RequestStatus.AWAITING_APPROVAL
        assert request.staff_id == TEST_STAFF_ID
        assert request.order_id is None
        assert [(i.quantity, i.fulfilled_qty) for i in request.items] == [(3, 0), (2, 0)]
        assert request.has_open_lines

    def test_create_request_validation(self, request_service, stocked):
        with pytest.raises(MissingFieldError):
            request_service.create_request(TEST_STAFF_ID, [])
        with pytest.raises(MissingFieldError):
            request_service.create_request(" ", [RequestLineInput(stocked.product_id, 1)])
        with pytest.raises(ProductNotFoundError):
            request_service.create_request(TEST_STAFF_ID, [RequestLineInput("PROD-DEADBEEF", 1)])

    def test_approve_records_approver(self, request_service, stocked):
        request = request_service.create_request(
            TEST_STAFF_ID, [RequestLineInput(stocked.product_id, 1)],
        )

        approved = request_service.approve_request(request.request_id, TEST_APPROVER_ID)

        assert approved.status is RequestStatus.APPROVED
        assert approved.approved_by == TEST_APPROVER_ID
        assert approved.approved_date is not None

    def test_rejected_request_is_terminal(self, request_service, fulfillment_service, stocked):
        request = request_service.create_request(
            TEST_STAFF_ID, [RequestLineInput(stocked.product_id, 1)],
        )
        rejected = request_service.reject_request(request.request_id, TEST_APPROVER_ID)

        assert rejected.status is RequestStatus.REJECTED
        with pytest.raises(InvalidStatusTransitionError):
            request_service.approve_request(request.request_id, TEST_APPROVER_ID)
        with pytest.raises(InvalidStatusTransitionError):
            fulfillment_service.fulfill_item(rejected.items[0].request_item_id, 1, TEST_STAFF_ID)

    def test_cannot_approve_twice(self, request_service, approved_request, stocked):
        request = approved_request((stocked.product_id, 1))

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            request_service.approve_request(request.request_id, TEST_APPROVER_ID)

        assert exc_info.value.current_status == RequestStatus.APPROVED.value

    def test_close_requires_every_line_filled(
        self, request_service, fulfillment_service, approved_request, stocked,
    ):
        request = approved_request((stocked.product_id, 2), (stocked.product_id, 1))
        first, second = request.items
        fulfillment_service.fulfill_item(first.request_item_id, 2, TEST_STAFF_ID)

        with pytest.raises(OpenLinesError) as exc_info:
            request_service.close_request(request.request_id, TEST_STAFF_ID)
        assert exc_info.value.open_line_ids == [second.request_item_id]

        fulfillment_service.fulfill_item(second.request_item_id, 1, TEST_STAFF_ID)
        closed = request_service.close_request(request.request_id, TEST_STAFF_ID)

        assert closed.status is RequestStatus.CLOSED
        assert closed.closed_by == TEST_STAFF_ID
        assert not closed.has_open_lines

    def test_approved_request_without_issues_cannot_close(
        self, request_service, approved_request, stocked,
    ):
        request = approved_request((stocked.product_id, 1))

        with pytest.raises(OpenLinesError):
            request_service.close_request(request.request_id, TEST_STAFF_ID)

    def test_unknown_request(self, request_service):
        with pytest.raises(RequestNotFoundError):
            request_service.approve_request("REQ-DEADBEEF", TEST_APPROVER_ID)
        with pytest.raises(RequestNotFoundError):
            request_service.get_request("REQ-DEADBEEF")


class TestRequestQueries:
    """Approval queue, issue queue and close queue."""

    def test_queues_track_status_and_remaining(
        self, request_service, fulfillment_service, approved_request, stocked,
    ):
        waiting = request_service.create_request(
            TEST_STAFF_ID, [RequestLineInput(stocked.product_id, 1)],
        )
        open_request = approved_request((stocked.product_id, 4))
        done = approved_request((stocked.product_id, 1))
        fulfillment_service.fulfill_item(open_request.items[0].request_item_id, 1, TEST_STAFF_ID)
        fulfillment_service.fulfill_item(done.items[0].request_item_id, 1, TEST_STAFF_ID)

        assert [r.request_id for r in request_service.pending_approval()] == [waiting.request_id]
        assert {r.request_id for r in request_service.approved_requests()} == {
            open_request.request_id,
        }
        assert [r.request_id for r in request_service.ready_to_close()] == [done.request_id]


class TestSalesOrders:
    """Order entry, linked requests and close."""

    def test_create_order_totals(self, order_service, stocked, make_product):
        other = make_product("Gadget")

        order = order_service.create_order(
            TEST_CUSTOMER_ID,
            TEST_STAFF_ID,
            [
                OrderLineInput(stocked.product_id, 3, Decimal("2.50")),
                OrderLineInput(other.product_id, 2, Decimal("1.125")),
            ],
        )

        assert order.status is SalesOrderStatus.CONFIRMED
        assert [i.line_total for i in order.items] == [Decimal("7.50"), Decimal("2.26")]
        assert order.total_amount == Decimal("9.76")
        assert [o.order_id for o in order_service.confirmed_orders()] == [order.order_id]

    def test_create_order_validation(self, order_service, stocked):
        with pytest.raises(MissingFieldError):
            order_service.create_order(TEST_CUSTOMER_ID, TEST_STAFF_ID, [])
        with pytest.raises(InvalidPriceError):
            order_service.create_order(
                TEST_CUSTOMER_ID, TEST_STAFF_ID,
                [OrderLineInput(stocked.product_id, 1, Decimal("-1"))],
            )
        with pytest.raises(ProductNotFoundError):
            order_service.create_order(
                TEST_CUSTOMER_ID, TEST_STAFF_ID,
                [OrderLineInput("PROD-DEADBEEF", 1, Decimal("1"))],
            )

    def test_linked_request_inherits_customer(self, order_service, request_service, stocked):
        order = order_service.create_order(
            TEST_CUSTOMER_ID, TEST_STAFF_ID, [OrderLineInput(stocked.product_id, 5, Decimal("1"))],
        )

        request = request_service.create_request(
            TEST_STAFF_ID, [RequestLineInput(stocked.product_id, 5)], order_id=order.order_id,
        )

        assert request.order_id == order.order_id
        assert request.customer_id == TEST_CUSTOMER_ID
        assert [r.request_id for r in request_service.requests_for_order(order.order_id)] == [
            request.request_id,
        ]

    def test_linked_request_must_fit_the_order(
        self, order_service, request_service, stocked, make_product,
    ):
        other = make_product("Unordered")
        order = order_service.create_order(
            TEST_CUSTOMER_ID,
            TEST_STAFF_ID,
            [
                OrderLineInput(stocked.product_id, 2, Decimal("1")),
                OrderLineInput(stocked.product_id, 1, Decimal("1")),
            ],
        )

        with pytest.raises(ProductNotOnOrderError):
            request_service.create_request(
                TEST_STAFF_ID, [RequestLineInput(other.product_id, 1)], order_id=order.order_id,
            )
        with pytest.raises(ExceedsOrderRemainingError) as exc_info:
            request_service.create_request(
                TEST_STAFF_ID,
                [RequestLineInput(stocked.product_id, 2), RequestLineInput(stocked.product_id, 2)],
                order_id=order.order_id,
            )
        assert exc_info.value.remaining == 3
        with pytest.raises(SalesOrderNotFoundError):
            request_service.create_request(
                TEST_STAFF_ID, [RequestLineInput(stocked.product_id, 1)], order_id="ORD-DEADBEEF",
            )

    def test_close_order_after_requests_close(
        self, order_service, request_service, fulfillment_service, approved_request, stocked,
    ):
        order = order_service.create_order(
            TEST_CUSTOMER_ID, TEST_STAFF_ID, [OrderLineInput(stocked.product_id, 3, Decimal("4"))],
        )
        request = approved_request((stocked.product_id, 3), order_id=order.order_id)

        with pytest.raises(OpenLinesError):
            order_service.close_order(order.order_id, TEST_STAFF_ID)

        fulfillment_service.fulfill_item(request.items[0].request_item_id, 3, TEST_STAFF_ID)
        assert [o.order_id for o in order_service.ready_to_close()] == [order.order_id]

        with pytest.raises(OpenRequestsError) as exc_info:
            order_service.close_order(order.order_id, TEST_STAFF_ID)
        assert exc_info.value.open_request_ids == [request.request_id]

        request_service.close_request(request.request_id, TEST_STAFF_ID)
        closed = order_service.close_order(order.order_id, TEST_STAFF_ID)

        assert closed.status is SalesOrderStatus.CLOSED
        assert closed.closed_by == TEST_STAFF_ID
        assert order_service.ready_to_close() == []

    def test_unfilled_confirmed_order_cannot_close(self, order_service, stocked):
        order = order_service.create_order(
            TEST_CUSTOMER_ID, TEST_STAFF_ID, [OrderLineInput(stocked.product_id, 1, Decimal("1"))],
        )

        with pytest.raises(OpenLinesError):
            order_service.close_order(order.order_id, TEST_STAFF_ID)
        with pytest.raises(SalesOrderNotFoundError):
            order_service.close_order("ORD-DEADBEEF", TEST_STAFF_ID)
