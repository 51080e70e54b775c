"""
Pytest fixtures for the warehouse test suite.

Provides:
- Per-test in-memory SQLite sessions with the full schema
- A deterministic clock and a private product lock registry per test
- Module service fixtures sharing one session
- Factory helpers for products, purchase receipts and approved requests
- Structured log capture
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from warehouse_kernel.db.engine import (
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from warehouse_kernel.domain.clock import DeterministicClock
from warehouse_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from warehouse_kernel.services.product_lock import ProductLockRegistry
from warehouse_modules._orm_registry import create_all_tables
from warehouse_modules.fulfillment.models import RequestLineInput
from warehouse_modules.fulfillment.orders import SalesOrderService
from warehouse_modules.fulfillment.requests import RequestService
from warehouse_modules.fulfillment.service import FulfillmentService
from warehouse_modules.inventory.config import InventoryConfig
from warehouse_modules.inventory.service import InventoryService
from warehouse_modules.purchasing.models import PurchaseLineInput, ReceivedLine
from warehouse_modules.purchasing.service import PurchasingService

TEST_STAFF_ID = "STF-0000TEST"
TEST_APPROVER_ID = "STF-0000BOSS"
TEST_SUPPLIER_ID = "SUP-0001"
TEST_CUSTOMER_ID = "CUS-0001"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture warehouse logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, fulfillment_service):
            fulfillment_service.fulfill_item(...)
            logs = captured_logs()
            assert any(r["message"] == "request_item_fulfilled" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("warehouse")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with every table."""
    eng = init_engine_from_url("sqlite://")
    create_all_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Session:
    s = get_session()
    yield s
    s.rollback()
    s.close()


# =============================================================================
# Clock, config and lock fixtures
# =============================================================================


@pytest.fixture
def clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def inventory_config():
    return InventoryConfig.with_defaults()


@pytest.fixture
def product_locks():
    """A private lock registry so tests never share lock state."""
    return ProductLockRegistry()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def inventory_service(session, clock, inventory_config, product_locks):
    return InventoryService(session, clock, inventory_config, product_locks)


@pytest.fixture
def purchasing_service(session, clock, inventory_config, product_locks):
    return PurchasingService(session, clock, inventory_config, product_locks)


@pytest.fixture
def request_service(session, clock, inventory_config, product_locks):
    return RequestService(session, clock, inventory_config, product_locks)


@pytest.fixture
def order_service(session, clock, inventory_config, product_locks):
    return SalesOrderService(session, clock, inventory_config, product_locks)


@pytest.fixture
def fulfillment_service(session, clock, inventory_config, product_locks):
    return FulfillmentService(session, clock, inventory_config, product_locks)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_product(inventory_service, clock):
    """
    Create a product, optionally with opening stock.

    The clock advances one minute afterwards so that lots created by
    successive calls have distinct received dates.
    """

    def _make(
        name: str = "Widget",
        quantity: int = 0,
        cost: str | None = None,
        sell_price: str = "10.00",
    ):
        product = inventory_service.create_product(
            name=name,
            unit="box",
            sell_price=Decimal(sell_price),
            staff_id=TEST_STAFF_ID,
            initial_quantity=quantity,
            initial_cost=Decimal(cost) if cost is not None else None,
        )
        clock.advance(60)
        return product

    return _make


@pytest.fixture
def receive_stock(purchasing_service, clock):
    """Order and receive ``quantity`` units of a product at ``unit_cost``."""

    def _receive(product_id: str, quantity: int, unit_cost: str):
        po = purchasing_service.create_purchase_order(
            TEST_SUPPLIER_ID, TEST_STAFF_ID, [PurchaseLineInput(product_id, quantity)],
        )
        received = purchasing_service.receive_purchase_order(
            po.po_id,
            [ReceivedLine(po.items[0].po_item_id, quantity, Decimal(unit_cost))],
            TEST_STAFF_ID,
        )
        clock.advance(60)
        return received

    return _receive


@pytest.fixture
def approved_request(request_service):
    """Create and approve a request for ``(product_id, quantity)`` lines."""

    def _make(*lines: tuple[str, int], order_id: str | None = None):
        request = request_service.create_request(
            TEST_STAFF_ID,
            [RequestLineInput(product_id, quantity) for product_id, quantity in lines],
            order_id=order_id,
        )
        return request_service.approve_request(request.request_id, TEST_APPROVER_ID)

    return _make
