"""
Parallel stock mutations against a file-backed SQLite database.

Each worker thread owns its session; all workers share one product lock
registry, as services in one process do.  A barrier releases the workers
together so their read-plan-write steps overlap as much as possible.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest

from tests.conftest import TEST_APPROVER_ID, TEST_STAFF_ID, TEST_SUPPLIER_ID
from warehouse_kernel.db.engine import (
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from warehouse_kernel.domain.dtos import TransactionType
from warehouse_kernel.exceptions import InsufficientStockError
from warehouse_kernel.services.product_lock import ProductLockRegistry
from warehouse_modules._orm_registry import create_all_tables
from warehouse_modules.fulfillment.models import RequestLineInput
from warehouse_modules.fulfillment.requests import RequestService
from warehouse_modules.fulfillment.service import FulfillmentService
from warehouse_modules.inventory.service import InventoryService
from warehouse_modules.purchasing.models import PurchaseLineInput, ReceivedLine
from warehouse_modules.purchasing.service import PurchasingService

pytestmark = pytest.mark.concurrency

WORKERS = 20


@pytest.fixture
def session_factory(tmp_path):
    init_engine_from_url(f"sqlite:///{tmp_path / 'warehouse.db'}")
    create_all_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def locks():
    return ProductLockRegistry()


def _run_together(count, work):
    """Run ``work(i)`` on ``count`` threads released by one barrier."""
    barrier = Barrier(count)

    def _worker(i):
        barrier.wait()
        return work(i)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return [f.result() for f in [pool.submit(_worker, i) for i in range(count)]]


class TestParallelIssue:
    """Many issues racing for fewer units than they ask for."""

    def test_no_oversell(self, session_factory, locks):
        setup = session_factory()
        inventory = InventoryService(setup, locks=locks)
        product = inventory.create_product(
            name="Contended",
            unit="pcs",
            sell_price=Decimal("1.00"),
            staff_id=TEST_STAFF_ID,
            initial_quantity=10,
            initial_cost=Decimal("2.00"),
        )
        requests = RequestService(setup, locks=locks)
        request = requests.create_request(
            TEST_STAFF_ID, [RequestLineInput(product.product_id, 1) for _ in range(WORKERS)],
        )
        requests.approve_request(request.request_id, TEST_APPROVER_ID)
        item_ids = [i.request_item_id for i in request.items]
        setup.close()

        def _fulfill(i):
            session = session_factory()
            try:
                FulfillmentService(session, locks=locks).fulfill_item(
                    item_ids[i], 1, TEST_STAFF_ID,
                )
                return "issued"
            except InsufficientStockError:
                return "short"
            finally:
                session.close()

        outcomes = _run_together(WORKERS, _fulfill)

        assert outcomes.count("issued") == 10
        assert outcomes.count("short") == WORKERS - 10

        check = session_factory()
        try:
            inventory = InventoryService(check, locks=locks)
            assert inventory.get_product(product.product_id).quantity == 0
            assert inventory.available_batches(product.product_id) == []
            outs = [
                t for t in inventory.transactions_for_reference(request.request_id)
                if t.transaction_type is TransactionType.OUT
            ]
            assert sum(t.quantity for t in outs) == 10
            assert inventory.reconcile_product(product.product_id).is_consistent
        finally:
            check.close()


class TestParallelReceipts:
    """Receipts touching the same products in opposite line order."""

    def test_opposite_line_order_does_not_deadlock(self, session_factory, locks):
        setup = session_factory()
        inventory = InventoryService(setup, locks=locks)
        first = inventory.create_product(
            name="First", unit="pcs", sell_price=Decimal("1"), staff_id=TEST_STAFF_ID,
        )
        second = inventory.create_product(
            name="Second", unit="pcs", sell_price=Decimal("1"), staff_id=TEST_STAFF_ID,
        )
        purchasing = PurchasingService(setup, locks=locks)
        orders = []
        for i in range(6):
            pair = [first.product_id, second.product_id]
            if i % 2:
                pair.reverse()
            orders.append(purchasing.create_purchase_order(
                TEST_SUPPLIER_ID, TEST_STAFF_ID, [PurchaseLineInput(p, 2) for p in pair],
            ))
        setup.close()

        def _receive(i):
            session = session_factory()
            try:
                po = orders[i]
                PurchasingService(session, locks=locks).receive_purchase_order(
                    po.po_id,
                    [ReceivedLine(item.po_item_id, 2, Decimal("3.00")) for item in po.items],
                    TEST_STAFF_ID,
                )
            finally:
                session.close()

        _run_together(len(orders), _receive)

        check = session_factory()
        try:
            inventory = InventoryService(check, locks=locks)
            for product in (first, second):
                assert inventory.get_product(product.product_id).quantity == 12
                assert inventory.get_product(product.product_id).cost_price == Decimal("3.00")
                assert inventory.reconcile_product(product.product_id).is_consistent
        finally:
            check.close()
