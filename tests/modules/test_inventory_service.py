"""
Tests for product master data, manual stock-in and stock queries.
"""

from decimal import Decimal

import pytest
from sqlalchemy import update

from tests.conftest import TEST_STAFF_ID, TEST_SUPPLIER_ID
from warehouse_kernel.domain.dtos import TransactionType
from warehouse_kernel.exceptions import (
    BatchNotFoundError,
    InvalidPriceError,
    InvalidQuantityError,
    MissingFieldError,
    ProductNotFoundError,
)
from warehouse_kernel.models.product import Product
from warehouse_modules.inventory.service import INITIAL_STOCK_DESCRIPTION


class TestCreateProduct:
    """Product registration with and without opening stock."""

    def test_without_opening_stock(self, inventory_service):
        product = inventory_service.create_product(
            name="Bracket", unit=None, sell_price=Decimal("4.5"), staff_id=TEST_STAFF_ID,
        )

        assert product.quantity == 0
        assert product.cost_price is None
        assert product.sell_price == Decimal("4.50")
        assert product.unit == inventory_service._config.default_unit
        assert product.is_active
        assert inventory_service.batches_for_product(product.product_id) == []
        assert inventory_service.transactions_for_product(product.product_id) == []

    def test_opening_stock_creates_lot_and_ledger_row(self, inventory_service):
        product = inventory_service.create_product(
            name="Hinge",
            unit="pcs",
            sell_price=Decimal("3.00"),
            staff_id=TEST_STAFF_ID,
            supplier_id=TEST_SUPPLIER_ID,
            initial_quantity=12,
            initial_cost=Decimal("1.255"),
        )

        assert product.quantity == 12
        assert product.cost_price == Decimal("1.26")
        assert product.supplier_id == TEST_SUPPLIER_ID

        (batch,) = inventory_service.batches_for_product(product.product_id)
        assert (batch.quantity_in, batch.quantity_remaining) == (12, 12)
        assert batch.unit_cost == Decimal("1.26")
        assert batch.po_id is None

        (txn,) = inventory_service.transactions_for_product(product.product_id)
        assert txn.transaction_type is TransactionType.IN
        assert txn.batch_id == batch.batch_id
        assert txn.description == INITIAL_STOCK_DESCRIPTION
        assert inventory_service.reconcile_product(product.product_id).is_consistent

    def test_opening_stock_needs_a_cost(self, inventory_service):
        with pytest.raises(MissingFieldError):
            inventory_service.create_product(
                name="Nut", unit="pcs", sell_price=Decimal("1"), staff_id=TEST_STAFF_ID,
                initial_quantity=5,
            )
        with pytest.raises(InvalidPriceError):
            inventory_service.create_product(
                name="Nut", unit="pcs", sell_price=Decimal("1"), staff_id=TEST_STAFF_ID,
                initial_quantity=5, initial_cost=Decimal("0"),
            )

    @pytest.mark.parametrize("quantity", [-1, 2.5, True])
    def test_opening_quantity_must_be_whole_and_non_negative(self, inventory_service, quantity):
        with pytest.raises(InvalidQuantityError):
            inventory_service.create_product(
                name="Bolt", unit="pcs", sell_price=Decimal("1"), staff_id=TEST_STAFF_ID,
                initial_quantity=quantity, initial_cost=Decimal("1"),
            )

    def test_required_text(self, inventory_service):
        with pytest.raises(MissingFieldError):
            inventory_service.create_product(
                name="  ", unit="pcs", sell_price=Decimal("1"), staff_id=TEST_STAFF_ID,
            )
        with pytest.raises(InvalidPriceError):
            inventory_service.create_product(
                name="Washer", unit="pcs", sell_price=Decimal("-0.01"), staff_id=TEST_STAFF_ID,
            )


class TestProductAdmin:
    """Descriptive edits and deactivation."""

    def test_update_details_leaves_stock_alone(self, inventory_service, make_product):
        product = make_product(quantity=3, cost="2.00")

        updated = inventory_service.update_product_details(
            product.product_id, name="Widget XL", sell_price=Decimal("12"),
        )

        assert updated.name == "Widget XL"
        assert updated.sell_price == Decimal("12.00")
        assert updated.quantity == 3
        assert updated.cost_price == product.cost_price

    def test_deactivate_hides_from_active_list(self, inventory_service, make_product):
        keep = make_product("Alpha")
        drop = make_product("Beta")

        inventory_service.deactivate_product(drop.product_id)

        assert [p.product_id for p in inventory_service.list_products(active_only=True)] == [
            keep.product_id,
        ]
        assert len(inventory_service.list_products()) == 2

    def test_unknown_product(self, inventory_service):
        with pytest.raises(ProductNotFoundError):
            inventory_service.get_product("PROD-DEADBEEF")
        with pytest.raises(ProductNotFoundError):
            inventory_service.update_product_details("PROD-DEADBEEF", name="x")


class TestStockIn:
    """Manual receipts outside purchase orders."""

    def test_zero_cost_lot_and_counter(self, inventory_service, make_product):
        product = make_product(quantity=2, cost="3.00")

        result = inventory_service.add_stock_in(
            product.product_id, 5, TEST_STAFF_ID, supplier_id=TEST_SUPPLIER_ID, note="Returned",
        )

        assert result.product_quantity_after == 7
        assert result.batch.unit_cost == Decimal("0")
        assert result.batch.quantity_remaining == 5
        assert result.transaction.transaction_type is TransactionType.IN
        assert result.transaction.description == (
            f"Stock-In from Supplier ID {TEST_SUPPLIER_ID}. Note: Returned"
        )
        after = inventory_service.get_product(product.product_id)
        assert after.quantity == 7
        assert after.cost_price == Decimal("3.00")
        assert inventory_service.reconcile_product(product.product_id).is_consistent

    def test_default_note(self, inventory_service, make_product):
        product = make_product()

        result = inventory_service.add_stock_in(product.product_id, 1, TEST_STAFF_ID)

        assert result.transaction.description == (
            f"Stock-In. Note: {inventory_service._config.stock_in_default_note}"
        )

    def test_validation(self, inventory_service, make_product):
        product = make_product()
        with pytest.raises(InvalidQuantityError):
            inventory_service.add_stock_in(product.product_id, 0, TEST_STAFF_ID)
        with pytest.raises(MissingFieldError):
            inventory_service.add_stock_in("", 1, TEST_STAFF_ID)
        with pytest.raises(ProductNotFoundError):
            inventory_service.add_stock_in("PROD-DEADBEEF", 1, TEST_STAFF_ID)


class TestStockQueries:
    """Lot lookups and reconciliation."""

    def test_lot_lookups(self, inventory_service, make_product, receive_stock):
        product = make_product(quantity=1, cost="1.00")
        received = receive_stock(product.product_id, 4, "2.00")

        (po_batch,) = inventory_service.batches_for_purchase_order(received.po_id)
        assert po_batch.quantity_in == 4
        assert inventory_service.get_product_batch(product.product_id, po_batch.batch_id) == po_batch
        assert len(inventory_service.available_batches(product.product_id)) == 2

        other = make_product("Other")
        with pytest.raises(BatchNotFoundError):
            inventory_service.get_product_batch(other.product_id, po_batch.batch_id)
        with pytest.raises(ProductNotFoundError):
            inventory_service.available_batches("PROD-DEADBEEF")

    def test_reconcile_all_flags_drift(self, session, inventory_service, make_product):
        clean = make_product("Clean", quantity=3, cost="1.00")
        drifted = make_product("Drifted", quantity=3, cost="1.00")
        session.execute(
            update(Product).where(Product.id == drifted.product_id).values(quantity=5)
        )
        session.commit()

        results = {r.product_id: r for r in inventory_service.reconcile_all()}

        assert results[clean.product_id].is_consistent
        assert not results[drifted.product_id].is_consistent
        assert results[drifted.product_id].counter_drift == 2
        assert results[drifted.product_id].ledger_balance == 3
