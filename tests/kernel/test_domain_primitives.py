"""
Tests for kernel domain primitives.

Covers:
- Workflow transition tables
- Prefixed identifiers
- Shared input validation
- Per-product lock registry
"""

import dataclasses
import threading
import time
from decimal import Decimal

import pytest

from warehouse_kernel.domain import identifiers
from warehouse_kernel.domain.validation import (
    require_positive_quantity,
    require_price,
    require_text,
)
from warehouse_kernel.domain.workflow import Transition, Workflow
from warehouse_kernel.exceptions import (
    InvalidPriceError,
    InvalidQuantityError,
    InvalidStatusTransitionError,
    MissingFieldError,
)
from warehouse_kernel.services.product_lock import ProductLockRegistry
from warehouse_modules.fulfillment.workflows import REQUEST_WORKFLOW, SALES_ORDER_WORKFLOW
from warehouse_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW


class TestWorkflow:

    def test_next_state(self):
        assert PURCHASE_ORDER_WORKFLOW.next_state("PO-1", "New order", "price") == "Pending"
        assert PURCHASE_ORDER_WORKFLOW.next_state("PO-1", "Pending", "receive") == "Received"

    def test_terminal_states_have_no_exits(self):
        for workflow in (PURCHASE_ORDER_WORKFLOW, REQUEST_WORKFLOW, SALES_ORDER_WORKFLOW):
            for state in workflow.terminal_states:
                assert not [t for t in workflow.transitions if t.from_state == state]

    def test_illegal_action_raises(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            REQUEST_WORKFLOW.next_state("REQ-1", "Awaiting Approval", "issue")

        err = exc_info.value
        assert err.workflow == "request"
        assert err.current_status == "Awaiting Approval"
        assert err.action == "issue"
        assert err.category == "conflict"

    @pytest.mark.parametrize("status", ["Approved", "Pending"])
    def test_request_issuable_states(self, status):
        assert REQUEST_WORKFLOW.allows(status, "issue")

    @pytest.mark.parametrize("status", ["Awaiting Approval", "Rejected", "Closed"])
    def test_request_not_issuable_states(self, status):
        assert not REQUEST_WORKFLOW.allows(status, "issue")

    def test_transitions_carry_only_state_edges(self):
        assert [f.name for f in dataclasses.fields(Transition)] == ["from_state", "to_state", "action"]

    def test_close_without_settled_lines_is_table_legal(self):
        # Line-level close checks live in the services, not the table.
        assert REQUEST_WORKFLOW.next_state("REQ-1", "Pending", "close") == "Closed"
        assert SALES_ORDER_WORKFLOW.next_state("ORD-1", "Pending", "close") == "Closed"

    def test_duplicate_transition_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                name="bad",
                description="",
                initial_state="a",
                states=("a", "b"),
                transitions=(Transition("a", "b", "go"), Transition("a", "a", "go")),
            )

    def test_unknown_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                name="bad",
                description="",
                initial_state="a",
                states=("a",),
                transitions=(Transition("a", "z", "go"),),
            )


class TestIdentifiers:

    def test_format(self):
        ident = identifiers.new_identifier(identifiers.REQUEST)

        prefix, token = ident.split("-")
        assert prefix == "REQ"
        assert len(token) == 8
        assert token == token.upper()
        int(token, 16)
        assert identifiers.has_prefix(ident, identifiers.REQUEST)
        assert not identifiers.has_prefix(ident, identifiers.PRODUCT)

    def test_unknown_prefix(self):
        with pytest.raises(ValueError):
            identifiers.new_identifier("NOPE")


class TestValidation:

    def test_require_text_strips(self):
        assert require_text("  STF-1 ", "staff_id") == "STF-1"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_text_blank(self, value):
        with pytest.raises(MissingFieldError) as exc_info:
            require_text(value, "staff_id")
        assert exc_info.value.field_name == "staff_id"

    @pytest.mark.parametrize("value", [0, -1])
    def test_quantity_not_positive(self, value):
        with pytest.raises(InvalidQuantityError):
            require_positive_quantity(value)

    @pytest.mark.parametrize("value", [1.5, "3", True])
    def test_quantity_not_whole_number(self, value):
        with pytest.raises(InvalidQuantityError):
            require_positive_quantity(value)

    def test_quantity_missing(self):
        with pytest.raises(MissingFieldError):
            require_positive_quantity(None)

    def test_price_below_minimum(self):
        with pytest.raises(InvalidPriceError) as exc_info:
            require_price(Decimal("0.00"), "unit_price", Decimal("0.01"))
        assert exc_info.value.minimum == Decimal("0.01")

    def test_price_below_minimum_without_setting(self):
        with pytest.raises(InvalidPriceError) as exc_info:
            require_price(Decimal("-1"), "sell_price", Decimal("0"))
        assert exc_info.value.setting is None
        assert str(exc_info.value) == "sell_price must be at least 0, got -1"

    def test_price_below_configured_floor(self):
        with pytest.raises(InvalidPriceError) as exc_info:
            require_price(Decimal("0.005"), "unit_price", Decimal("0.01"), "inventory.min_unit_price")
        assert str(exc_info.value) == (
            "unit_price must be at least 0.01 (configured floor inventory.min_unit_price), got 0.005"
        )

    def test_price_not_numeric(self):
        with pytest.raises(InvalidPriceError):
            require_price("abc", "unit_price", Decimal("0.01"))

    def test_price_accepts_strings(self):
        assert require_price("4.50", "unit_price", Decimal("0.01")) == Decimal("4.50")


class TestProductLockRegistry:

    def test_locks_created_lazily_and_deduplicated(self):
        registry = ProductLockRegistry()

        with registry.hold(["PROD-B", "PROD-A", "PROD-B"]) as held:
            assert held == ("PROD-A", "PROD-B")
        assert len(registry) == 2

    def test_reentrant_for_same_thread(self):
        registry = ProductLockRegistry()

        with registry.hold(["PROD-A"]):
            with registry.hold(["PROD-A"]):
                pass

    def test_second_thread_waits(self):
        registry = ProductLockRegistry()
        events: list[str] = []
        entered = threading.Event()

        def contender():
            with registry.hold(["PROD-A"]):
                events.append("contender")

        with registry.hold(["PROD-A"]):
            worker = threading.Thread(target=lambda: (entered.set(), contender()))
            worker.start()
            entered.wait()
            time.sleep(0.05)
            events.append("holder")
        worker.join(timeout=5)

        assert events == ["holder", "contender"]
