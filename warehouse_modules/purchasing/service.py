"""
Purchasing Module Service (``warehouse_modules.purchasing.service``).

Responsibility
--------------
Vendor purchase order lifecycle: creation, supplier pricing (or rejection),
and receiving.  Receiving turns each delivered line into a new inventory
lot, re-averages the product's unit cost through the costing engine, and
appends an IN row to the stock ledger.

Architecture
------------
Layer: **Modules** -- orchestration that owns the transaction boundary.

1. ``PURCHASE_ORDER_WORKFLOW`` decides whether pricing / rejection /
   receiving is legal from the current status.
2. ``recompute_average_cost`` (engine) computes each product's new cost.
3. ``BatchStore`` and ``StockLedger`` (kernel, flush-only) persist the lot
   and the audit row.

Invariants
----------
- Every input line is validated (line belongs to the order, price,
  quantity, product) before the first write; a bad line leaves no trace.
- A receipt commits or rolls back as a whole: product cost and quantity,
  batches, ledger rows, line values and header status move together.
- Product locks for every product on the receipt are held, in sorted
  order, until commit.

Failure Modes
-------------
- PurchaseOrderNotFoundError / PurchaseItemNotFoundError / ProductNotFoundError.
- MissingFieldError / InvalidQuantityError / InvalidPriceError.
- InvalidStatusTransitionError when the order is already received/rejected.
- ReadBackError when the received order cannot be re-read.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select

from warehouse_engines.costing import extended_cost, recompute_average_cost, round_money
from warehouse_kernel.domain.dtos import TransactionType
from warehouse_kernel.domain.validation import (
    require_positive_quantity,
    require_price,
    require_text,
)
from warehouse_kernel.exceptions import (
    MissingFieldError,
    ProductNotFoundError,
    PurchaseItemNotFoundError,
    PurchaseOrderNotFoundError,
    ReadBackError,
)
from warehouse_kernel.logging_config import LogContext, get_logger
from warehouse_kernel.models.product import Product
from warehouse_kernel.services.batch_store import BatchStore
from warehouse_kernel.services.stock_ledger import StockLedger
from warehouse_modules._service_base import ModuleService
from warehouse_modules.inventory.config import MIN_UNIT_PRICE_SETTING
from warehouse_modules.purchasing.models import (
    PricedLine,
    PurchaseLineInput,
    PurchaseOrderStatus,
    PurchaseOrderView,
    ReceivedLine,
)
from warehouse_modules.purchasing.orm import PurchaseItemModel, PurchaseOrderModel
from warehouse_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

logger = get_logger("modules.purchasing.service")


class PurchasingService(ModuleService):
    """
    Orchestrates purchase order pricing and receiving.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(self, session, clock=None, config=None, locks=None):
        super().__init__(session, clock, config, locks)
        self._batches = BatchStore(session, self._clock, self._config.issue_policy)
        self._ledger = StockLedger(session, self._clock)

    # =========================================================================
    # Queries
    # =========================================================================

    def _get_order(self, po_id: str, lock: bool = False) -> PurchaseOrderModel:
        order = self._fresh(PurchaseOrderModel, po_id, lock=lock)
        if order is None:
            raise PurchaseOrderNotFoundError(po_id)
        return order

    def get_purchase_order(self, po_id: str) -> PurchaseOrderView:
        return self._get_order(po_id).to_dto()

    def list_purchase_orders(
        self, status: PurchaseOrderStatus | None = None,
    ) -> list[PurchaseOrderView]:
        stmt = select(PurchaseOrderModel).order_by(
            PurchaseOrderModel.po_date.desc(), PurchaseOrderModel.id,
        )
        if status is not None:
            stmt = stmt.where(PurchaseOrderModel.status == PurchaseOrderStatus(status).value)
        return [po.to_dto() for po in self._session.scalars(stmt)]

    # =========================================================================
    # Creation
    # =========================================================================

    def create_purchase_order(
        self,
        supplier_id: str,
        staff_id: str,
        lines: Sequence[PurchaseLineInput],
    ) -> PurchaseOrderView:
        """
        Open a new purchase order in ``New order`` status.

        Preconditions:
            - Supplier and staff ids non-blank; at least one line.
            - Every line names an existing product with quantity > 0; a
              unit price, if given, is >= the configured minimum.

        Postconditions:
            - Header and lines persisted; total = Σ price × quantity over the
              lines that already carry a price.
        """
        supplier_id = require_text(supplier_id, "supplier_id")
        staff_id = require_text(staff_id, "staff_id")
        if not lines:
            raise MissingFieldError("lines")

        prepared: list[tuple[str, int, Decimal | None]] = []
        for line in lines:
            product_id = require_text(line.product_id, "product_id")
            quantity = require_positive_quantity(line.quantity)
            price = None
            if line.unit_price is not None:
                price = round_money(
                    require_price(
                        line.unit_price, "unit_price",
                        self._config.min_unit_price, MIN_UNIT_PRICE_SETTING,
                    )
                )
            if self._session.get(Product, product_id) is None:
                raise ProductNotFoundError(product_id)
            prepared.append((product_id, quantity, price))

        with LogContext.bind(actor_id=staff_id), self._unit_of_work("create_purchase_order"):
            order = PurchaseOrderModel(
                supplier_id=supplier_id,
                created_by_id=staff_id,
                po_date=self._clock.now(),
                status=PURCHASE_ORDER_WORKFLOW.initial_state,
                total_amount=round_money(sum(
                    (extended_cost(p, q) for _, q, p in prepared if p is not None),
                    Decimal("0"),
                )),
            )
            for line_no, (product_id, quantity, price) in enumerate(prepared, start=1):
                order.items.append(PurchaseItemModel(
                    product_id=product_id,
                    line_no=line_no,
                    quantity=quantity,
                    unit_price=price,
                ))
            self._session.add(order)
            self._session.flush()

            logger.info(
                "purchase_order_created",
                extra={
                    "po_id": order.id,
                    "supplier_id": supplier_id,
                    "line_count": len(prepared),
                },
            )
            view = order.to_dto()
        return view

    # =========================================================================
    # Pricing
    # =========================================================================

    def update_pricing(
        self,
        po_id: str,
        lines: Sequence[PricedLine],
        staff_id: str | None = None,
        reject: bool = False,
    ) -> PurchaseOrderView:
        """
        Apply supplier prices to an open order, or reject it.

        Preconditions:
            - The order exists and is open (``New order`` or ``Pending``).
            - Unless rejecting: at least one line; every price present and
              >= the configured minimum; every line on this order.

        Postconditions:
            - Rejected: status ``Rejected`` (terminal).
            - Otherwise: each submitted line's unit price set; total =
              Σ(unit price × originally-ordered quantity) over the
              submitted lines; status ``Pending``.

        Raises:
            PurchaseOrderNotFoundError, PurchaseItemNotFoundError,
            MissingFieldError, InvalidPriceError, InvalidStatusTransitionError.
        """
        with LogContext.bind(actor_id=staff_id, purchase_order_id=po_id), \
                self._unit_of_work("update_pricing"):
            order = self._get_order(po_id, lock=True)

            if reject:
                order.status = PURCHASE_ORDER_WORKFLOW.next_state(po_id, order.status, "reject")
                self._session.flush()
                logger.info("purchase_order_rejected", extra={"po_id": po_id})
                return order.to_dto()

            if not lines:
                raise MissingFieldError("lines")

            items_by_id = {item.id: item for item in order.items}
            priced: list[tuple[PurchaseItemModel, Decimal]] = []
            for line in lines:
                price = require_price(
                    line.unit_price, "unit_price",
                    self._config.min_unit_price, MIN_UNIT_PRICE_SETTING,
                )
                item = items_by_id.get(line.po_item_id)
                if item is None:
                    raise PurchaseItemNotFoundError(line.po_item_id, po_id)
                priced.append((item, round_money(price)))

            new_status = PURCHASE_ORDER_WORKFLOW.next_state(po_id, order.status, "price")

            total = Decimal("0")
            for item, price in priced:
                item.unit_price = price
                total += extended_cost(price, item.quantity)

            order.total_amount = round_money(total)
            order.status = new_status
            self._session.flush()

            logger.info(
                "purchase_order_priced",
                extra={
                    "po_id": po_id,
                    "priced_lines": len(priced),
                    "total_amount": order.total_amount,
                },
            )
            return order.to_dto()

    # =========================================================================
    # Receiving
    # =========================================================================

    def receive_purchase_order(
        self,
        po_id: str,
        lines: Sequence[ReceivedLine],
        staff_id: str,
    ) -> PurchaseOrderView:
        """
        Receive delivered goods against a purchase order.

        Preconditions:
            - The order exists and is open; ``staff_id`` non-blank; at least
              one line.
            - Every line belongs to this order, has quantity > 0 and a unit
              cost >= the configured minimum, and its product exists.

        Postconditions (per line, in submission order):
            - Product cost = weighted average of old stock and this line.
            - Product quantity += received quantity.
            - New batch (quantity_in = remaining = received, cost = unit
              cost, linked to this order).
            - One IN ledger row referencing the batch and the order.
            - Line quantity/unit price overwritten with the received values.
        Postconditions (header):
            - Status ``Received``; total = Σ(unit cost × quantity).

        Raises:
            PurchaseOrderNotFoundError, PurchaseItemNotFoundError,
            ProductNotFoundError, MissingFieldError, InvalidQuantityError,
            InvalidPriceError, InvalidStatusTransitionError, ReadBackError.
        """
        order = self._get_order(po_id)
        staff_id = require_text(staff_id, "staff_id")
        if not lines:
            raise MissingFieldError("lines")

        product_ids = {item.product_id for item in order.items}
        with self._locks.hold(product_ids), \
                LogContext.bind(actor_id=staff_id, purchase_order_id=po_id), \
                self._unit_of_work("receive_purchase_order"):
            order = self._get_order(po_id, lock=True)
            new_status = PURCHASE_ORDER_WORKFLOW.next_state(po_id, order.status, "receive")

            items_by_id = {item.id: item for item in order.items}
            receipts: list[tuple[PurchaseItemModel, Product, int, Decimal]] = []
            for line in lines:
                item = items_by_id.get(line.po_item_id)
                if item is None:
                    raise PurchaseItemNotFoundError(line.po_item_id, po_id)
                unit_cost = round_money(
                    require_price(
                        line.unit_price, "unit_price",
                        self._config.min_unit_price, MIN_UNIT_PRICE_SETTING,
                    )
                )
                quantity = require_positive_quantity(line.quantity)
                product = self._fresh(Product, item.product_id)
                if product is None:
                    raise ProductNotFoundError(item.product_id)
                receipts.append((item, product, quantity, unit_cost))

            total = Decimal("0")
            for item, product, quantity, unit_cost in receipts:
                old_cost = product.cost_price
                new_cost = recompute_average_cost(
                    product.quantity, old_cost, quantity, unit_cost,
                )
                product.cost_price = new_cost
                product.quantity = product.quantity + quantity

                batch = self._batches.create_batch(
                    product_id=product.id,
                    po_id=po_id,
                    quantity_in=quantity,
                    unit_cost=unit_cost,
                )
                self._ledger.record(
                    TransactionType.IN,
                    product_id=product.id,
                    quantity=quantity,
                    staff_id=staff_id,
                    batch_id=batch.batch_id,
                    reference_id=po_id,
                    description=f"Received from PO {po_id}",
                )

                item.quantity = quantity
                item.unit_price = unit_cost
                total += extended_cost(unit_cost, quantity)

                logger.info(
                    "purchase_line_received",
                    extra={
                        "po_item_id": item.id,
                        "product_id": product.id,
                        "quantity": quantity,
                        "unit_cost": unit_cost,
                        "old_cost": old_cost,
                        "new_cost": new_cost,
                        "batch_id": batch.batch_id,
                    },
                )

            order.status = new_status
            order.total_amount = round_money(total)
            order.received_by_id = staff_id
            self._session.flush()

            received = self._session.get(PurchaseOrderModel, po_id, populate_existing=True)
            if received is None:
                raise ReadBackError("PurchaseOrder", po_id)

            logger.info(
                "purchase_order_received",
                extra={
                    "po_id": po_id,
                    "line_count": len(receipts),
                    "total_amount": received.total_amount,
                },
            )
            view = received.to_dto()
        return view
