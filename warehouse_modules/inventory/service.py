"""
Inventory Module Service (``warehouse_modules.inventory.service``).

Responsibility
--------------
Product master data, manual stock-in, batch and ledger queries, and the
stock reconciliation that compares product counters with batch remainders
and the ledger.

Architecture
------------
Layer: **Modules** -- orchestration that owns the transaction boundary.
Stock-affecting writes go through ``BatchStore`` and ``StockLedger``
(kernel, flush-only) under the product lock; reads go through the kernel
selectors.

Invariants
----------
- Product quantity and batch remainders move in the same unit of work; a
  stock-in or initial quantity always creates a batch and an IN ledger row.
- Admin edits never touch quantity or cost price.

Failure Modes
-------------
- ProductNotFoundError / BatchNotFoundError.
- MissingFieldError / InvalidQuantityError / InvalidPriceError.
- ReadBackError when an updated product cannot be re-read.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select

from warehouse_engines.costing import round_money
from warehouse_kernel.domain.dtos import (
    BatchSnapshot,
    ProductView,
    StockReconciliation,
    TransactionRecord,
    TransactionType,
)
from warehouse_kernel.domain.validation import (
    require_positive_quantity,
    require_price,
    require_text,
)
from warehouse_kernel.exceptions import (
    InvalidQuantityError,
    ProductNotFoundError,
    ReadBackError,
)
from warehouse_kernel.logging_config import LogContext, get_logger
from warehouse_kernel.models.product import Product
from warehouse_kernel.selectors.batch_selector import BatchSelector
from warehouse_kernel.selectors.ledger_selector import LedgerSelector
from warehouse_kernel.services.batch_store import BatchStore
from warehouse_kernel.services.stock_ledger import StockLedger
from warehouse_modules._service_base import ModuleService
from warehouse_modules.inventory.config import MIN_UNIT_PRICE_SETTING
from warehouse_modules.inventory.models import StockInResult

logger = get_logger("modules.inventory.service")

INITIAL_STOCK_DESCRIPTION = "Initial stock recorded on product creation"


class InventoryService(ModuleService):
    """
    Products, manual stock-in and stock queries.

    Transaction boundary: this service commits on success, rolls back on failure.
    """

    def __init__(self, session, clock=None, config=None, locks=None):
        super().__init__(session, clock, config, locks)
        self._batches = BatchStore(session, self._clock, self._config.issue_policy)
        self._ledger = StockLedger(session, self._clock)
        self._batch_selector = BatchSelector(session)
        self._ledger_selector = LedgerSelector(session)

    # =========================================================================
    # Products
    # =========================================================================

    def _get_product(self, product_id: str, lock: bool = False) -> Product:
        product = self._fresh(Product, product_id, lock=lock)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_product(self, product_id: str) -> ProductView:
        return self._get_product(product_id).to_dto()

    def list_products(self, active_only: bool = False) -> list[ProductView]:
        stmt = select(Product).order_by(Product.name, Product.id)
        if active_only:
            stmt = stmt.where(Product.is_active.is_(True))
        return [p.to_dto() for p in self._session.scalars(stmt)]

    def create_product(
        self,
        name: str,
        unit: str | None,
        sell_price: Decimal,
        staff_id: str,
        description: str | None = None,
        supplier_id: str | None = None,
        initial_quantity: int = 0,
        initial_cost: Decimal | None = None,
    ) -> ProductView:
        """
        Register a product, optionally with opening stock.

        Preconditions:
            - ``name`` and ``staff_id`` non-blank; ``sell_price`` >= 0.
            - ``initial_quantity`` is a whole number >= 0.
            - Opening stock (``initial_quantity`` > 0) requires
              ``initial_cost`` >= the configured minimum unit price.

        Postconditions:
            - With opening stock: one batch and one IN ledger row for it,
              product quantity = ``initial_quantity`` and cost price =
              ``initial_cost``.
        """
        name = require_text(name, "name")
        staff_id = require_text(staff_id, "staff_id")
        unit = (unit or "").strip() or self._config.default_unit
        sell_price = round_money(require_price(sell_price, "sell_price", Decimal("0")))

        if initial_quantity is None:
            initial_quantity = 0
        if isinstance(initial_quantity, bool) or not isinstance(initial_quantity, int):
            raise InvalidQuantityError("initial_quantity", initial_quantity, "must be a whole number")
        if initial_quantity < 0:
            raise InvalidQuantityError("initial_quantity", initial_quantity, "cannot be negative")

        cost = None
        if initial_quantity > 0 or initial_cost is not None:
            cost = round_money(
                require_price(
                    initial_cost, "initial_cost",
                    self._config.min_unit_price, MIN_UNIT_PRICE_SETTING,
                )
            )

        with LogContext.bind(actor_id=staff_id), self._unit_of_work("create_product"):
            product = Product(
                name=name,
                description=description,
                unit=unit,
                quantity=initial_quantity,
                cost_price=cost,
                sell_price=sell_price,
                supplier_id=supplier_id,
                is_active=True,
                created_by_id=staff_id,
            )
            self._session.add(product)
            self._session.flush()

            if initial_quantity > 0:
                batch = self._batches.create_batch(
                    product_id=product.id,
                    po_id=None,
                    quantity_in=initial_quantity,
                    unit_cost=cost,
                )
                self._ledger.record(
                    TransactionType.IN,
                    product_id=product.id,
                    quantity=initial_quantity,
                    staff_id=staff_id,
                    batch_id=batch.batch_id,
                    description=INITIAL_STOCK_DESCRIPTION,
                )

            logger.info(
                "product_created",
                extra={
                    "product_id": product.id,
                    "initial_quantity": initial_quantity,
                    "cost_price": cost,
                },
            )
            view = product.to_dto()
        return view

    def update_product_details(
        self,
        product_id: str,
        name: str | None = None,
        description: str | None = None,
        unit: str | None = None,
        sell_price: Decimal | None = None,
    ) -> ProductView:
        """
        Edit descriptive fields.  Quantity and cost price are not editable here.

        Raises:
            ProductNotFoundError, MissingFieldError, InvalidPriceError,
            ReadBackError.
        """
        changes: dict[str, object] = {}
        if name is not None:
            changes["name"] = require_text(name, "name")
        if description is not None:
            changes["description"] = description
        if unit is not None:
            changes["unit"] = require_text(unit, "unit")
        if sell_price is not None:
            changes["sell_price"] = round_money(
                require_price(sell_price, "sell_price", Decimal("0"))
            )

        with LogContext.bind(product_id=product_id), \
                self._unit_of_work("update_product_details"):
            product = self._get_product(product_id, lock=True)
            for attr, value in changes.items():
                setattr(product, attr, value)
            self._session.flush()

            updated = self._session.get(Product, product_id, populate_existing=True)
            if updated is None:
                raise ReadBackError("Product", product_id)

            logger.info(
                "product_details_updated",
                extra={"product_id": product_id, "fields": sorted(changes)},
            )
            view = updated.to_dto()
        return view

    def deactivate_product(self, product_id: str) -> ProductView:
        with LogContext.bind(product_id=product_id), \
                self._unit_of_work("deactivate_product"):
            product = self._get_product(product_id, lock=True)
            product.is_active = False
            self._session.flush()
            logger.info("product_deactivated", extra={"product_id": product_id})
            return product.to_dto()

    # =========================================================================
    # Stock-in
    # =========================================================================

    def add_stock_in(
        self,
        product_id: str,
        quantity: int,
        staff_id: str,
        supplier_id: str | None = None,
        note: str | None = None,
    ) -> StockInResult:
        """
        Record goods arriving outside a purchase order.

        Creates one zero-cost batch and one IN ledger row; the product's
        quantity rises and its cost price is left unchanged.

        Raises:
            InvalidQuantityError, MissingFieldError, ProductNotFoundError.
        """
        product_id = require_text(product_id, "product_id")
        quantity = require_positive_quantity(quantity)
        staff_id = require_text(staff_id, "staff_id")
        note = note if note and note.strip() else self._config.stock_in_default_note
        if supplier_id:
            description = f"Stock-In from Supplier ID {supplier_id}. Note: {note}"
        else:
            description = f"Stock-In. Note: {note}"

        with self._locks.hold([product_id]), \
                LogContext.bind(actor_id=staff_id, product_id=product_id), \
                self._unit_of_work("add_stock_in"):
            product = self._get_product(product_id, lock=True)

            batch = self._batches.create_batch(
                product_id=product_id,
                po_id=None,
                quantity_in=quantity,
                unit_cost=Decimal("0"),
            )
            transaction = self._ledger.record(
                TransactionType.IN,
                product_id=product_id,
                quantity=quantity,
                staff_id=staff_id,
                batch_id=batch.batch_id,
                description=description,
            )
            product.quantity = product.quantity + quantity
            self._session.flush()

            logger.info(
                "stock_in_recorded",
                extra={
                    "product_id": product_id,
                    "quantity": quantity,
                    "batch_id": batch.batch_id,
                    "supplier_id": supplier_id,
                },
            )
            result = StockInResult(
                product_id=product_id,
                quantity=quantity,
                batch=batch,
                transaction=transaction,
                product_quantity_after=product.quantity,
            )
        return result

    # =========================================================================
    # Batch queries
    # =========================================================================

    def batches_for_product(self, product_id: str) -> list[BatchSnapshot]:
        """Every lot of the product, newest first, drained ones included."""
        self._get_product(product_id)
        return self._batch_selector.for_product(product_id)

    def available_batches(self, product_id: str) -> list[BatchSnapshot]:
        """Lots with stock left, in the order issues draw from them."""
        self._get_product(product_id)
        return self._batches.list_available(product_id)

    def get_product_batch(self, product_id: str, batch_id: str) -> BatchSnapshot:
        return self._batch_selector.product_batch(product_id, batch_id)

    def batches_for_purchase_order(self, po_id: str) -> list[BatchSnapshot]:
        return self._batch_selector.for_purchase_order(po_id)

    # =========================================================================
    # Ledger and reconciliation
    # =========================================================================

    def transactions_for_product(self, product_id: str) -> list[TransactionRecord]:
        return self._ledger_selector.for_product(product_id)

    def transactions_for_reference(self, reference_id: str) -> list[TransactionRecord]:
        return self._ledger_selector.by_reference(reference_id)

    def recent_transactions(self, limit: int | None = 50) -> list[TransactionRecord]:
        return self._ledger_selector.all_transactions(limit=limit)

    def reconcile_product(self, product_id: str) -> StockReconciliation:
        result = self._ledger_selector.reconcile_product(product_id)
        if not result.is_consistent:
            logger.warning(
                "stock_drift_detected",
                extra={
                    "product_id": product_id,
                    "product_quantity": result.product_quantity,
                    "batch_remaining": result.batch_remaining,
                    "ledger_balance": result.ledger_balance,
                },
            )
        return result

    def reconcile_all(self) -> list[StockReconciliation]:
        results = self._ledger_selector.reconcile_all()
        drifted = [r.product_id for r in results if not r.is_consistent]
        log = logger.warning if drifted else logger.info
        log(
            "stock_reconciliation_completed",
            extra={"product_count": len(results), "drifted_products": drifted},
        )
        return results
