"""
Module: warehouse_kernel.selectors.ledger_selector
Responsibility: Read access to the stock ledger and the stock reconciliation
    that compares ledger, batches and product counters.
Architecture position: Kernel > Selectors.  Read-only.

Invariants checked (not enforced):
    - Conservation: Σ batch.quantity_remaining == Σ IN - Σ OUT per product.
    - Counter: Product.quantity == Σ batch.quantity_remaining per product.
"""

from sqlalchemy import func, select

from warehouse_kernel.domain.dtos import (
    StockReconciliation,
    TransactionRecord,
    TransactionType,
)
from warehouse_kernel.exceptions import ProductNotFoundError
from warehouse_kernel.models.product import Product
from warehouse_kernel.models.product_batch import ProductBatch
from warehouse_kernel.models.stock_transaction import StockTransaction
from warehouse_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector):
    """Queries over StockTransaction rows."""

    def all_transactions(self, limit: int | None = None) -> list[TransactionRecord]:
        """Every ledger row, newest first."""
        stmt = select(StockTransaction).order_by(
            StockTransaction.transaction_date.desc(), StockTransaction.id.desc(),
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [t.to_dto() for t in self.session.scalars(stmt)]

    def by_reference(self, reference_id: str) -> list[TransactionRecord]:
        """Rows written for one purchase order or request, oldest first."""
        stmt = (
            select(StockTransaction)
            .where(StockTransaction.reference_id == reference_id)
            .order_by(StockTransaction.transaction_date.asc(), StockTransaction.id.asc())
        )
        return [t.to_dto() for t in self.session.scalars(stmt)]

    def for_product(self, product_id: str) -> list[TransactionRecord]:
        stmt = (
            select(StockTransaction)
            .where(StockTransaction.product_id == product_id)
            .order_by(StockTransaction.transaction_date.asc(), StockTransaction.id.asc())
        )
        return [t.to_dto() for t in self.session.scalars(stmt)]

    def totals(self, product_id: str) -> dict[TransactionType, int]:
        """Σ quantity per transaction type for ``product_id``."""
        rows = self.session.execute(
            select(StockTransaction.transaction_type, func.sum(StockTransaction.quantity))
            .where(StockTransaction.product_id == product_id)
            .group_by(StockTransaction.transaction_type)
        ).all()
        totals = {TransactionType.IN: 0, TransactionType.OUT: 0}
        for txn_type, quantity in rows:
            totals[TransactionType(txn_type)] = int(quantity or 0)
        return totals

    def reconcile_product(self, product_id: str) -> StockReconciliation:
        """
        Compare product counter, batch remainders and ledger balance.

        Raises:
            ProductNotFoundError: Unknown product.
        """
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        batch_remaining = self.session.scalar(
            select(func.coalesce(func.sum(ProductBatch.quantity_remaining), 0))
            .where(ProductBatch.product_id == product_id)
        )
        totals = self.totals(product_id)
        return StockReconciliation(
            product_id=product_id,
            product_quantity=product.quantity,
            batch_remaining=int(batch_remaining),
            ledger_in=totals[TransactionType.IN],
            ledger_out=totals[TransactionType.OUT],
        )

    def reconcile_all(self) -> list[StockReconciliation]:
        product_ids = self.session.scalars(select(Product.id).order_by(Product.id))
        return [self.reconcile_product(pid) for pid in product_ids.all()]
