"""
Module: warehouse_kernel.selectors.batch_selector
Responsibility: Read-only batch listings for product screens and purchase
    order traceability.  Issue-order availability lives on BatchStore, since
    the allocator uses it inside a write transaction.
Architecture position: Kernel > Selectors.  Read-only.
"""

from sqlalchemy import select

from warehouse_kernel.domain.dtos import BatchSnapshot
from warehouse_kernel.exceptions import BatchNotFoundError
from warehouse_kernel.models.product_batch import ProductBatch
from warehouse_kernel.selectors.base import BaseSelector


class BatchSelector(BaseSelector):

    def for_product(self, product_id: str) -> list[BatchSnapshot]:
        """All batches of a product, newest first (including drained ones)."""
        stmt = (
            select(ProductBatch)
            .where(ProductBatch.product_id == product_id)
            .order_by(ProductBatch.received_date.desc(), ProductBatch.id.desc())
        )
        return [b.to_dto() for b in self.session.scalars(stmt)]

    def for_purchase_order(self, po_id: str) -> list[BatchSnapshot]:
        stmt = (
            select(ProductBatch)
            .where(ProductBatch.po_id == po_id)
            .order_by(ProductBatch.received_date.asc(), ProductBatch.id.asc())
        )
        return [b.to_dto() for b in self.session.scalars(stmt)]

    def product_batch(self, product_id: str, batch_id: str) -> BatchSnapshot:
        """
        One batch, which must belong to ``product_id``.

        Raises:
            BatchNotFoundError: Unknown batch or batch of another product.
        """
        batch = self.session.get(ProductBatch, batch_id)
        if batch is None or batch.product_id != product_id:
            raise BatchNotFoundError(batch_id, product_id)
        return batch.to_dto()
