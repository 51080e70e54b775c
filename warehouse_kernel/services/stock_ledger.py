"""
StockLedger -- append-only writer for stock movements.

Responsibility:
    The only code path that inserts ``StockTransaction`` rows.  There is no
    update or delete API; ORM listeners reject both.

Architecture position:
    Kernel > Services.  Flush-only (see ``BaseService``): a ledger write
    commits or rolls back with the batch and product mutation it records.

Invariants enforced:
    - One row per batch touched per operation (callers invoke ``record``
      once per (batch, quantity) pair).
    - quantity > 0; type is IN or OUT; staff id present.

Failure modes:
    - ValidationError subclasses on bad input, before any INSERT.
    - Storage errors propagate unchanged and abort the enclosing unit of work.
"""

from warehouse_kernel.domain.dtos import TransactionRecord, TransactionType
from warehouse_kernel.domain.validation import require_positive_quantity, require_text
from warehouse_kernel.logging_config import get_logger
from warehouse_kernel.models.stock_transaction import StockTransaction
from warehouse_kernel.services.base import BaseService

logger = get_logger("services.stock_ledger")


class StockLedger(BaseService):
    """Append-only stock movement ledger."""

    def record(
        self,
        transaction_type: TransactionType | str,
        product_id: str,
        quantity: int,
        staff_id: str,
        batch_id: str,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> TransactionRecord:
        """
        Append one stock movement.

        Preconditions:
            - ``transaction_type`` is IN or OUT.
            - ``quantity`` > 0.
            - ``staff_id``, ``product_id`` and ``batch_id`` are non-blank.

        Postconditions:
            - A new StockTransaction row is flushed in the caller's transaction.

        Raises:
            MissingFieldError / InvalidQuantityError: On invalid input.
            ValueError: If ``transaction_type`` is not a known type.
        """
        txn_type = TransactionType(transaction_type)
        require_positive_quantity(quantity)
        staff_id = require_text(staff_id, "staff_id")
        product_id = require_text(product_id, "product_id")
        batch_id = require_text(batch_id, "batch_id")

        row = StockTransaction(
            transaction_type=txn_type.value,
            product_id=product_id,
            batch_id=batch_id,
            quantity=quantity,
            reference_id=reference_id,
            staff_id=staff_id,
            description=description,
            transaction_date=self.clock.now(),
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "stock_transaction_recorded",
            extra={
                "transaction_id": row.id,
                "transaction_type": txn_type.value,
                "product_id": product_id,
                "batch_id": batch_id,
                "quantity": quantity,
                "reference_id": reference_id,
            },
        )
        return row.to_dto()
