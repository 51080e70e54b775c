"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The stock ledger is the audit trail of every receipt and issue.  Rows are
facts: a correction is a new movement, never an edit.  Likewise a batch's
quantity-in and unit cost describe a delivery that happened; only its
remainder may change (and only downwards, through the Batch Store).

SQLAlchemy fires mapper events before UPDATE/DELETE reach the database:

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | Rule
------------------|------------------------------------------------------------
StockTransaction  | No UPDATE, no DELETE, ever
ProductBatch      | No DELETE; product_id, po_id, quantity_in, unit_cost,
                  | received_date frozen; quantity_remaining may only decrease

Bulk ``update()`` statements bypass mapper events; the Batch Store's
conditional decrement is one, and it carries its own WHERE guard.

===============================================================================
USAGE
===============================================================================

    from warehouse_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # create_tables() calls this
"""

from sqlalchemy import event, inspect

from warehouse_kernel.exceptions import ImmutabilityViolationError
from warehouse_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_FROZEN_BATCH_FIELDS = (
    "product_id",
    "po_id",
    "quantity_in",
    "unit_cost",
    "received_date",
)


def _block(entity_type: str, entity_id: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={"entity_type": entity_type, "entity_id": entity_id, "reason": reason},
    )
    raise ImmutabilityViolationError(entity_type, entity_id, reason)


def _check_stock_transaction_immutability(mapper, connection, target):
    """Ledger rows are append-only: any UPDATE is rejected."""
    _block("StockTransaction", str(target.id), "stock ledger rows cannot be modified")


def _check_stock_transaction_delete(mapper, connection, target):
    _block("StockTransaction", str(target.id), "stock ledger rows cannot be deleted")


def _check_batch_immutability(mapper, connection, target):
    """Frozen batch fields must not change; the remainder must not grow."""
    state = inspect(target)

    for field_name in _FROZEN_BATCH_FIELDS:
        history = state.attrs[field_name].history
        if history.has_changes() and history.deleted:
            _block(
                "ProductBatch",
                str(target.id),
                f"{field_name} is immutable after creation",
            )

    remaining = state.attrs.quantity_remaining.history
    if remaining.has_changes() and remaining.deleted:
        previous = remaining.deleted[0]
        current = target.quantity_remaining
        if previous is not None and current is not None and current > previous:
            _block(
                "ProductBatch",
                str(target.id),
                f"quantity_remaining cannot increase ({previous} -> {current})",
            )


def _check_batch_delete(mapper, connection, target):
    _block("ProductBatch", str(target.id), "batches are never deleted")


def _listener_table():
    from warehouse_kernel.models.product_batch import ProductBatch
    from warehouse_kernel.models.stock_transaction import StockTransaction

    return (
        (StockTransaction, "before_update", _check_stock_transaction_immutability),
        (StockTransaction, "before_delete", _check_stock_transaction_delete),
        (ProductBatch, "before_update", _check_batch_immutability),
        (ProductBatch, "before_delete", _check_batch_delete),
    )


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners (idempotent).
    """
    for target, identifier, fn in _listener_table():
        if not event.contains(target, identifier, fn):
            event.listen(target, identifier, fn)
    logger.info("immutability_listeners_registered")
