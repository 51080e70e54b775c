"""
Typed Exception Hierarchy for the Warehouse Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the inventory engine (HTTP layers, scripts, other services) must
map failures onto distinct outcomes: a bad request, a missing record, a
business-rule conflict with current stock, or a storage inconsistency.
Matching on message text is brittle, so every failure is:

  1. A TYPED exception class (catch by type, not message)
  2. Carrying a CODE attribute (machine-readable, API-safe)
  3. Carrying a CATEGORY attribute (validation / not_found / conflict / internal)
  4. Carrying structured DATA (ids and quantities, not just a message)

Example:
    try:
        fulfillment.fulfill_item(item_id, 6, staff_id)
    except InsufficientBatchCoverageError as e:
        log.warning("short by %s", e.requested - e.allocated)
        api_response(status=409, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WarehouseError (base)
    |
    +-- ValidationError                      detected before any mutation
    |   +-- MissingFieldError
    |   +-- InvalidQuantityError
    |   +-- InvalidPriceError
    |   +-- ExceedsRemainingError
    |   +-- ProductNotOnOrderError
    |   +-- ExceedsOrderRemainingError
    |
    +-- NotFoundError                        detected before any mutation
    |   +-- ProductNotFoundError
    |   +-- BatchNotFoundError
    |   +-- PurchaseOrderNotFoundError
    |   +-- PurchaseItemNotFoundError
    |   +-- RequestNotFoundError
    |   +-- RequestItemNotFoundError
    |   +-- SalesOrderNotFoundError
    |   +-- OrderItemNotFoundError
    |
    +-- ConflictError                        may be raised mid-transaction
    |   +-- InsufficientStockError
    |   +-- InsufficientBatchCoverageError
    |   +-- InvalidStatusTransitionError
    |   +-- OpenLinesError
    |   +-- OpenRequestsError
    |   +-- OrderOverFulfillmentError
    |   +-- ConcurrentModificationError
    |   +-- ImmutabilityViolationError
    |
    +-- InternalError
        +-- ReadBackError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                          | When Raised
------------|-------------------------------|--------------------------------------
validation  | MISSING_FIELD                 | Required input blank or absent
            | INVALID_QUANTITY              | Quantity <= 0 (or otherwise invalid)
            | INVALID_PRICE                 | Price missing, non-positive, < minimum
            | EXCEEDS_REMAINING             | Issue larger than request line remainder
            | PRODUCT_NOT_ON_ORDER          | Request line product absent from order
            | EXCEEDS_ORDER_REMAINING       | Requested more than order line remainder
------------|-------------------------------|--------------------------------------
not_found   | PRODUCT_NOT_FOUND             | Product id does not exist
            | BATCH_NOT_FOUND               | Batch id does not exist for product
            | PURCHASE_ORDER_NOT_FOUND      | PO id does not exist
            | PURCHASE_ITEM_NOT_FOUND       | PO line missing or belongs to other PO
            | REQUEST_NOT_FOUND             | Request id does not exist
            | REQUEST_ITEM_NOT_FOUND        | Request line id does not exist
            | SALES_ORDER_NOT_FOUND         | Sales order id does not exist
            | ORDER_ITEM_NOT_FOUND          | No order line for the product
------------|-------------------------------|--------------------------------------
conflict    | INSUFFICIENT_STOCK            | Product counter below issue quantity
            | INSUFFICIENT_BATCH_COVERAGE   | Batches cannot source the issue
            | INVALID_STATUS_TRANSITION     | Action not allowed from current status
            | OPEN_LINES                    | Close attempted with remaining quantity
            | OPEN_REQUESTS                 | Order close with non-closed requests
            | ORDER_OVER_FULFILLMENT        | Issue exceeds linked order remainder
            | CONCURRENT_MODIFICATION       | Conditional batch update lost a race
            | IMMUTABILITY_VIOLATION        | Update/delete of append-only record
------------|-------------------------------|--------------------------------------
internal    | READ_BACK_FAILED              | Row written but could not be re-read
"""


class WarehouseError(Exception):
    """
    Base exception for all warehouse errors.

    All subclasses carry a class-level ``code`` and ``category``.
    """

    code: str = "WAREHOUSE_ERROR"
    category: str = "internal"


# =============================================================================
# Validation
# =============================================================================


class ValidationError(WarehouseError):
    """Base exception for missing or invalid input."""

    code: str = "VALIDATION_ERROR"
    category: str = "validation"


class MissingFieldError(ValidationError):
    """A required input field is blank or absent."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"{field_name} is required")


class InvalidQuantityError(ValidationError):
    """Quantity is not a positive integer (or otherwise out of range)."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field_name: str, quantity, reason: str = "must be greater than 0"):
        self.field_name = field_name
        self.quantity = quantity
        super().__init__(f"{field_name} {reason}, got {quantity}")


class InvalidPriceError(ValidationError):
    """Price is missing, non-positive, or below the configured minimum."""

    code: str = "INVALID_PRICE"

    def __init__(self, field_name: str, price, minimum, setting: str | None = None):
        self.field_name = field_name
        self.price = price
        self.minimum = minimum
        self.setting = setting
        floor = f"{minimum} (configured floor {setting})" if setting else f"{minimum}"
        super().__init__(f"{field_name} must be at least {floor}, got {price}")


class ExceedsRemainingError(ValidationError):
    """Issue quantity is larger than the request line's remaining quantity."""

    code: str = "EXCEEDS_REMAINING"

    def __init__(self, request_item_id: str, requested: int, remaining: int):
        self.request_item_id = request_item_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Fulfill quantity {requested} exceeds remaining {remaining} "
            f"on request item {request_item_id}"
        )


class ProductNotOnOrderError(ValidationError):
    """A request line names a product that the linked order does not contain."""

    code: str = "PRODUCT_NOT_ON_ORDER"

    def __init__(self, order_id: str, product_id: str):
        self.order_id = order_id
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not part of order {order_id}")


class ExceedsOrderRemainingError(ValidationError):
    """Requested quantity exceeds what remains open on the linked order."""

    code: str = "EXCEEDS_ORDER_REMAINING"

    def __init__(self, order_id: str, product_id: str, requested: int, remaining: int):
        self.order_id = order_id
        self.product_id = product_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Requested {requested} of {product_id} exceeds remaining "
            f"{remaining} on order {order_id}"
        )


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(WarehouseError):
    """Base exception for references to records that do not exist."""

    code: str = "NOT_FOUND"
    category: str = "not_found"


class ProductNotFoundError(NotFoundError):
    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class BatchNotFoundError(NotFoundError):
    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id: str, product_id: str | None = None):
        self.batch_id = batch_id
        self.product_id = product_id
        if product_id:
            super().__init__(f"Batch {batch_id} not found for product {product_id}")
        else:
            super().__init__(f"Batch not found: {batch_id}")


class PurchaseOrderNotFoundError(NotFoundError):
    code: str = "PURCHASE_ORDER_NOT_FOUND"

    def __init__(self, po_id: str):
        self.po_id = po_id
        super().__init__(f"Purchase order not found: {po_id}")


class PurchaseItemNotFoundError(NotFoundError):
    """PO line does not exist or does not belong to the given purchase order."""

    code: str = "PURCHASE_ITEM_NOT_FOUND"

    def __init__(self, po_item_id: str, po_id: str):
        self.po_item_id = po_item_id
        self.po_id = po_id
        super().__init__(f"Purchase item {po_item_id} not found in purchase order {po_id}")


class RequestNotFoundError(NotFoundError):
    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Request not found: {request_id}")


class RequestItemNotFoundError(NotFoundError):
    code: str = "REQUEST_ITEM_NOT_FOUND"

    def __init__(self, request_item_id: str):
        self.request_item_id = request_item_id
        super().__init__(f"Request item not found: {request_item_id}")


class SalesOrderNotFoundError(NotFoundError):
    code: str = "SALES_ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderItemNotFoundError(NotFoundError):
    """The linked sales order has no line for the issued product."""

    code: str = "ORDER_ITEM_NOT_FOUND"

    def __init__(self, order_id: str, product_id: str):
        self.order_id = order_id
        self.product_id = product_id
        super().__init__(f"Order {order_id} has no line for product {product_id}")


# =============================================================================
# Conflict
# =============================================================================


class ConflictError(WarehouseError):
    """Base exception for business-rule violations against current state."""

    code: str = "CONFLICT"
    category: str = "conflict"


class InsufficientStockError(ConflictError):
    """The product's on-hand counter is below the requested issue quantity."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_id}: requested {requested}, "
            f"available {available}"
        )


class InsufficientBatchCoverageError(ConflictError):
    """
    Available batches cannot source the full issue quantity.

    Raised even when the product counter suggested enough stock: batch
    remainders are authoritative.
    """

    code: str = "INSUFFICIENT_BATCH_COVERAGE"

    def __init__(self, product_id: str, requested: int, allocated: int):
        self.product_id = product_id
        self.requested = requested
        self.allocated = allocated
        super().__init__(
            f"Batches for {product_id} cover only {allocated} of {requested} units"
        )


class InvalidStatusTransitionError(ConflictError):
    """The requested action is not allowed from the record's current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, workflow: str, entity_id: str, current_status: str, action: str):
        self.workflow = workflow
        self.entity_id = entity_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} {workflow} {entity_id} in status '{current_status}'"
        )


class OpenLinesError(ConflictError):
    """Close attempted while one or more lines still have remaining quantity."""

    code: str = "OPEN_LINES"

    def __init__(self, entity_type: str, entity_id: str, open_line_ids: list[str]):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.open_line_ids = open_line_ids
        super().__init__(
            f"Cannot close {entity_type} {entity_id}: "
            f"{len(open_line_ids)} line(s) still open"
        )


class OpenRequestsError(ConflictError):
    """Order close attempted while linked requests are not closed."""

    code: str = "OPEN_REQUESTS"

    def __init__(self, order_id: str, open_request_ids: list[str]):
        self.order_id = order_id
        self.open_request_ids = open_request_ids
        super().__init__(
            f"Cannot close order {order_id}: {len(open_request_ids)} "
            "linked request(s) not closed"
        )


class OrderOverFulfillmentError(ConflictError):
    """Issued quantity does not fit into the linked order's open lines."""

    code: str = "ORDER_OVER_FULFILLMENT"

    def __init__(self, order_id: str, product_id: str, quantity: int, remaining: int):
        self.order_id = order_id
        self.product_id = product_id
        self.quantity = quantity
        self.remaining = remaining
        super().__init__(
            f"Cannot apply {quantity} of {product_id} to order {order_id}: "
            f"only {remaining} remaining"
        )


class ConcurrentModificationError(ConflictError):
    """A conditional update found the row changed by another transaction."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Concurrent modification of {entity_type} {entity_id}: "
            "row was changed by another transaction"
        )


class ImmutabilityViolationError(ConflictError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# =============================================================================
# Internal
# =============================================================================


class InternalError(WarehouseError):
    """Base exception for storage inconsistencies."""

    code: str = "INTERNAL_ERROR"
    category: str = "internal"


class ReadBackError(InternalError):
    """A record written in this transaction could not be read back."""

    code: str = "READ_BACK_FAILED"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"Failed to read back {entity_type} {entity_id} after write")
