"""
Prefixed opaque identifiers.

Every persisted record is keyed by a human-readable prefix plus a random
fixed-length token, e.g. ``PROD-1A2B3C4D``.  Uniqueness is assumed from the
uuid4 source, not re-checked against storage.
"""

from uuid import uuid4

TOKEN_LENGTH = 8

PRODUCT = "PROD"
BATCH = "BATCH"
PURCHASE_ORDER = "PO"
PURCHASE_ITEM = "POI"
REQUEST = "REQ"
REQUEST_ITEM = "RIT"
SALES_ORDER = "ORD"
SALES_ORDER_ITEM = "ITM"
STOCK_TRANSACTION = "ST"
STAFF = "STF"

ALL_PREFIXES = frozenset({
    PRODUCT,
    BATCH,
    PURCHASE_ORDER,
    PURCHASE_ITEM,
    REQUEST,
    REQUEST_ITEM,
    SALES_ORDER,
    SALES_ORDER_ITEM,
    STOCK_TRANSACTION,
    STAFF,
})


def new_identifier(prefix: str) -> str:
    """Return ``<prefix>-`` followed by 8 uppercase hex characters."""
    if prefix not in ALL_PREFIXES:
        raise ValueError(f"Unknown identifier prefix: {prefix!r}")
    return f"{prefix}-{uuid4().hex[:TOKEN_LENGTH].upper()}"


def has_prefix(identifier: str, prefix: str) -> bool:
    """Check whether ``identifier`` was minted with ``prefix``."""
    head, sep, token = identifier.partition("-")
    return bool(sep) and head == prefix and len(token) == TOKEN_LENGTH
