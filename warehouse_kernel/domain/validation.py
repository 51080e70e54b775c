"""Input checks shared by services.  Each raises a typed ValidationError."""

from decimal import Decimal, InvalidOperation

from warehouse_kernel.exceptions import (
    InvalidPriceError,
    InvalidQuantityError,
    MissingFieldError,
)


def require_text(value: str | None, field_name: str) -> str:
    """Return ``value`` stripped, or raise if it is None or blank."""
    if value is None or not str(value).strip():
        raise MissingFieldError(field_name)
    return str(value).strip()


def require_positive_quantity(value, field_name: str = "quantity") -> int:
    """Return ``value`` as int; raise unless it is a whole number > 0."""
    if value is None:
        raise MissingFieldError(field_name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(field_name, value, "must be a whole number")
    if value <= 0:
        raise InvalidQuantityError(field_name, value)
    return value


def require_price(
    value, field_name: str, minimum: Decimal, setting: str | None = None,
) -> Decimal:
    """
    Return ``value`` as Decimal; raise if missing, non-numeric, or below ``minimum``.

    ``setting`` names the config key ``minimum`` came from, when it is one.
    """
    if value is None:
        raise MissingFieldError(field_name)
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise InvalidPriceError(field_name, value, minimum, setting) from None
    if not price.is_finite() or price < minimum:
        raise InvalidPriceError(field_name, value, minimum, setting)
    return price
