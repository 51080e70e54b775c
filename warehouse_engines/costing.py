"""
Weighted-average costing engine.

Responsibility:
    Compute a product's new unit cost when a costed receipt lands, as a
    moving weighted average over the product's entire on-hand stock.

Architecture position:
    Engines -- pure functional core, zero I/O.  Called by the purchasing
    workflow once per received line.

Invariants enforced:
    - With no usable history (old quantity <= 0, old cost absent or <= 0)
      the received unit cost is the new cost.
    - Otherwise the result is
      (old_cost * old_qty + unit_cost * recv_qty) / (old_qty + recv_qty).
    - Results are rounded to 2 decimal places, ROUND_HALF_UP.
    - With history, the result lies between the old cost and the received
      cost (inclusive).

Failure modes:
    - InvalidQuantityError if the received quantity is not positive.
    - InvalidPriceError if the received unit cost is negative or missing.
"""

from decimal import ROUND_HALF_UP, Decimal

from warehouse_kernel.exceptions import InvalidPriceError, InvalidQuantityError

MONEY_PLACES = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return Decimal(amount).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def recompute_average_cost(
    old_quantity: int,
    old_cost: Decimal | None,
    received_quantity: int,
    received_unit_cost: Decimal,
) -> Decimal:
    """
    New weighted-average unit cost after receiving ``received_quantity``.

    Args:
        old_quantity: On-hand quantity before the receipt.
        old_cost: Current average unit cost, or None if never costed.
        received_quantity: Units received (> 0).
        received_unit_cost: Unit cost of the received units (>= 0).

    Returns:
        The new unit cost rounded half-up to 2 decimal places.
    """
    if received_quantity is None or received_quantity <= 0:
        raise InvalidQuantityError("received_quantity", received_quantity)
    if received_unit_cost is None or received_unit_cost < 0:
        raise InvalidPriceError("received_unit_cost", received_unit_cost, Decimal("0"))

    received_unit_cost = Decimal(received_unit_cost)
    if old_quantity is None or old_quantity <= 0 or old_cost is None or old_cost <= 0:
        return round_money(received_unit_cost)

    old_value = Decimal(old_cost) * old_quantity
    received_value = received_unit_cost * received_quantity
    return round_money((old_value + received_value) / (old_quantity + received_quantity))


def extended_cost(unit_cost: Decimal, quantity: int) -> Decimal:
    """Line value ``unit_cost * quantity`` rounded to money precision."""
    return round_money(Decimal(unit_cost) * quantity)
