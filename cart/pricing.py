"""
Money arithmetic for carts.

All amounts are ``Decimal``. ``round2`` is applied at every aggregation
boundary (line, cart subtotal, cart total) so displayed lines always add up
to displayed totals.
"""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_decimal(value):
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() gives the shortest repr, so 0.1 stays 0.1 rather than 0.1000000000000000055...
        return Decimal(str(value))
    return Decimal(value)


def round2(value):
    """Round to 2 places, half away from zero"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def unit_price(base_price, price_deltas=()):
    total = to_decimal(base_price)
    for delta in price_deltas:
        total += to_decimal(delta)
    return round2(total)


def line_subtotal(price_at_add, quantity):
    return round2(to_decimal(price_at_add) * quantity)


def sum_rounded(amounts):
    total = ZERO
    for amount in amounts:
        total += round2(amount)
    return round2(total)


def cart_totals(lines, delivery_fee):
    """
    Totals for one cart.

    ``lines`` is an iterable of ``(price_at_add, quantity)`` pairs. The
    delivery fee only applies to a cart that has something in it.
    """
    lines = list(lines)
    subtotal = sum_rounded(line_subtotal(price, quantity) for price, quantity in lines)
    fee = round2(delivery_fee) if lines else ZERO
    return {
        'subtotal': subtotal,
        'delivery_fee': fee,
        'total': round2(subtotal + fee),
    }
