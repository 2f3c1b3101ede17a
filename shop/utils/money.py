# shop/utils/money.py

from decimal import Decimal, ROUND_HALF_UP

Money = Decimal

CENTS = Decimal("0.01")


def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Money:
    return D(x).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_string_money(x):
    if x is None:
        return None
    return str(round_money(x))


def to_minor_units(x) -> int:
    """Dollars -> cents, the unit amount the payment processor expects."""
    return int((D(x) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
