from decimal import ROUND_FLOOR, ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Union

# Type alias for money values
Money = Decimal

Number = Union[Decimal, float, int, str]


def _to_decimal(value: Number) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value


def round_money(value: Number) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money(10.124)
        Decimal('10.12')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    value = _to_decimal(value)
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def floor_yen(value: Number) -> int:
    """
    Floor to a whole yen amount.

    Examples:
        >>> floor_yen(Decimal("1649.5"))
        1649
        >>> floor_yen(-0.5)
        -1
    """
    return int(_to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))


def add_tax(amount_ex_tax: Number, tax_rate: Number) -> int:
    """
    Tax-excluded amount -> tax-included whole yen (floored).

    The product is rounded to 2 places first so a tax-excluded figure that was
    itself derived from a tax-included one (e.g. 10500 / 1.1) comes back whole.
    """
    gross = _to_decimal(amount_ex_tax) * (Decimal("1") + _to_decimal(tax_rate))
    return floor_yen(round_money(gross))


def remove_tax(amount_incl_tax: Number, tax_rate: Number) -> Decimal:
    """Tax-included amount -> tax-excluded amount, 2 decimal places."""
    return round_money(_to_decimal(amount_incl_tax) / (Decimal("1") + _to_decimal(tax_rate)))
