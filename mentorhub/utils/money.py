"""Exact-decimal money helpers."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from ..core.exceptions import ValidationException

CENT = Decimal("0.01")

MoneyInput = Union[Decimal, int, str]


def to_amount(value: MoneyInput, *, field: str = "amount") -> Decimal:
    """
    Parse a strictly positive amount with at most two fractional digits.

    Floats are refused: binary fractions cannot represent cents exactly.
    """
    if isinstance(value, float):
        raise ValidationException(
            f"{field} must be given as a decimal string or integer",
            details={"field": field},
        )
    try:
        amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError) as exc:
        raise ValidationException(f"{field} is not a valid number", details={"field": field}) from exc

    if not amount.is_finite() or amount <= 0:
        raise ValidationException(f"{field} must be greater than zero", details={"field": field})
    exponent = amount.as_tuple().exponent
    if isinstance(exponent, int) and exponent < -2 and amount != amount.quantize(CENT):
        raise ValidationException(
            f"{field} cannot have more than two decimal places", details={"field": field}
        )
    return amount


def session_price(rate: Decimal, duration_minutes: int) -> Decimal:
    """Price of a session billed pro rata from an hourly rate, rounded half-up to the cent."""
    return (Decimal(rate) * Decimal(duration_minutes) / Decimal(60)).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def format_money(value: Decimal) -> str:
    """Two-decimal presentation string; storage and arithmetic stay exact."""
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
