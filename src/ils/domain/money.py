from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ils.domain.errors import ValidationError

CENT = Decimal("0.01")


def to_decimal(value: object, field: str = "Amount") -> Decimal:
    """Parse a monetary value without ever rounding it.

    Floats go through ``str`` so ``2.1`` becomes ``Decimal("2.1")`` and not its
    binary expansion. More than two decimal places is an error.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a number.") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number.")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} can not have more than 2 decimal places.")
    return amount.quantize(CENT)


def to_cents(value: object, field: str = "Amount") -> int:
    return int(to_decimal(value, field) * 100)


def from_cents(cents: int | None) -> Decimal:
    return Decimal(int(cents or 0)).scaleb(-2)


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"
