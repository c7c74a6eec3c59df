from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from app.core.errors import ValidationError

CENTS = Decimal("0.01")

# Decimal places of the Numeric columns the values end up in
MONEY_PLACES = 2
STOCK_PLACES = 3


def to_decimal(value: Any, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a decimal number") from exc
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def fit_scale(value: Decimal, places: int, field: str) -> Decimal:
    """
    Return value at the given scale. Digits the column would drop are refused
    rather than rounded, so what is computed is exactly what gets stored.
    """
    try:
        fitted = value.quantize(Decimal(1).scaleb(-places))
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is out of range") from exc
    if fitted != value:
        raise ValidationError(f"{field} allows at most {places} decimal places")
    return fitted


def positive(value: Any, field: str, places: Optional[int] = None) -> Decimal:
    result = to_decimal(value, field)
    if result <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    if places is not None:
        result = fit_scale(result, places, field)
    return result


def non_negative(value: Any, field: str, places: Optional[int] = None) -> Decimal:
    result = to_decimal(value, field)
    if result < 0:
        raise ValidationError(f"{field} must not be negative")
    if places is not None:
        result = fit_scale(result, places, field)
    return result


def optional_non_negative(value: Any, field: str, places: Optional[int] = None) -> Optional[Decimal]:
    if value is None:
        return None
    return non_negative(value, field, places)


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def required_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} must not be blank")
    return str(value).strip()
