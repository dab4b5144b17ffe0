"""Fixed-point helpers for weights, percentages, and money.

All engine arithmetic is done on ``Decimal`` at full precision.  Rounding
happens in exactly two places:

  - ``quantize_storage``  before a value is written to a NUMERIC(…, 4) column
  - ``quantize_money`` / ``quantize_weight``  when a value is presented
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.config import settings

ZERO = Decimal("0")
HUNDRED = Decimal("100")
STORAGE_PLACES = 4


def _exponent(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


STORAGE_QUANTUM = _exponent(STORAGE_PLACES)


def to_decimal(value) -> Decimal | None:
    """Best-effort conversion to a finite Decimal.

    Returns None for None, empty strings, booleans, non-numeric text, NaN and
    infinities.  Floats go through ``str`` so 0.1 becomes Decimal("0.1").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not result.is_finite():
        return None
    return result


def quantize(value: Decimal, places: int) -> Decimal:
    return value.quantize(_exponent(places), rounding=ROUND_HALF_UP)


def quantize_storage(value: Decimal) -> Decimal:
    return value.quantize(STORAGE_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_money(value: Decimal) -> Decimal:
    """Round to the currency's minor unit (presentation only)."""
    return quantize(value, settings.money_decimal_places)


def quantize_weight(value: Decimal) -> Decimal:
    """Round a weight for display (grams by default)."""
    return quantize(value, settings.weight_decimal_places)
