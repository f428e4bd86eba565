from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from src.exceptions import ValidationError

CENT = Decimal("0.01")

# Largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def quantize(amount):
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value, field="amount"):
    """Parse a monetary input into a two-place ``Decimal``.

    Floats go through ``str`` first so that ``10.1`` becomes ``Decimal("10.1")``
    rather than its binary expansion. Inputs are never rounded: more than two
    fractional digits, or a magnitude beyond ``MAX_AMOUNT``, is rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", field=field)
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError(value)
        if abs(amount) > MAX_AMOUNT:
            raise ValidationError(f"{field} must not exceed {MAX_AMOUNT}", field=field)
        exact = amount.quantize(CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if exact != amount:
        raise ValidationError(f"{field} must have at most two decimal places", field=field)
    return exact
