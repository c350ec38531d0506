from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ledgerbook.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")


def quantize_money(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_amount(value) -> Decimal:
    """Lenient parse used by form calculations: anything unparseable counts as zero."""
    parsed = _to_decimal(value)
    return ZERO if parsed is None else parsed


def require_amount(
    value,
    field: str,
    *,
    minimum: Decimal | None = None,
    maximum: Decimal | None = None,
    allow_zero: bool = True,
) -> Decimal:
    parsed = _to_decimal(value)
    if parsed is None:
        raise ValidationError({field: "A numeric value is required."})
    if minimum is not None and parsed < minimum:
        raise ValidationError({field: f"Must be at least {minimum}."})
    if maximum is not None and parsed > maximum:
        raise ValidationError({field: f"Must not exceed {maximum}."})
    if not allow_zero and parsed == 0:
        raise ValidationError({field: "Must be greater than zero."})
    return parsed
