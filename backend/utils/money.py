from decimal import Decimal, ROUND_HALF_UP, InvalidOperation


def to_decimal(value) -> Decimal:
    """Coerce user/DB input into a Decimal without going through float."""
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"'{value}' is not a valid amount")


def quantize_amount(value, places: int) -> Decimal:
    """Round to the currency's minor unit, e.g. places=2 -> 0.01."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)
