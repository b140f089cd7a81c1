import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MILLIUNITS_PER_UNIT = Decimal(1000)

# Plain signed decimals only: no digit separators, exponents or special values
_AMOUNT_PATTERN = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)")


def parse_amount(raw: str) -> Decimal:
    """Parse an amount string exactly, keeping every decimal place given."""
    cleaned = raw.strip() if raw else ""
    if not _AMOUNT_PATTERN.fullmatch(cleaned):
        raise ValueError(f"Invalid amount format: {raw}")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid amount format: {raw}") from None


def to_milliunits(amount: Decimal) -> int:
    return int((amount * MILLIUNITS_PER_UNIT).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_milliunits(milliunits: int) -> Decimal:
    return Decimal(milliunits) / MILLIUNITS_PER_UNIT


def fingerprint_amount(amount: Decimal) -> str:
    # -4.50 and -4.5 are the same money
    if amount.is_zero():
        return "0"
    return format(amount.normalize(), "f")
