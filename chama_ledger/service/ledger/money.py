"""
Monetary primitives for the ledger.

All money is held as integer minor units (cents). Rates are percentages
applied through Decimal so repeated additions never drift, and every
"amount still owed" or "surplus" is clamped at zero.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from chama_ledger.domain.exceptions import ValidationException

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")

MoneyInput = Union[int, str, Decimal]


def to_cents(value: MoneyInput) -> int:
    """
    Convert a major-unit amount into integer minor units.

    Accepts int, Decimal or numeric strings (thousands separators allowed).
    Floats are refused because they cannot represent most two-decimal values.

    Raises:
        ValidationException: If the value is a float or not numeric
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationException(f"Monetary amounts must not be floats: {value!r}")

    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        try:
            value = Decimal(cleaned)
        except InvalidOperation:
            raise ValidationException(f"Invalid monetary amount: {value!r}")

    amount = Decimal(value)
    if not amount.is_finite():
        raise ValidationException(f"Invalid monetary amount: {value!r}")
    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationException(f"Monetary amount out of range: {value!r}")
    return int(amount * 100)


def from_cents(cents: int) -> Decimal:
    """Convert minor units back to a two-decimal Decimal."""
    return (Decimal(cents) / HUNDRED).quantize(CENTS)


def apply_rate(amount_cents: int, rate_percent: Union[float, Decimal, int]) -> int:
    """
    Apply a percentage rate to an amount, rounding half-up to whole cents.

    Example:
        apply_rate(500_000, 10) -> 50_000  (10% of 5,000.00 is 500.00)
    """
    rate = Decimal(str(rate_percent))
    result = (Decimal(amount_cents) * rate / HUNDRED).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(result)


def clamp_zero(cents: int) -> int:
    """Floor an owed or surplus amount at zero."""
    return max(cents, 0)


def percentage(part: int, whole: int) -> float:
    """Return part/whole as a percentage rounded to one decimal (0.0 if whole is 0)."""
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 1)


def format_number_with_commas(
    value: Union[int, Decimal, str, None],
    max_decimals: int = 2,
) -> str:
    """
    Format a major-unit number with thousands separators.

    10000 -> "10,000", "1234.5" -> "1,234.5". Unparseable input is returned unchanged.
    """
    if value is None or value == "":
        return ""
    try:
        number = Decimal(str(value).replace(",", ""))
    except InvalidOperation:
        return str(value)
    if not number.is_finite():
        return str(value)

    quantum = Decimal(1).scaleb(-max_decimals)
    number = number.quantize(quantum, rounding=ROUND_HALF_UP).normalize()
    if number == number.to_integral():
        return f"{number:,.0f}"
    return f"{number:,f}"


def parse_formatted_number(text: Optional[str]) -> Optional[Decimal]:
    """Parse "10,000.50" into Decimal("10000.50"); None when not a finite number."""
    if not text:
        return None
    try:
        number = Decimal(str(text).replace(",", "").strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def format_currency(
    cents: int,
    currency: str = "MWK",
    thousands_sep: str = ",",
    decimal_sep: str = ".",
) -> str:
    """
    Format minor units for display, e.g. format_currency(550_000) -> "MWK 5,500.00".

    Separators are parameters so callers can follow the reader's locale;
    the stored value is never affected.
    """
    amount = from_cents(cents)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}"
    text = text.replace(",", "\x00").replace(".", decimal_sep).replace("\x00", thousands_sep)
    return f"{sign}{currency} {text}"
