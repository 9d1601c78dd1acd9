"""
Money and date formatting.

All monetary arithmetic goes through Decimal. round2 is the single rounding
rule (2 dp, half-up) used both when totals are computed and when they are
displayed. Floats are converted via str() so 0.1 stays 0.1.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

from invoicer.config import settings

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")

GROUPING_INDIAN = "indian"
GROUPING_WESTERN = "western"

DATE_FORMAT_US = "MM/DD/YYYY"
DATE_FORMAT_EU = "DD/MM/YYYY"
DATE_FORMAT_ISO = "YYYY-MM-DD"
DATE_FORMATS = {
    DATE_FORMAT_US: "%m/%d/%Y",
    DATE_FORMAT_EU: "%d/%m/%Y",
    DATE_FORMAT_ISO: "%Y-%m-%d",
}


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without float drift. Raises ValueError on junk."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not a monetary amount")
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a number: {value!r}")


def round2(value: Number) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _group_digits(digits: str, grouping: str) -> str:
    if grouping == GROUPING_INDIAN:
        # Lakh/crore: last three digits, then pairs (12,34,567)
        if len(digits) <= 3:
            return digits
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        return ",".join(pairs + [tail])
    return f"{int(digits):,}"


def format_amount(amount: Number, grouping: Optional[str] = None) -> str:
    """Grouped 2-dp amount without a currency symbol."""
    grouping = grouping or settings.CURRENCY_GROUPING
    value = round2(amount)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    return f"{sign}{_group_digits(whole, grouping)}.{frac}"


def format_currency(
    amount: Number,
    symbol: Optional[str] = None,
    grouping: Optional[str] = None,
) -> str:
    """
    Locale-style currency string, e.g. ₹1,23,456.70 (indian) or $123,456.70 (western).

    Symbol and grouping default to the configured deployment currency.
    """
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    text = format_amount(amount, grouping)
    if text.startswith("-"):
        return f"-{symbol}{text[1:]}"
    return f"{symbol}{text}"


def format_date(value: Union[date, datetime, str, None], date_format: str = DATE_FORMAT_US) -> str:
    """Render a date in one of the supported template formats. Unknown formats fall back to MM/DD/YYYY."""
    if value is None:
        return "—"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    pattern = DATE_FORMATS.get(date_format, DATE_FORMATS[DATE_FORMAT_US])
    return value.strftime(pattern)
