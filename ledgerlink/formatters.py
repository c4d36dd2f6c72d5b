# ledgerlink/formatters.py
# Display helpers for the dashboard payloads (mirror what the UI renders).
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "CA$",
    "JPY": "¥",
}


def _as_float(value) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def format_currency(amount, currency: str = "USD", decimals: int = 2) -> str:
    """1234.5 -> "$1,234.50"; -3 -> "-$3.00"."""
    v = _as_float(amount)
    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    body = f"{abs(v):,.{decimals}f}"
    sign = "-" if v < 0 else ""
    return f"{sign}{symbol}{body}"


def _render_date(d, fmt: Optional[str]) -> str:
    if fmt is None:
        # "Mar 5, 2025": day is not zero-padded
        return f"{d:%b} {d.day}, {d.year}"
    return d.strftime(fmt)


def format_date(value, fmt: Optional[str] = None) -> str:
    if not value:
        return "Unknown date"
    if isinstance(value, (date, datetime)):
        return _render_date(value, fmt)
    text = str(value).strip()
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            return "Invalid date"
    return _render_date(parsed, fmt)


def format_number(value, decimals: int = 2) -> str:
    """Thousands separators with up to ``decimals`` fraction digits (trailing zeros dropped)."""
    text = f"{_as_float(value):,.{decimals}f}"
    if decimals > 0:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_percentage(value, decimals: int = 2) -> str:
    return f"{_as_float(value) * 100:.{decimals}f}%"


def truncate(text, length: int = 30) -> str:
    if not text:
        return ""
    text = str(text)
    if len(text) <= length:
        return text
    return f"{text[:length]}..."


def capitalize(text) -> str:
    if not text:
        return ""
    text = str(text)
    return text[0].upper() + text[1:]


def format_large_number(num) -> str:
    v = _as_float(num)
    if v >= 1_000_000_000:
        return f"{v / 1_000_000_000:.1f}B"
    if v >= 1_000_000:
        return f"{v / 1_000_000:.1f}M"
    if v >= 1_000:
        return f"{v / 1_000:.1f}K"
    return f"{v:g}"
