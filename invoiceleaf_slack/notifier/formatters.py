"""InvoiceLeaf Slack — Value Formatters.

Pure helpers turning raw values into display strings for Slack
messages: money, dates, relative times, counts, and mrkdwn-safe text.
Missing or unparseable input renders as "N/A" (or "" for text helpers)
instead of raising.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[str, datetime, date, None]

_NA = "N/A"

# ── Currency symbols rendered in front of the amount ─────
_CURRENCY_SYMBOLS: dict[str, str] = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "BRL": "R$",
    "MXN": "MX$",
    "CNY": "CN¥",
    "KRW": "₩",
    "ILS": "₪",
    "VND": "₫",
}

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def format_currency(amount: Optional[float], currency: Optional[str] = None) -> str:
    """Format an amount with its currency, en-US style.

    Args:
        amount: Monetary amount.
        currency: ISO-4217 code. EUR when absent.

    Returns:
        "€1,234.56" for known symbols, "CHF 1,234.56" for other valid
        codes, "1234.56 XX" for an invalid code, "N/A" when amount is None.
    """
    if amount is None:
        return _NA

    code = (currency or "EUR").upper()
    if not _CURRENCY_CODE.match(code):
        return f"{amount:.2f} {currency}"

    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,.2f}"
    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime/date).

    Naive values are taken as UTC.

    Args:
        value: ISO string, datetime, date, or None.

    Returns:
        Timezone-aware datetime, or None when missing or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: DateLike) -> str:
    """Format a date as "Jan 15, 2024".

    Args:
        value: ISO string, datetime, or date.

    Returns:
        Formatted date, or "N/A" when missing or invalid.
    """
    parsed = parse_datetime(value)
    if parsed is None:
        return _NA
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_relative_time(value: DateLike, now: Optional[datetime] = None) -> str:
    """Format a timestamp relative to now ("3 hours ago").

    Anything a week old or more falls back to the absolute date.

    Args:
        value: ISO string or datetime in the past.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Relative description, or "N/A" when missing or invalid.
    """
    parsed = parse_datetime(value)
    if parsed is None:
        return _NA

    reference = parse_datetime(now) or datetime.now(timezone.utc)
    seconds = int((reference - parsed).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return "just now"
    if minutes < 60:
        return f"{_plural(minutes, 'minute')} ago"
    if hours < 24:
        return f"{_plural(hours, 'hour')} ago"
    if days < 7:
        return f"{_plural(days, 'day')} ago"
    return format_date(parsed)


def days_until(value: DateLike, today: Optional[datetime] = None) -> Optional[int]:
    """Whole days from today until a date, ignoring time of day.

    Args:
        value: Target date (ISO string, datetime, or date).
        today: Reference point. Defaults to the current UTC time.

    Returns:
        Day difference (negative when past), or None when unparseable.
    """
    target = parse_datetime(value)
    if target is None:
        return None
    reference = parse_datetime(today) or datetime.now(timezone.utc)
    # Compare calendar days in the reference's timezone
    target_day = target.astimezone(reference.tzinfo).date()
    return (target_day - reference.date()).days


def format_number(value: Optional[float]) -> str:
    """Format a number with thousands separators ("1,234,567")."""
    if value is None:
        return _NA
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def truncate(text: Optional[str], max_length: int) -> str:
    """Cut text to max_length characters, ending with "..." when cut."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max(max_length - 3, 0)] + "..."


def escape_mrkdwn(text: Optional[str]) -> str:
    """Escape the characters Slack mrkdwn treats as control (&, <, >).

    Args:
        text: Raw text.

    Returns:
        Text safe to embed in a mrkdwn element.
    """
    if not text:
        return ""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
