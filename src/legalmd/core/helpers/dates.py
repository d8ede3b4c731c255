"""Date helpers: ``@today``, date arithmetic and token-based formatting.

Format tokens (longest match first):

    YYYY  2025        MMMM   January       DD  05     dddd  Monday
    YY    25          MMMMES enero         D   5      ddd   Mon
    MM    01          MMM    Jan           Do  5th
    M     1

Named formats (case-insensitive, ``-``/``_`` interchangeable) map to
patterns, e.g. ``legal`` -> ``Do day of MMMM, YYYY``.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

DateLike = Union[date, datetime]

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
MONTH_NAMES_SHORT = [m[:3] for m in MONTH_NAMES]
MONTH_NAMES_SPANISH = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

DATE_FORMATS = {
    "legal": "Do day of MMMM, YYYY",
    "formal": "dddd, MMMM Do, YYYY",
    "spanish": "D de MMMMES de YYYY",
    "us": "MM/DD/YYYY",
    "eu": "DD/MM/YYYY",
    "iso": "YYYY-MM-DD",
    "long": "MMMM D, YYYY",
    "short": "MMM D, YYYY",
    "year": "YYYY",
    "month_year": "MMMM YYYY",
}

_TOKEN_RE = re.compile(
    r"MMMMES|YYYY|MMMM|dddd|MMM|ddd|\bYY\b|\bMM\b|\bDD\b|\bDo\b|\bM\b|\bD\b"
)


def to_date(value: Any) -> Optional[DateLike]:
    """Coerce a date, datetime or ISO string; anything else is ``None``."""
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text) if "T" in text or " " in text else date.fromisoformat(text)
        except ValueError:
            return None
    return None


def _require_date(value: Any, helper: str) -> DateLike:
    if value is None or value == "":
        raise ValueError(f"Date is required for {helper}")
    parsed = to_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value}")
    return parsed


def _shift(value: DateLike, years: int = 0, months: int = 0) -> DateLike:
    # Day overflow rolls into the next month (Jan 31 + 1 month -> Mar 2/3).
    total = value.year * 12 + (value.month - 1) + years * 12 + months
    year, month = divmod(total, 12)
    first = value.replace(year=year, month=month + 1, day=1)
    return first + timedelta(days=value.day - 1)


def add_years(value: Any, years: Any) -> DateLike:
    return _shift(_require_date(value, "addYears"), years=int(years))


def add_months(value: Any, months: Any) -> DateLike:
    return _shift(_require_date(value, "addMonths"), months=int(months))


def add_days(value: Any, days: Any) -> DateLike:
    return _require_date(value, "addDays") + timedelta(days=int(days))


def ordinal(day: int) -> str:
    """``1`` -> ``1st``, ``12`` -> ``12th``, ``23`` -> ``23rd``."""
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def resolve_format(fmt: Optional[str]) -> str:
    if not fmt:
        return "YYYY-MM-DD"
    named = DATE_FORMATS.get(str(fmt).strip().lower().replace("-", "_"))
    return named or str(fmt)


def format_date(value: Any, fmt: Optional[str] = "YYYY-MM-DD") -> str:
    """Format a date with the token set described in the module docstring.

    Raises:
        ValueError: If ``value`` is not a date
    """
    d = to_date(value)
    if d is None:
        raise ValueError(f"Invalid date: {value}")
    replacements = {
        "YYYY": str(d.year),
        "YY": str(d.year)[-2:],
        "MMMMES": MONTH_NAMES_SPANISH[d.month - 1],
        "MMMM": MONTH_NAMES[d.month - 1],
        "MMM": MONTH_NAMES_SHORT[d.month - 1],
        "MM": f"{d.month:02d}",
        "M": str(d.month),
        "DD": f"{d.day:02d}",
        "D": str(d.day),
        "Do": ordinal(d.day),
        "dddd": DAY_NAMES[d.weekday()],
        "ddd": DAY_NAMES[d.weekday()][:3],
    }
    return _TOKEN_RE.sub(lambda m: replacements[m.group(0)], resolve_format(fmt))


def format_basic_date(value: Any, fmt: str = "YYYY-MM-DD") -> str:
    """Format with one of the basic layouts (unknown layouts fall back to ISO)."""
    d = to_date(value)
    if d is None:
        raise ValueError(f"Invalid date: {value}")
    year, month, day = str(d.year), f"{d.month:02d}", f"{d.day:02d}"
    layouts = {
        "YYYY-MM-DD": f"{year}-{month}-{day}",
        "DD/MM/YYYY": f"{day}/{month}/{year}",
        "MM/DD/YYYY": f"{month}/{day}/{year}",
        "YYYY": year,
        "MM": month,
        "DD": day,
    }
    return layouts.get(fmt, layouts["YYYY-MM-DD"])


def today() -> date:
    return date.today()


def parse_today(token: Any) -> Optional[date]:
    return today() if token == "@today" else None


DATE_HELPERS = {
    "today": today,
    "parseToday": parse_today,
    "formatBasicDate": format_basic_date,
    "formatDate": format_date,
    "addYears": add_years,
    "addMonths": add_months,
    "addDays": add_days,
}

__all__ = [
    "DATE_FORMATS",
    "DATE_HELPERS",
    "to_date",
    "add_years",
    "add_months",
    "add_days",
    "ordinal",
    "resolve_format",
    "format_date",
    "format_basic_date",
    "today",
    "parse_today",
]
