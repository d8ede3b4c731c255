"""Number formatting helpers (currency, percentages, words)."""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}

_ONES = ["", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine"]
_TEENS = [
    "ten", "eleven", "twelve", "thirteen", "fourteen",
    "fifteen", "sixteen", "seventeen", "eighteen", "nineteen",
]
_TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]


def parse_number(value: Any) -> Optional[float]:
    """Leading-number parse: ``"12.5kg"`` -> 12.5, ``"abc"`` -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        text = value.strip()
        end = 0
        seen_dot = False
        for index, ch in enumerate(text):
            if ch.isdigit():
                end = index + 1
            elif ch == "." and not seen_dot:
                seen_dot = True
            elif ch in "+-" and index == 0:
                continue
            else:
                break
        if end == 0:
            return None
        try:
            return float(text[:end])
        except ValueError:
            return None
    return None


def to_fixed(value: float, decimals: int) -> str:
    """Fixed-point rendering with half-up rounding (``1.005`` keeps binary value)."""
    try:
        quantum = Decimal(1).scaleb(-int(decimals))
        return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return f"{value:.{int(decimals)}f}"


def _group(integer_part: str, separator: str) -> str:
    sign = "-" if integer_part.startswith("-") else ""
    digits = integer_part.lstrip("-")
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return sign + separator.join(groups)


def format_number(
    value: Any,
    decimals: int = 2,
    decimal_separator: str = ".",
    thousand_separator: str = ",",
) -> str:
    num = parse_number(value)
    if num is None:
        return str(value)
    integer_part, _, fraction = to_fixed(num, decimals).partition(".")
    grouped = _group(integer_part, thousand_separator)
    return f"{grouped}{decimal_separator}{fraction}" if fraction else grouped


def format_integer(value: Any, separator: str = ",") -> str:
    """Floor and group thousands: ``1234567.8`` -> ``1,234,567``."""
    num = parse_number(value)
    if num is None:
        return str(value)
    return _group(str(math.floor(num)), separator)


def format_percent(value: Any, decimals: int = 2, symbol: bool = True) -> str:
    num = parse_number(value)
    if num is None:
        return str(value)
    formatted = to_fixed(num, decimals)
    return f"{formatted}%" if symbol else formatted


def format_currency(value: Any, currency: str = "EUR", decimals: int = 2) -> str:
    """Format a monetary amount.

    EUR renders with a trailing symbol (``1,234.56 €``); other currencies
    lead with the symbol (``$1,234.56``). Unknown currency codes are used
    as their own symbol.
    """
    num = parse_number(value)
    if num is None:
        return str(value)
    code = str(currency or "EUR").upper()
    formatted = format_number(num, decimals)
    symbol = CURRENCY_SYMBOLS.get(code, code)
    if code == "EUR":
        return f"{formatted} {symbol}"
    return f"{symbol}{formatted}"


def format_euro(value: Any, decimals: int = 2) -> str:
    return format_currency(value, "EUR", decimals)


def format_dollar(value: Any, decimals: int = 2) -> str:
    return format_currency(value, "USD", decimals)


def format_pound(value: Any, decimals: int = 2) -> str:
    return format_currency(value, "GBP", decimals)


def _hundreds(num: int) -> str:
    words = []
    if num > 99:
        words.append(f"{_ONES[num // 100]} hundred")
        num %= 100
    if num > 19:
        words.append(_TENS[num // 10])
        num %= 10
    elif num > 9:
        words.append(_TEENS[num - 10])
        return " ".join(words)
    if num > 0:
        words.append(_ONES[num])
    return " ".join(words)


def _thousands(num: int) -> str:
    if num >= 1000:
        return f"{_hundreds(num // 1000)} thousand {_hundreds(num % 1000)}".strip()
    return _hundreds(num)


def _millions(num: int) -> str:
    if num >= 1_000_000:
        return f"{_millions(num // 1_000_000)} million {_thousands(num % 1_000_000)}".strip()
    return _thousands(num)


def number_to_words(value: Any) -> str:
    """Spell out a number in English, with cents for two decimals.

    Example:
        >>> number_to_words(1250.5)
        'one thousand two hundred fifty and fifty cents'
    """
    num = parse_number(value)
    if num is None:
        return str(value)
    if num == 0:
        return "zero"
    if num < 0:
        return "negative " + number_to_words(abs(num))
    integer_part = math.floor(num)
    cents = int(Decimal(repr(num - integer_part)).scaleb(2).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    result = _millions(integer_part)
    if cents > 0:
        result += f" and {_hundreds(cents)} cents"
    return " ".join(result.split())


def round_number(value: Any, decimals: int = 0) -> float | int:
    num = parse_number(value)
    if num is None:
        return 0
    rounded = float(to_fixed(num, int(decimals)))
    return int(rounded) if rounded.is_integer() else rounded


NUMBER_HELPERS = {
    "formatNumber": format_number,
    "formatInteger": format_integer,
    "formatPercent": format_percent,
    "formatCurrency": format_currency,
    "formatEuro": format_euro,
    "formatDollar": format_dollar,
    "formatPound": format_pound,
    "numberToWords": number_to_words,
    "round": round_number,
}

__all__ = [
    "parse_number",
    "to_fixed",
    "format_number",
    "format_integer",
    "format_percent",
    "format_currency",
    "format_euro",
    "format_dollar",
    "format_pound",
    "number_to_words",
    "round_number",
    "NUMBER_HELPERS",
    "CURRENCY_SYMBOLS",
]
