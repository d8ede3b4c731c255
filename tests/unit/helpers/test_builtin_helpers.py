"""Tests for the built-in date, number, string and math helpers."""
from __future__ import annotations

import math
from datetime import date

import pytest

from legalmd.core.helpers.arithmetic import add, concat, divide, modulo, multiply, power, subtract
from legalmd.core.helpers.dates import (
    add_days,
    add_months,
    add_years,
    format_basic_date,
    format_date,
    ordinal,
    to_date,
)
from legalmd.core.helpers.numbers import (
    format_currency,
    format_integer,
    format_number,
    format_percent,
    number_to_words,
    parse_number,
    round_number,
)
from legalmd.core.helpers.strings import (
    camel_case,
    capitalize_words,
    clean,
    contains,
    initials,
    kebab_case,
    pad_start,
    pascal_case,
    pluralize,
    snake_case,
    title_case,
    truncate,
)

SIGNED = date(2024, 3, 15)


# ============================================================================
# Dates
# ============================================================================


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        ("legal", "15th day of March, 2024"),
        ("formal", "Friday, March 15th, 2024"),
        ("spanish", "15 de marzo de 2024"),
        ("us", "03/15/2024"),
        ("eu", "15/03/2024"),
        ("iso", "2024-03-15"),
        ("long", "March 15, 2024"),
        ("short", "Mar 15, 2024"),
        ("year", "2024"),
        ("month-year", "March 2024"),
        ("DD.MM.YY", "15.03.24"),
        ("ddd D MMM", "Fri 15 Mar"),
    ],
)
def test_format_date(fmt: str, expected: str) -> None:
    assert format_date(SIGNED, fmt) == expected


def test_format_date_accepts_iso_strings() -> None:
    assert format_date("2024-03-15", "long") == "March 15, 2024"


def test_format_date_rejects_invalid_dates() -> None:
    with pytest.raises(ValueError):
        format_date("not a date", "long")


@pytest.mark.parametrize(("day", "expected"), [(1, "1st"), (2, "2nd"), (3, "3rd"), (11, "11th"), (22, "22nd"), (113, "113th")])
def test_ordinal(day: int, expected: str) -> None:
    assert ordinal(day) == expected


class TestDateArithmetic:
    def test_add_days(self) -> None:
        assert add_days(SIGNED, 20) == date(2024, 4, 4)

    def test_add_years(self) -> None:
        assert add_years("2024-03-15", 2) == date(2026, 3, 15)

    def test_month_overflow_rolls_forward(self) -> None:
        assert add_months(date(2024, 1, 31), 1) == date(2024, 3, 2)

    def test_missing_date_raises(self) -> None:
        with pytest.raises(ValueError):
            add_days(None, 1)

    def test_to_date(self) -> None:
        assert to_date("2024-03-15") == SIGNED
        assert to_date("") is None
        assert to_date(42) is None


def test_format_basic_date_falls_back_to_iso() -> None:
    assert format_basic_date(SIGNED, "DD/MM/YYYY") == "15/03/2024"
    assert format_basic_date(SIGNED, "unknown") == "2024-03-15"


# ============================================================================
# Numbers
# ============================================================================


class TestNumbers:
    def test_parse_number(self) -> None:
        assert parse_number("12.5kg") == 12.5
        assert parse_number("abc") is None
        assert parse_number(True) is None

    def test_format_number_groups_thousands(self) -> None:
        assert format_number(1234567.891) == "1,234,567.89"
        assert format_number(1234.5, 2, ",", ".") == "1.234,50"

    @pytest.mark.parametrize(
        ("currency", "expected"),
        [("USD", "$1,234.50"), ("EUR", "1,234.50 €"), ("GBP", "£1,234.50"), ("CHF", "CHF1,234.50")],
    )
    def test_format_currency(self, currency: str, expected: str) -> None:
        assert format_currency(1234.5, currency) == expected

    def test_format_currency_passes_through_non_numbers(self) -> None:
        assert format_currency("TBD", "USD") == "TBD"

    def test_format_integer_and_percent(self) -> None:
        assert format_integer(1234567.8) == "1,234,567"
        assert format_percent(12.5) == "12.50%"
        assert format_percent(12.5, 1, False) == "12.5"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0, "zero"),
            (21, "twenty one"),
            (115, "one hundred fifteen"),
            (1250.5, "one thousand two hundred fifty and fifty cents"),
            (2000000, "two million"),
            (-3, "negative three"),
        ],
    )
    def test_number_to_words(self, value: float, expected: str) -> None:
        assert number_to_words(value) == expected

    def test_round_rounds_half_up(self) -> None:
        assert round_number(2.5) == 3
        assert round_number("3.14159", 2) == 3.14
        assert round_number("n/a") == 0


# ============================================================================
# Strings
# ============================================================================


class TestStrings:
    def test_casing(self) -> None:
        assert capitalize_words("hello big world") == "Hello Big World"
        assert title_case("the terms of the agreement") == "The Terms of the Agreement"
        assert kebab_case("Service Level Agreement") == "service-level-agreement"
        assert snake_case("effectiveDate") == "effective_date"
        assert camel_case("service level agreement") == "serviceLevelAgreement"
        assert pascal_case("service_level") == "ServiceLevel"

    def test_truncate_includes_suffix(self) -> None:
        assert truncate("Confidential information", 10) == "Confide..."
        assert truncate("short", 10) == "short"

    def test_clean_and_initials(self) -> None:
        assert clean("  too   many\n spaces ") == "too many spaces"
        assert initials("john ronald tolkien") == "JRT"

    @pytest.mark.parametrize(
        ("word", "count", "expected"),
        [("party", 2, "parties"), ("party", 1, "party"), ("box", 3, "boxes"), ("day", 2, "days"), ("clause", 0, "clauses")],
    )
    def test_pluralize(self, word: str, count: int, expected: str) -> None:
        assert pluralize(word, count) == expected

    def test_pluralize_explicit_plural(self) -> None:
        assert pluralize("person", 2, "people") == "people"

    def test_pad_start_and_contains(self) -> None:
        assert pad_start(7, 3, "0") == "007"
        assert contains("Governing Law", "law")
        assert not contains("Governing Law", "law", True)


# ============================================================================
# Math
# ============================================================================


class TestMath:
    def test_operations(self) -> None:
        assert multiply(4, "2.5") == 10
        assert divide(10, 4) == 2.5
        assert add("1", 2) == 3
        assert subtract(5, 7) == -2
        assert modulo(10, 3) == 1
        assert power(2, 10) == 1024

    def test_invalid_operands_give_nan(self) -> None:
        assert math.isnan(multiply("abc", 2))
        assert math.isnan(divide(1, 0))
        assert math.isnan(modulo(1, 0))

    def test_concat_uses_template_formatting(self) -> None:
        assert concat("Total: ", 3.0, " ", True) == "Total: 3 true"
