"""Unit tests for locale-aware amount parsing and formatting"""

import pytest

from budget_tracker.amounts import extract_amount, format_currency, parse_amount
from budget_tracker.errors import NotNumericError


@pytest.mark.parametrize(
    "text",
    ["1 234,50", "1,234.50", "1234.5", "1\u00a0234,50", "1\u202f234,50", "1.234,50", "1234,5"],
)
def test_parse_amount_grouping_and_decimal_variants(text):
    assert parse_amount(text) == 1234.5


def test_parse_amount_keeps_sign():
    assert parse_amount("-1 234,50") == -1234.5


def test_parse_amount_drops_currency_token():
    assert parse_amount("500 CZK") == 500
    assert parse_amount("250 Kč") == 250
    assert parse_amount("$1,234.50") == 1234.5


def test_parse_amount_comma_followed_by_three_digits_is_grouping():
    assert parse_amount("1,234") == 1234
    assert parse_amount("1,234,567.89") == 1234567.89


@pytest.mark.parametrize("text", ["", "   ", "abc", "12a", "1.2.3"])
def test_parse_amount_rejects_non_numeric(text):
    with pytest.raises(NotNumericError):
        parse_amount(text)


def test_not_numeric_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_amount("twelve")


def test_extract_amount_finds_first_number():
    match = extract_amount("add expense 500 for groceries")
    assert match.value == 500
    assert match.currency is None


def test_extract_amount_reads_grouped_number_and_currency():
    match = extract_amount("spent 1 500 czk on fuel")
    assert match.value == 1500
    assert match.currency == "CZK"


def test_extract_amount_skips_dates():
    assert extract_amount("on 12/01 I spent 300").value == 300


def test_extract_amount_none_without_number():
    assert extract_amount("hello there") is None


def test_format_currency_known_codes():
    assert format_currency(1500, "CZK") == "1 500,00 Kč"
    assert format_currency(1500, "USD") == "$1,500.00"
    assert format_currency(1234.5, "EUR") == "1 234,50 €"


def test_format_currency_negative_amount():
    assert format_currency(-20, "USD") == "-$20.00"


def test_format_currency_unknown_code_uses_code_suffix():
    assert format_currency(1500, "XYZ") == "1,500.00 XYZ"


def test_format_currency_falls_back_to_plain_text():
    assert format_currency(1500, None) == "1500 None"


@pytest.mark.parametrize("amount, expected", [("abc", "abc CZK"), (None, "None CZK"), (float("nan"), "nan CZK")])
def test_format_currency_never_raises_for_bad_amounts(amount, expected):
    assert format_currency(amount, "CZK") == expected
