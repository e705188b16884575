"""Unit tests for relative date resolution"""

from datetime import date, datetime

import pytest

from budget_tracker.dates import (
    format_long_date,
    format_month_day,
    format_short_date,
    month_bounds,
    parse_explicit_date,
    resolve_date,
)
from budget_tracker.errors import UnrecognizedDateError

NOW = date(2025, 1, 10)  # Friday


@pytest.mark.parametrize(
    "phrase, expected",
    [
        ("today", date(2025, 1, 10)),
        ("tomorrow", date(2025, 1, 11)),
        ("yesterday", date(2025, 1, 9)),
        ("next week", date(2025, 1, 17)),
        ("last week", date(2025, 1, 3)),
        ("next weekend", date(2025, 1, 11)),
        ("next monday", date(2025, 1, 13)),
        ("next friday", date(2025, 1, 17)),
        ("last friday", date(2025, 1, 3)),
        ("last sunday", date(2025, 1, 5)),
    ],
)
def test_resolve_relative_phrases(phrase, expected):
    assert resolve_date(phrase, NOW) == expected


def test_last_weekend_is_tuesday_before_this_week():
    # Monday of the current week is 2025-01-06
    assert resolve_date("last weekend", NOW) == date(2024, 12, 31)


def test_resolve_is_case_and_space_insensitive():
    assert resolve_date("  Next   Week ", NOW) == date(2025, 1, 17)


def test_resolve_accepts_datetime_reference():
    assert resolve_date("today", datetime(2025, 1, 10, 23, 30)) == date(2025, 1, 10)


@pytest.mark.parametrize(
    "phrase, expected",
    [
        ("15/03", date(2025, 3, 15)),
        ("15.03.26", date(2026, 3, 15)),
        ("1-2-2024", date(2024, 2, 1)),
        ("2026-12-31", date(2026, 12, 31)),
        ("12.3.", date(2025, 3, 12)),
    ],
)
def test_resolve_explicit_dates(phrase, expected):
    assert resolve_date(phrase, NOW) == expected


@pytest.mark.parametrize("phrase", ["someday", "", "31/02/2025", "next year"])
def test_resolve_unrecognized(phrase):
    with pytest.raises(UnrecognizedDateError):
        resolve_date(phrase, NOW)


def test_parse_explicit_date_rejects_relative_words():
    with pytest.raises(UnrecognizedDateError):
        parse_explicit_date("tomorrow", NOW)


@pytest.mark.parametrize("phrase", ["today", "tomorrow", "next week", "last weekend", "next saturday"])
def test_formatted_date_resolves_back_to_itself(phrase):
    resolved = resolve_date(phrase, NOW)
    assert resolve_date(format_short_date(resolved), NOW) == resolved


def test_month_bounds_handles_leap_february():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_display_formats():
    assert format_long_date(date(2026, 12, 31)) == "December 31st, 2026"
    assert format_long_date(date(2026, 12, 12)) == "December 12th, 2026"
    assert format_long_date(date(2026, 12, 22)) == "December 22nd, 2026"
    assert format_month_day(date(2025, 1, 11)) == "Jan 11"
