"""
dates.py
--------
Resolve date phrases ("tomorrow", "next friday", "12/3/25") to calendar
dates relative to a reference day. Weeks start on Monday.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Tuple, Union

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from budget_tracker.errors import UnrecognizedDateError

DateLike = Union[date, datetime]

WEEKDAYS = {
    "monday": MO,
    "tuesday": TU,
    "wednesday": WE,
    "thursday": TH,
    "friday": FR,
    "saturday": SA,
    "sunday": SU,
}

RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}

# "next week" / "last week" land on this day of the target week.
WEEK_TARGET_OFFSET = 4  # Friday

# Known approximation: "last weekend" resolves to the Tuesday preceding the
# Monday that starts the current week, not to the previous Saturday.
LAST_WEEKEND_ANCHOR = TU

_WEEK_WORDS = "week|weekend|" + "|".join(WEEKDAYS)
_RELATIVE_PHRASE = re.compile(rf"(next|last) ({_WEEK_WORDS})")
_ISO_DATE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
_DMY_DATE = re.compile(r"(\d{1,2})[./-](\d{1,2})(?:[./-](\d{4}|\d{2}))?")

# A date phrase sitting at the very end of a command.
TRAILING_DATE_PHRASE = re.compile(
    rf"(?:^|\s)(today|tomorrow|yesterday|(?:next|last) (?:{_WEEK_WORDS})"
    r"|\d{4}-\d{1,2}-\d{1,2}|\d{1,2}[./-]\d{1,2}(?:[./-]\d{2,4})?)$",
    re.IGNORECASE,
)


def as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def month_bounds(day: DateLike) -> Tuple[date, date]:
    """First and last calendar day of the month containing ``day``."""
    first = as_date(day).replace(day=1)
    return first, first + relativedelta(months=1, days=-1)


def parse_explicit_date(text: str, now: DateLike) -> date:
    """Parse ``dd/mm``, ``dd/mm/yy``, ``dd/mm/yyyy`` (``/``, ``.`` or ``-``)
    or ISO ``yyyy-mm-dd``. A missing year defaults to the year of ``now``.
    """
    cleaned = text.strip()
    try:
        iso = _ISO_DATE.fullmatch(cleaned)
        if iso:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

        dmy = _DMY_DATE.fullmatch(cleaned)
        if dmy:
            day, month, year = dmy.groups()
            if year is None:
                full_year = as_date(now).year
            elif len(year) == 2:
                full_year = 2000 + int(year)
            else:
                full_year = int(year)
            return date(full_year, int(month), int(day))
    except ValueError as exc:
        raise UnrecognizedDateError(f"Invalid calendar date: {text!r}") from exc

    raise UnrecognizedDateError(f"Unrecognized date: {text!r}")


def _resolve_relative(direction: str, unit: str, today: date) -> date:
    step = 1 if direction == "next" else -1

    if unit == "week":
        return start_of_week(today + timedelta(days=7 * step)) + timedelta(days=WEEK_TARGET_OFFSET)
    if unit == "weekend":
        if step > 0:
            return today + relativedelta(days=+1, weekday=SA(+1))
        return start_of_week(today) + relativedelta(days=-1, weekday=LAST_WEEKEND_ANCHOR(-1))

    weekday = WEEKDAYS[unit]
    return today + relativedelta(days=step, weekday=weekday(step))


def resolve_date(phrase: str, now: DateLike) -> date:
    """Turn a date phrase into an absolute date.

    Recognized, in order: ``today``/``tomorrow``/``yesterday``;
    ``next``/``last`` followed by ``week``, ``weekend`` or a weekday name;
    an explicit date (see ``parse_explicit_date``).

    Raises UnrecognizedDateError when nothing matches; callers fall back to
    the date of ``now``.
    """
    today = as_date(now)
    cleaned = " ".join((phrase or "").lower().split()).strip(" ,.!?")

    if cleaned in RELATIVE_DAYS:
        return today + timedelta(days=RELATIVE_DAYS[cleaned])

    relative = _RELATIVE_PHRASE.fullmatch(cleaned)
    if relative:
        return _resolve_relative(relative.group(1), relative.group(2), today)

    return parse_explicit_date(cleaned, today)


def format_short_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def format_month_day(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}"


def _ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_long_date(day: date) -> str:
    """``December 31st, 2026``"""
    return f"{day.strftime('%B')} {_ordinal(day.day)}, {day.year}"
