"""
amounts.py
----------
Parse localized numeric literals ("1 234,50", "1,234.50 CZK") into plain
floats, and render amounts back to display strings for chat responses.
"""

from __future__ import annotations

import logging
import math
import re
from typing import NamedTuple, Optional

from budget_tracker.errors import NotNumericError

logger = logging.getLogger(__name__)

CURRENCY_TOKENS = ["czk", "kč", "kc", "eur", "usd", "gbp", "chf", "pln", r"\$", "€", "£"]
_CURRENCY = "|".join(CURRENCY_TOKENS)
CURRENCY_SYMBOLS = {"KČ": "CZK", "KC": "CZK", "$": "USD", "€": "EUR", "£": "GBP"}

# Grouping separators that can never be a decimal point.
_SPACES = re.compile(r"[\s\u00A0\u202F\u2009]")
_CURRENCY_PREFIX = re.compile(rf"^\s*(?:{_CURRENCY})\s*", re.IGNORECASE)
_CURRENCY_SUFFIX = re.compile(rf"\s*(?:{_CURRENCY})\s*$", re.IGNORECASE)
_NUMERIC = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_COMMA_THOUSANDS = re.compile(r"[+-]?\d{1,3},\d{3}")

# A number inside free text: either digit groups of three separated by
# spaces/commas, or a plain run of digits, with an optional decimal part and
# an optional currency token right after it.
AMOUNT_PATTERN = re.compile(
    r"(?<![\w.,])"
    r"(?P<number>\d{1,3}(?:[ \u00A0\u202F\u2009,]\d{3})+(?:[.,]\d+)?|\d+(?:[.,]\d+)?)"
    rf"(?: ?(?P<currency>{_CURRENCY}))?",
    re.IGNORECASE,
)

# Date tokens ("12/01", "12.01.2025", "2026-12-31") are never amounts.
_DATE_LIKE = re.compile(
    r"\d{4}-\d{1,2}-\d{1,2}|\d{1,2}/\d{1,2}(?:/\d{2,4})?|\d{1,2}-\d{1,2}(?:-\d{2,4})?|\d{1,2}\.\d{1,2}\.(?:\d{2,4})?"
)

# Display rules: prefix, suffix, thousands separator, decimal separator.
CURRENCY_FORMATS = {
    "CZK": ("", " Kč", " ", ","),
    "EUR": ("", " €", " ", ","),
    "PLN": ("", " zł", " ", ","),
    "CHF": ("CHF ", "", "'", "."),
    "USD": ("$", "", ",", "."),
    "GBP": ("£", "", ",", "."),
}


class AmountMatch(NamedTuple):
    value: float
    currency: Optional[str]
    start: int
    end: int


def parse_amount(text: str) -> float:
    """Convert a localized numeric literal into a float.

    Whitespace of any kind is a thousands separator. When both ``,`` and ``.``
    appear the rightmost one is the decimal point; a lone comma followed by
    exactly three digits is read as grouping, any other lone comma as the
    decimal point. A leading or trailing currency token is ignored.

    Raises NotNumericError when nothing numeric remains.
    """
    if text is None:
        raise NotNumericError("No amount given")

    cleaned = _CURRENCY_SUFFIX.sub("", _CURRENCY_PREFIX.sub("", str(text)))
    cleaned = _SPACES.sub("", cleaned)
    if not cleaned:
        raise NotNumericError(f"Empty amount: {text!r}")

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        if cleaned.count(",") > 1 or _COMMA_THOUSANDS.fullmatch(cleaned):
            cleaned = cleaned.replace(",", "")
        else:
            cleaned = cleaned.replace(",", ".")

    if not _NUMERIC.fullmatch(cleaned):
        raise NotNumericError(f"Not a number: {text!r}")
    return float(cleaned)


def extract_amount(text: str, pos: int = 0) -> Optional[AmountMatch]:
    """Find the first amount in free text at or after ``pos``.

    Returns None when no parsable amount is present.
    """
    dates = [(m.start(), m.end()) for m in _DATE_LIKE.finditer(text)]
    for match in AMOUNT_PATTERN.finditer(text, pos):
        if any(start <= match.start() < end for start, end in dates):
            continue
        try:
            value = parse_amount(match.group("number"))
        except NotNumericError:
            continue
        currency = match.group("currency")
        if currency:
            currency = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
        return AmountMatch(value, currency, match.start(), match.end())
    return None


def _group_digits(amount: float, thousands: str, decimal: str) -> str:
    plain = f"{amount:,.2f}"
    return plain.replace(",", "\x00").replace(".", decimal).replace("\x00", thousands)


def format_currency(amount: float, currency_code: str = "CZK") -> str:
    """Render an amount for display, e.g. ``1 500,00 Kč`` or ``$1,500.00``."""
    try:
        if not math.isfinite(amount):
            raise ValueError(f"cannot format {amount!r}")
        code = currency_code.upper()
        sign = "-" if amount < 0 else ""
        if code in CURRENCY_FORMATS:
            prefix, suffix, thousands, decimal = CURRENCY_FORMATS[code]
            return f"{sign}{prefix}{_group_digits(abs(amount), thousands, decimal)}{suffix}"
        return f"{sign}{abs(amount):,.2f} {code}"
    except (AttributeError, TypeError, ValueError) as exc:
        logger.error("Error formatting currency: %s", exc)
        return f"{amount} {currency_code}"
