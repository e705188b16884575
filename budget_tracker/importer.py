"""
importer.py
-----------
Import a bank statement CSV export of unknown encoding into normalized
transaction drafts. Rows that are incomplete, in another currency or carry
an unreadable amount are skipped and counted; the import itself never fails
because of a bad row.
"""

from __future__ import annotations

import io
import logging
from typing import List, Optional, Protocol, Tuple

import pandas as pd

from budget_tracker.amounts import parse_amount
from budget_tracker.config import get_settings
from budget_tracker.errors import NotNumericError
from budget_tracker.models import UNCATEGORIZED, ImportResult, ImportRow, TransactionDraft

logger = logging.getLogger(__name__)

# Column names of the supported bank export.
DATE_COLUMN = "Datum zaúčtování"
DESCRIPTION_COLUMN = "Popis operace"
AMOUNT_COLUMN = "Částka"
CURRENCY_COLUMN = "Měna"
REQUIRED_COLUMNS = [DATE_COLUMN, DESCRIPTION_COLUMN, AMOUNT_COLUMN, CURRENCY_COLUMN]

BANK_HEADER_FINGERPRINT = "Datum zaúčtování;Valuta;Typ operace"
DEFAULT_ENCODING = "utf-8-sig"
SAMPLE_CHARS = 500

# Exports carrying the bank header are re-decoded with the legacy code page
# even when they are valid UTF-8. Pass FixedEncoding to keep UTF-8.
LEGACY_ON_FINGERPRINT = True

SKIP_MISSING_FIELD = "missing field"
SKIP_CURRENCY_MISMATCH = "currency mismatch"
SKIP_UNPARSABLE_AMOUNT = "unparsable amount"
SKIP_UNPARSABLE_DATE = "unparsable date"
SKIP_MALFORMED_ROW = "malformed row"


class EncodingDetector(Protocol):
    def __call__(self, raw: bytes) -> str: ...


class FixedEncoding:
    """Use an encoding chosen by the user instead of guessing."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding

    def __call__(self, raw: bytes) -> str:
        return self.encoding


class HeuristicEncodingDetector:
    """Guess between UTF-8 and a legacy 8-bit code page.

    UTF-8 wins unless the bytes are not valid UTF-8, the decoded text
    contains the bank header fingerprint, or it carries C1 control characters
    (0x80-0x9F) in its first ``sample_chars`` characters. This is a guess:
    either choice can come out garbled.
    """

    def __init__(
        self,
        legacy_encoding: Optional[str] = None,
        fingerprint: str = BANK_HEADER_FINGERPRINT,
        sample_chars: int = SAMPLE_CHARS,
        legacy_on_fingerprint: bool = LEGACY_ON_FINGERPRINT,
    ) -> None:
        self.legacy_encoding = legacy_encoding or get_settings().statement_legacy_encoding
        self.fingerprint = fingerprint
        self.sample_chars = sample_chars
        self.legacy_on_fingerprint = legacy_on_fingerprint

    def __call__(self, raw: bytes) -> str:
        try:
            text = raw.decode(DEFAULT_ENCODING)
        except UnicodeDecodeError:
            legacy_text = raw.decode(self.legacy_encoding, errors="replace")
            if self.fingerprint in legacy_text:
                logger.info("Detected %s encoding based on header", self.legacy_encoding)
            else:
                logger.info("Detected non-UTF-8 bytes, assuming %s", self.legacy_encoding)
            return self.legacy_encoding

        if self.fingerprint in text:
            if self.legacy_on_fingerprint:
                logger.info("Detected bank header, re-decoding as %s", self.legacy_encoding)
                return self.legacy_encoding
            logger.info("Detected bank header in UTF-8 text")
            return DEFAULT_ENCODING
        if any("\x80" <= ch <= "\x9f" for ch in text[: self.sample_chars]):
            logger.info("Detected C1 control characters, assuming %s", self.legacy_encoding)
            return self.legacy_encoding
        logger.debug("Assuming UTF-8 encoding")
        return DEFAULT_ENCODING


def _sniff_delimiter(text: str) -> str:
    header = text.split("\n", 1)[0]
    return ";" if ";" in header else ","


def _read_frame(text: str) -> Tuple[pd.DataFrame, int]:
    """Load the CSV as strings; returns the frame and the number of malformed lines."""
    bad_lines: List[List[str]] = []

    def on_bad_line(line: List[str]) -> None:
        bad_lines.append(line)
        return None

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            sep=_sniff_delimiter(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=on_bad_line,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=REQUIRED_COLUMNS), 0

    frame.columns = [str(c).strip() for c in frame.columns]
    for col in REQUIRED_COLUMNS:
        if col not in frame.columns:
            logger.warning("Statement is missing column %r", col)
            frame[col] = ""
    frame = frame.fillna("")
    return frame, len(bad_lines)


def _booking_dates(values: pd.Series) -> pd.Series:
    dates = pd.to_datetime(values.str.strip(), format="%d.%m.%Y", errors="coerce")
    iso = pd.to_datetime(values.str.strip(), format="%Y-%m-%d", errors="coerce")
    return dates.fillna(iso)


def _parse_row(line: int, row: pd.Series, booked: pd.Timestamp, target_currency: str) -> ImportRow:
    date_text = row[DATE_COLUMN].strip()
    description = row[DESCRIPTION_COLUMN].strip()
    amount_text = row[AMOUNT_COLUMN].strip()
    currency = row[CURRENCY_COLUMN].strip()

    if not (date_text and description and amount_text and currency):
        return ImportRow(line=line, skip_reason=SKIP_MISSING_FIELD)
    if currency.upper() != target_currency.upper():
        return ImportRow(line=line, skip_reason=SKIP_CURRENCY_MISMATCH)
    try:
        amount = parse_amount("".join(amount_text.split()))
    except NotNumericError:
        return ImportRow(line=line, skip_reason=SKIP_UNPARSABLE_AMOUNT)
    if pd.isna(booked):
        return ImportRow(line=line, skip_reason=SKIP_UNPARSABLE_DATE)

    draft = TransactionDraft(
        date=booked.date(),
        description=description,
        amount=amount,
        category=UNCATEGORIZED,
    )
    return ImportRow(line=line, transaction=draft)


def parse_rows(text: str, target_currency: str) -> List[ImportRow]:
    """Parse decoded statement text into one ImportRow per data row."""
    frame, malformed = _read_frame(text)
    booked = _booking_dates(frame[DATE_COLUMN])

    rows = [
        _parse_row(line, row, booked[idx], target_currency)
        for line, (idx, row) in enumerate(frame.iterrows(), start=1)
    ]
    rows.extend(
        ImportRow(line=len(frame) + n, skip_reason=SKIP_MALFORMED_ROW) for n in range(1, malformed + 1)
    )
    return rows


def import_statement(
    raw: bytes,
    target_currency: str,
    detector: Optional[EncodingDetector] = None,
) -> ImportResult:
    """Decode a statement export and normalize its rows.

    Only rows in ``target_currency`` are accepted. Accepted drafts keep the
    file's row order and are not assigned ids.
    """
    detector = detector or HeuristicEncodingDetector()
    encoding = detector(raw)
    text = raw.decode(encoding, errors="replace")

    rows = parse_rows(text, target_currency)
    accepted = [r.transaction for r in rows if r.transaction is not None]
    skipped = [r for r in rows if r.transaction is None]
    for r in skipped:
        logger.warning("Skipping row %d: %s", r.line, r.skip_reason)

    logger.info(
        "Imported %d transactions, skipped %d rows (encoding %s)",
        len(accepted),
        len(skipped),
        encoding,
    )
    return ImportResult(accepted=accepted, skipped=len(skipped), encoding=encoding, rows=rows)
