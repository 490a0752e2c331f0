"""
receipt_extractor.py
--------------------

Turn the raw text recognised on a photographed receipt into the three
fields the app needs to book an expense: the total, the date and the
store name.

Each field is found by its own pass over the same text and every pass has
a fallback value, so extraction never fails:

* total: the largest amount printed with exactly two decimals, else ``0``
* date: the first date pattern found (US, ISO, European, month name),
  else today
* store: the first short line near the top that is not a header word or a
  bare number, else ``"Unknown"``

The result is a best guess that the user confirms before it is saved.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

UNKNOWN_STORE = "Unknown"

# 1-8 digits, a dot and exactly two digits, optionally prefixed with "$"
AMOUNT_PATTERN = re.compile(r"\$?\s*([0-9]{1,8}\.[0-9]{2})(?![0-9A-Za-z_])")

US_DATE_PATTERN = re.compile(r"([0-9]{1,2})/([0-9]{1,2})/([0-9]{4})")
ISO_DATE_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
EU_DATE_PATTERN = re.compile(r"([0-9]{1,2})\.([0-9]{1,2})\.([0-9]{4})")

MONTH_ABBREVIATIONS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]
MONTH_PATTERNS = [
    re.compile(rf"({abbr})[A-Za-z0-9_]*\s+([0-9]{{1,2}})(?:,\s*)?([0-9]{{4}})?", re.IGNORECASE)
    for abbr in MONTH_ABBREVIATIONS
]

STORE_SKIP_PATTERN = re.compile(r"^(total|subtotal|tax|date|time|reprint|prepaid|receipt)\s*$", re.IGNORECASE)
NUMERIC_LINE_PATTERN = re.compile(r"^[0-9]+\.?[0-9]*$")
# Whitespace plus the byte-order mark, which str.strip() keeps
EDGE_SPACE_PATTERN = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")
STORE_SCAN_LINES = 8
STORE_MIN_LENGTH = 2
STORE_MAX_LENGTH = 40
STORE_NAME_LIMIT = 50


class ExtractedReceipt(BaseModel):
    """Best-guess fields read from a receipt."""

    total: float = Field(0.0, ge=0, description="Largest two-decimal amount on the receipt")
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="Receipt date as YYYY-MM-DD")
    store: str = Field(UNKNOWN_STORE, min_length=1, max_length=STORE_NAME_LIMIT)


def extract_from_receipt_text(text: str, today: Optional[date] = None) -> ExtractedReceipt:
    """Extract total, date and store from OCR text.

    Args:
        text: Raw text recognised on the receipt. May be empty.
        today: Date used for the fallback date and for month-name dates
            without a year. Defaults to the current local date.
    """
    today = today or date.today()

    total = extract_total(text)
    receipt_date = extract_date(text, today)
    store = extract_store(text)

    logger.debug("Extracted receipt: total=%s date=%s store=%r", total, receipt_date, store)
    return ExtractedReceipt(total=total, date=receipt_date, store=store)


def extract_total(text: str) -> float:
    # Grand total is assumed to be the largest amount printed
    values = [float(match.group(1)) for match in AMOUNT_PATTERN.finditer(text)]
    if not values:
        return 0.0
    return max(values)


# --- Date matchers ---

def _us_date(text: str, today: date) -> Optional[str]:
    match = US_DATE_PATTERN.search(text)
    if not match:
        return None
    month, day, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def _iso_date(text: str, today: date) -> Optional[str]:
    match = ISO_DATE_PATTERN.search(text)
    return match.group(0) if match else None


def _eu_date(text: str, today: date) -> Optional[str]:
    match = EU_DATE_PATTERN.search(text)
    if not match:
        return None
    day, month, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def _month_name_date(text: str, today: date) -> Optional[str]:
    # Months are tried in calendar order, not by position in the text
    for index, pattern in enumerate(MONTH_PATTERNS, start=1):
        match = pattern.search(text)
        if match:
            day = match.group(2).zfill(2)
            year = match.group(3) or str(today.year)
            return f"{year}-{index:02d}-{day}"
    return None


DATE_MATCHERS: List[Callable[[str, date], Optional[str]]] = [
    _us_date,
    _iso_date,
    _eu_date,
    _month_name_date,
]


def extract_date(text: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    for matcher in DATE_MATCHERS:
        found = matcher(text, today)
        if found is not None:
            return found
    return today.isoformat()


def extract_store(text: str) -> str:
    """Return the first plausible store name among the top lines."""
    lines = [EDGE_SPACE_PATTERN.sub("", line) for line in text.splitlines()]
    lines = [line for line in lines if line]
    for line in lines[:STORE_SCAN_LINES]:
        if not STORE_MIN_LENGTH <= len(line) <= STORE_MAX_LENGTH:
            continue
        if STORE_SKIP_PATTERN.match(line) or NUMERIC_LINE_PATTERN.match(line):
            continue
        return line[:STORE_NAME_LIMIT]
    return UNKNOWN_STORE
