"""Distribution date normalisation.

Records in the store were captured by several revisions of the entry tool,
so a single sheet mixes ISO dates (sometimes with a time part), DD/MM/YYYY
strings, raw spreadsheet serial numbers and JavaScript Date strings. Every
shape is reduced to a (day, month, year) triple of zero-padded strings; an
unreadable value gives the all-empty triple instead of an error.
"""
import datetime as dt
import re
from functools import lru_cache
from typing import Any, NamedTuple, Optional

from dateutil.parser import parse as dateutil_parse


class DateParts(NamedTuple):
    """Canonical (day, month, year) triple, e.g. ("05", "03", "2025")."""
    day: str
    month: str
    year: str

    @property
    def is_empty(self) -> bool:
        return not (self.day and self.month and self.year)

    def to_date(self) -> Optional[dt.date]:
        """Return a real calendar date, or None if the triple is not one."""
        if self.is_empty:
            return None
        try:
            return dt.date(int(self.year), int(self.month), int(self.day))
        except ValueError:
            return None

    def iso(self) -> str:
        return "" if self.is_empty else f"{self.year}-{self.month}-{self.day}"


EMPTY_DATE = DateParts("", "", "")

# Day zero of spreadsheet serial dates
SHEETS_EPOCH = dt.date(1899, 12, 30)

_SERIAL_DATE = re.compile(r"^\d{5}(\.\d+)?$")
# "Wed Mar 05 2025 00:00:00 GMT+0000 (Coordinated Universal Time)"
_PAREN_SUFFIX = re.compile(r"\s*\(.*\)\s*$")
# A generic parse must give the same date against both defaults, otherwise
# dateutil filled in a missing field by itself.
_GENERIC_DEFAULTS = (dt.datetime(2000, 1, 1), dt.datetime(2001, 2, 2))


def _from_date(value: dt.date) -> DateParts:
    return DateParts(f"{value.day:02d}", f"{value.month:02d}", f"{value.year:04d}")


def _parse_generic(text: str) -> DateParts:
    cleaned = _PAREN_SUFFIX.sub("", text).strip()
    if not cleaned:
        return EMPTY_DATE
    try:
        first = dateutil_parse(cleaned, dayfirst=True, default=_GENERIC_DEFAULTS[0])
        second = dateutil_parse(cleaned, dayfirst=True, default=_GENERIC_DEFAULTS[1])
    except (ValueError, OverflowError, TypeError):
        return EMPTY_DATE
    if first.date() != second.date():
        return EMPTY_DATE
    return _from_date(first)


def _parse_dashed(text: str) -> DateParts:
    # Time component after "T" (or a space) is irrelevant
    head = text.split("T", 1)[0].strip()
    parts = head.split()[0].split("-") if head else []
    if len(parts) == 3 and len(parts[0]) == 4 and all(p.isdigit() for p in parts):
        return DateParts(parts[2].zfill(2), parts[1].zfill(2), parts[0])
    return _parse_generic(text)


def _parse_slashed(text: str) -> DateParts:
    parts = [p.strip() for p in text.split("/")]
    if len(parts) < 3:
        return EMPTY_DATE
    if len(parts[0]) == 4 and parts[0].isdigit():
        # YYYY/MM/DD
        year, month, day = parts[0], parts[1], parts[2][:2].strip()
    else:
        day, month, year = parts[0], parts[1], parts[2][:4]
    if not (day.isdigit() and month.isdigit() and year.isdigit() and len(year) == 4):
        return EMPTY_DATE
    return DateParts(day.zfill(2), month.zfill(2), year)


def _parse_serial(text: str) -> DateParts:
    try:
        value = SHEETS_EPOCH + dt.timedelta(days=int(float(text)))
    except (ValueError, OverflowError):
        return EMPTY_DATE
    return _from_date(value)


@lru_cache(maxsize=8192)
def _normalize_text(text: str) -> DateParts:
    if not text:
        return EMPTY_DATE
    if "-" in text:
        return _parse_dashed(text)
    if "/" in text:
        return _parse_slashed(text)
    if _SERIAL_DATE.match(text):
        return _parse_serial(text)
    return _parse_generic(text)


def normalize_date(value: Any) -> DateParts:
    """Normalise a distribution date to a (day, month, year) triple.

    Accepted shapes:
    - ``YYYY-MM-DD`` with an optional ``THH:MM:SS...`` suffix
    - ``DD/MM/YYYY`` with optional trailing time or whitespace
    - spreadsheet serial day numbers (``45721``)
    - anything else python-dateutil can read without guessing a field

    Never raises; unparsable input gives ``EMPTY_DATE``.
    """
    if value is None:
        return EMPTY_DATE
    if isinstance(value, dt.datetime):
        return _from_date(value.date())
    if isinstance(value, dt.date):
        return _from_date(value)
    return _normalize_text(str(value).strip())


def format_date_fr(value: Any) -> str:
    """Render a date as DD/MM/YYYY, or the raw text when it cannot be read."""
    parts = normalize_date(value)
    if parts.is_empty:
        return "" if value is None else str(value)
    return f"{parts.day}/{parts.month}/{parts.year}"
