"""Date parsing shared by the trip importers."""

from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser

# Tried in order; the first format producing a real calendar date wins.
# %d and %m also accept single digits, which covers d/M/yyyy input.
DATE_FORMATS = (
    "%d/%m/%Y",   # 15/12/2024
    "%Y-%m-%d",   # 2024-12-15
    "%d-%m-%Y",   # 15-12-2024
    "%m/%d/%Y",   # 12/15/2024
    "%Y/%m/%d",   # 2024/12/15
)


def parse_trip_date(text: Optional[str]) -> Optional[date]:
    """Parse a spreadsheet date cell.

    Day-first formats are tried before month-first ones, so an ambiguous
    value such as 05/06/2024 is read as 5 June.

    Returns:
        The date, or None if no accepted format matches.
    """
    if not text:
        return None
    value = text.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_timestamp_date(text: Optional[str]) -> Optional[date]:
    """Calendar date of an ISO-8601 timestamp (as written, no tz shift)."""
    if not text or not isinstance(text, str):
        return None
    try:
        return date_parser.isoparse(text.strip()).date()
    except (ValueError, OverflowError):
        return None


__all__ = ["DATE_FORMATS", "parse_trip_date", "parse_timestamp_date"]
