"""Delimited-text (CSV) trip import.

Expected columns, after a header row that is always skipped:

    Date, Origin, Destination, Distance, Purpose (optional)

Every data row yields exactly one TripCandidate. Rows that cannot be used
are returned with an error reason instead of being dropped, so the caller
can show "N valid / M invalid" and let the user fix the file.
"""

import csv
import io
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog

from ..models import ImportErrorReason, SourceFormat, TripCandidate
from .dates import parse_trip_date

logger = structlog.get_logger()

MIN_COLUMNS = 4

# Leading number, decimal point already normalized ("25.5 km" -> 25.5)
DISTANCE_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")

ROUTE_SEPARATOR = " → "


def parse_distance(text: Optional[str]) -> Optional[Decimal]:
    """Parse a distance cell accepting ',' or '.' as decimal separator.

    Returns:
        The parsed value (possibly zero or negative), or None if the cell
        does not start with a number.
    """
    if not text:
        return None
    normalized = text.strip().replace(",", ".", 1)
    match = DISTANCE_PATTERN.match(normalized)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def route_label(origin: str, destination: str) -> str:
    return f"{origin}{ROUTE_SEPARATOR}{destination}"


def _clean(value: str) -> str:
    return value.strip().strip('"').strip()


def _reject(row_number: int, reason: ImportErrorReason, **fields) -> TripCandidate:
    logger.debug("import_row_rejected", row=row_number, reason=reason.value)
    return TripCandidate(
        source_format=SourceFormat.DELIMITED_TEXT,
        row_number=row_number,
        error=reason,
        **fields,
    )


def parse_row(values: list[str], row_number: int) -> TripCandidate:
    """Turn one split row into a candidate (valid or not)."""
    values = [_clean(v) for v in values]

    if len(values) < MIN_COLUMNS:
        return _reject(
            row_number,
            ImportErrorReason.INSUFFICIENT_COLUMNS,
            raw_date=values[0] if values and values[0] else None,
        )

    date_text, origin, destination, distance_text = values[:4]
    purpose = values[4] if len(values) > 4 and values[4] else None
    label = route_label(origin, destination)
    distance = parse_distance(distance_text)

    trip_date = parse_trip_date(date_text)
    if trip_date is None:
        return _reject(
            row_number,
            ImportErrorReason.INVALID_DATE,
            raw_date=date_text,
            route_label=label,
            distance=distance if distance is not None and distance > 0 else Decimal("0"),
            purpose=purpose,
        )

    if distance is None or distance <= 0:
        return _reject(
            row_number,
            ImportErrorReason.INVALID_DISTANCE,
            date=trip_date,
            raw_date=date_text,
            route_label=label,
            purpose=purpose,
        )

    return TripCandidate(
        date=trip_date,
        raw_date=date_text,
        route_label=label,
        distance=distance,
        purpose=purpose,
        start_address=origin,
        end_address=destination,
        source_format=SourceFormat.DELIMITED_TEXT,
        row_number=row_number,
    )


def parse_delimited(content: str, *, delimiter: str = ",") -> list[TripCandidate]:
    """Parse delimited text into one candidate per non-blank data row.

    Args:
        content: Whole file content, header row included
        delimiter: Single-character column separator

    Returns:
        Candidates in file order; empty if there is no data row
    """
    reader = csv.reader(io.StringIO(content), delimiter=delimiter)
    rows = [
        (reader.line_num, row)
        for row in reader
        if any(cell.strip() for cell in row)
    ]
    if len(rows) < 2:
        return []

    # First non-blank row is the header
    return [parse_row(row, line_number) for line_number, row in rows[1:]]


__all__ = [
    "MIN_COLUMNS",
    "ROUTE_SEPARATOR",
    "parse_distance",
    "route_label",
    "parse_row",
    "parse_delimited",
]
