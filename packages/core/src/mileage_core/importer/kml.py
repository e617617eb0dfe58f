"""Location-history KML import.

Scans <Placemark> blocks of a (simplified) KML document. The first and last
tuple of each <coordinates> list become the trip's endpoints; KML writes
tuples as "lon,lat[,alt]", so they are flipped into Coordinates. No distance
is computed here: candidates carry 0 until the route lookup fills it in.

Placemarks with fewer than two tuples (a <Point> marks a visited place,
not a movement) are skipped.
"""

import html
import re
from datetime import date
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..models import Coordinates, SourceFormat, TripCandidate
from .dates import parse_timestamp_date
from .delimited import route_label

logger = structlog.get_logger()

PLACEMARK_PATTERN = re.compile(r"<Placemark\b[^>]*>(.*?)</Placemark>", re.DOTALL)
COORDINATES_PATTERN = re.compile(r"<coordinates>(.*?)</coordinates>", re.DOTALL)
NAME_PATTERN = re.compile(r"<name>(.*?)</name>", re.DOTALL)
WHEN_PATTERN = re.compile(r"<when>(.*?)</when>", re.DOTALL)
CDATA_PATTERN = re.compile(r"^<!\[CDATA\[(.*)\]\]>$", re.DOTALL)


def _text(match: Optional[re.Match]) -> Optional[str]:
    if not match:
        return None
    value = match.group(1).strip()
    cdata = CDATA_PATTERN.match(value)
    if cdata:
        value = cdata.group(1).strip()
    return html.unescape(value) or None


def _parse_tuple(token: str) -> Optional[Coordinates]:
    """Parse "lon,lat[,alt]" into Coordinates, None if malformed."""
    parts = token.split(",")
    if len(parts) < 2:
        return None
    try:
        return Coordinates(longitude=float(parts[0]), latitude=float(parts[1]))
    except (ValueError, PydanticValidationError):
        return None


def parse_coordinate_list(text: str) -> list[Coordinates]:
    """All well-formed tuples of a whitespace-separated coordinate list."""
    points = (_parse_tuple(token) for token in text.split())
    return [p for p in points if p is not None]


def parse_kml(
    content: str,
    *,
    fallback_date: Optional[date] = None,
) -> list[TripCandidate]:
    """Extract one candidate per placemark with at least two coordinate tuples.

    Args:
        content: KML/XML document text
        fallback_date: Date for placemarks without a usable <when>; when
            None such candidates carry date=None and the caller decides

    Returns:
        Valid candidates with distance 0, in document order
    """
    candidates: list[TripCandidate] = []
    skipped = 0

    for index, match in enumerate(PLACEMARK_PATTERN.finditer(content), start=1):
        block = match.group(1)
        coordinates_text = _text(COORDINATES_PATTERN.search(block))
        points = parse_coordinate_list(coordinates_text) if coordinates_text else []
        if len(points) < 2:
            skipped += 1
            continue

        start, end = points[0], points[-1]
        name = _text(NAME_PATTERN.search(block))
        trip_date = parse_timestamp_date(_text(WHEN_PATTERN.search(block)))

        candidates.append(
            TripCandidate(
                date=trip_date or fallback_date,
                route_label=name or route_label(start.label(), end.label()),
                distance=Decimal("0"),
                start_coordinates=start,
                end_coordinates=end,
                source_format=SourceFormat.LOCATION_HISTORY,
                row_number=index,
            )
        )

    logger.info("kml_placemarks_parsed", kept=len(candidates), skipped=skipped)
    return candidates


__all__ = ["parse_coordinate_list", "parse_kml"]
