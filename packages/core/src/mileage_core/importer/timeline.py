"""Location-history JSON import (timeline exports).

Only driving segments are turned into trips. Each relevant entry looks
like:

    {"activitySegment": {
        "activityType": "IN_VEHICLE",
        "distance": 12500,
        "startLocation": {"latitudeE7": 455016890, "longitudeE7": -735672560},
        "endLocation": {"latitudeE7": 455500000, "longitudeE7": -736000000},
        "duration": {"startTimestamp": "2024-03-04T08:15:00Z"}}}

Distances arrive in meters and coordinates as fixed-point integers scaled
by 1e7. Segments under the noise floor are dropped silently.
"""

import json
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..config import ImportConfig
from ..models import Coordinates, SourceFormat, TripCandidate
from .dates import parse_timestamp_date
from .delimited import route_label

logger = structlog.get_logger()

METERS_PER_KM = Decimal("1000")
DISTANCE_PRECISION = Decimal("0.1")


def _coordinates(location: Any, scale: Decimal) -> Optional[Coordinates]:
    """Decode a latitudeE7/longitudeE7 location, None if absent or out of range."""
    if not isinstance(location, dict):
        return None
    lat = location.get("latitudeE7")
    lng = location.get("longitudeE7")
    if lat is None or lng is None:
        return None
    try:
        return Coordinates(
            latitude=float(Decimal(str(lat)) / scale),
            longitude=float(Decimal(str(lng)) / scale),
        )
    except (InvalidOperation, PydanticValidationError):
        logger.debug("timeline_coordinates_rejected", latitude=lat, longitude=lng)
        return None


def _segment_date(segment: dict) -> Optional[date]:
    duration = segment.get("duration")
    timestamp = None
    if isinstance(duration, dict):
        timestamp = duration.get("startTimestamp")
    return parse_timestamp_date(timestamp or segment.get("startTimestamp"))


def _entries(data: Any) -> list:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        entries = data.get("timelineObjects") or data.get("locations") or []
        return entries if isinstance(entries, list) else []
    return []


def parse_timeline_json(
    content: str,
    *,
    config: Optional[ImportConfig] = None,
    fallback_date: Optional[date] = None,
) -> list[TripCandidate]:
    """Extract driving segments from a timeline JSON export.

    Args:
        content: JSON document text
        config: Import settings (noise floor, coordinate scale, activity types)
        fallback_date: Date for segments without a usable timestamp

    Returns:
        Valid candidates, one per kept driving segment. A document that is
        not valid JSON yields an empty list.
    """
    config = config or ImportConfig()
    vehicle_types = set(config.vehicle_activity_types)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("location_history_parse_failed", format="json", error=str(e))
        return []

    candidates: list[TripCandidate] = []
    dropped = 0
    rejected = 0

    for index, item in enumerate(_entries(data), start=1):
        if not isinstance(item, dict):
            continue
        segment = item.get("activitySegment")
        if not isinstance(segment, dict):
            continue
        if segment.get("activityType") not in vehicle_types:
            continue

        raw_distance = segment.get("distance")
        if raw_distance is None:
            continue
        try:
            km = Decimal(str(raw_distance)) / METERS_PER_KM
        except InvalidOperation:
            continue

        if not km.is_finite() or km < config.noise_floor_km:
            dropped += 1
            continue

        try:
            distance = km.quantize(DISTANCE_PRECISION, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            logger.debug("timeline_distance_rejected", row=index, distance=str(raw_distance))
            rejected += 1
            continue

        start = _coordinates(segment.get("startLocation"), config.coordinate_scale)
        end = _coordinates(segment.get("endLocation"), config.coordinate_scale)
        label = route_label(start.label(), end.label()) if start and end else ""

        candidates.append(
            TripCandidate(
                date=_segment_date(segment) or fallback_date,
                route_label=label,
                distance=distance,
                start_coordinates=start,
                end_coordinates=end,
                source_format=SourceFormat.LOCATION_HISTORY,
                row_number=index,
            )
        )

    logger.info(
        "timeline_segments_parsed",
        kept=len(candidates),
        below_noise_floor=dropped,
        unusable_distance=rejected,
    )
    return candidates


__all__ = ["METERS_PER_KM", "parse_timeline_json"]
