"""Collaborator contracts and route-distance backfill.

The engine performs no I/O. The two services it works with, a driving
route lookup and the trip store, are described here as Protocols so any
client class with matching methods can be passed in without inheriting
from anything.

Example:
    class OsrmLookup:
        def lookup(self, start, end):
            ...  # call the routing service with its own timeout
            return RouteEstimate(distance_km=Decimal("12.4"), duration_minutes=18)

    filled = backfill_distances(batch.valid_candidates(), OsrmLookup())
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional, Protocol, Sequence, runtime_checkable

import structlog
from pydantic import BaseModel, Field

from .config import RoutingConfig
from .models import Coordinates, Occurrence, TripCandidate, YearToDateLedger

logger = structlog.get_logger()

DISTANCE_PRECISION = Decimal("0.1")


class RouteEstimate(BaseModel):
    """Driving distance and time between two points."""

    model_config = {"frozen": True}

    distance_km: Decimal = Field(ge=0)
    duration_minutes: Optional[float] = Field(default=None, ge=0)


@runtime_checkable
class RouteLookup(Protocol):
    """Driving route service.

    Implementations own their network timeout and cancellation. They
    return None when no route exists and may raise on transport errors;
    the backfill tolerates both.
    """

    def lookup(self, start: Coordinates, end: Coordinates) -> Optional[RouteEstimate]:
        ...


@runtime_checkable
class TripStore(Protocol):
    """Durable storage owned by the caller.

    The engine never calls this itself; it documents what the caller is
    expected to provide around it.
    """

    def save(self, records: Sequence[TripCandidate | Occurrence]) -> None:
        ...

    def year_to_date(self, year: int) -> YearToDateLedger:
        ...


def _lookup_with_retries(
    lookup: RouteLookup,
    candidate: TripCandidate,
    max_attempts: int,
) -> Optional[RouteEstimate]:
    last_error: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return lookup.lookup(candidate.start_coordinates, candidate.end_coordinates)
        except Exception as e:  # collaborator failures are non-fatal
            last_error = e
            logger.debug(
                "route_lookup_retry",
                row=candidate.row_number,
                attempt=attempt,
                error=str(e),
            )

    logger.warning(
        "route_lookup_failed",
        row=candidate.row_number,
        attempts=max_attempts,
        error=str(last_error),
    )
    return None


def _rounded_distance(
    estimate: Optional[RouteEstimate],
    candidate: TripCandidate,
) -> Optional[Decimal]:
    """Estimate distance rounded to 0.1 km, None if missing, zero or unusable."""
    if estimate is None or estimate.distance_km <= 0:
        return None
    try:
        return estimate.distance_km.quantize(DISTANCE_PRECISION, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.warning(
            "route_distance_rejected",
            row=candidate.row_number,
            distance=str(estimate.distance_km),
        )
        return None


def backfill_distances(
    candidates: Iterable[TripCandidate],
    lookup: RouteLookup,
    *,
    max_attempts: Optional[int] = None,
    config: Optional[RoutingConfig] = None,
) -> list[TripCandidate]:
    """Fill in route distances for candidates that only have coordinates.

    Only valid candidates with both endpoints and a zero distance are
    looked up. A failed or empty lookup leaves the candidate at distance 0;
    the caller decides whether to warn about it.

    Args:
        candidates: Normalized candidates, in any order
        lookup: Route service implementing RouteLookup
        max_attempts: Attempts per candidate (default from RoutingConfig)

    Returns:
        New list in the same order; untouched candidates are passed through
    """
    if max_attempts is None:
        max_attempts = (config or RoutingConfig()).max_attempts

    result: list[TripCandidate] = []
    filled = 0
    missing = 0

    for candidate in candidates:
        if not (candidate.needs_distance and candidate.has_coordinates):
            result.append(candidate)
            continue

        estimate = _lookup_with_retries(lookup, candidate, max_attempts)
        distance = _rounded_distance(estimate, candidate)
        if distance is None:
            missing += 1
            result.append(candidate)
            continue

        filled += 1
        result.append(candidate.with_distance(distance))

    logger.info("route_backfill_complete", filled=filled, missing=missing)
    return result


__all__ = [
    "RouteEstimate",
    "RouteLookup",
    "TripStore",
    "backfill_distances",
]
