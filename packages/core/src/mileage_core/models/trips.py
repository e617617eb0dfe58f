"""Trip candidate models produced by the import normalizer.

Every input row or record becomes at most one TripCandidate. A candidate is
either valid (error is None) or carries the reason it was rejected; the
two states cannot disagree because validity is derived from the error.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator


class SourceFormat(str, Enum):
    """Kinds of documents the normalizer accepts."""

    DELIMITED_TEXT = "delimited-text"
    LOCATION_HISTORY = "location-history"


class ImportErrorReason(str, Enum):
    """Why a delimited-text row was rejected."""

    INSUFFICIENT_COLUMNS = "insufficient columns"
    INVALID_DATE = "invalid date"
    INVALID_DISTANCE = "invalid distance"


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = {"frozen": True}

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def label(self) -> str:
        """Short display form, four decimals each."""
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


class TripCandidate(BaseModel):
    """A parsed trip awaiting persistence.

    Attributes:
        date: Trip date; None when the source carried no usable timestamp
        raw_date: Date text as found in the source, kept for invalid rows
        route_label: "origin → destination" or a coordinate/placemark label
        distance: Kilometers; 0 when the route lookup still has to fill it
        error: Rejection reason; None for valid candidates
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2024-12-15",
                    "route_label": "Home → Client Office",
                    "distance": "25.5",
                    "purpose": "Client meeting",
                    "start_address": "Home",
                    "end_address": "Client Office",
                    "source_format": "delimited-text",
                    "row_number": 2,
                }
            ]
        },
    }

    date: Optional[datetime.date] = None
    raw_date: Optional[str] = None
    route_label: str = ""
    distance: Decimal = Field(default=Decimal("0"))
    purpose: Optional[str] = None
    start_address: Optional[str] = None
    end_address: Optional[str] = None
    start_coordinates: Optional[Coordinates] = None
    end_coordinates: Optional[Coordinates] = None
    source_format: SourceFormat = SourceFormat.DELIMITED_TEXT
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-based line or record number in the source document",
    )
    error: Optional[ImportErrorReason] = None

    @model_validator(mode="after")
    def check_valid_distance(self) -> "TripCandidate":
        """Valid candidates never carry a negative distance."""
        if self.error is None and self.distance < 0:
            raise ValueError("Valid trip candidates require a non-negative distance")
        return self

    @computed_field
    @property
    def valid(self) -> bool:
        """True when the candidate can be persisted."""
        return self.error is None

    @property
    def has_coordinates(self) -> bool:
        return self.start_coordinates is not None and self.end_coordinates is not None

    @property
    def needs_distance(self) -> bool:
        """Valid candidate still waiting for a route distance."""
        return self.valid and self.distance == 0

    def with_distance(self, distance: Decimal) -> "TripCandidate":
        """Return a copy with the distance filled in."""
        return self.model_copy(update={"distance": distance})


class ImportBatch(BaseModel):
    """The result of normalizing one document."""

    model_config = {"frozen": True}

    source_format: SourceFormat
    candidates: tuple[TripCandidate, ...] = Field(default_factory=tuple)

    @computed_field
    @property
    def valid_count(self) -> int:
        return sum(1 for c in self.candidates if c.valid)

    @computed_field
    @property
    def invalid_count(self) -> int:
        return sum(1 for c in self.candidates if not c.valid)

    def valid_candidates(self) -> list[TripCandidate]:
        """Candidates safe to persist."""
        return [c for c in self.candidates if c.valid]

    def invalid_candidates(self) -> list[TripCandidate]:
        return [c for c in self.candidates if not c.valid]

    def error_counts(self) -> dict[ImportErrorReason, int]:
        """Number of rejected candidates per reason."""
        counts: dict[ImportErrorReason, int] = {}
        for candidate in self.candidates:
            if candidate.error is not None:
                counts[candidate.error] = counts.get(candidate.error, 0) + 1
        return counts


__all__ = [
    "SourceFormat",
    "ImportErrorReason",
    "Coordinates",
    "TripCandidate",
    "ImportBatch",
]
