"""Recurrence models for trip templates.

A TripTemplate pairs a per-trip distance with a RecurrencePattern. The
expander turns the pattern into concrete dates and the template into
Occurrence values.

Weekday indices follow the Sunday-first convention used by calendar
widgets: 0=Sunday, 1=Monday, ... 6=Saturday.
"""

import datetime
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RecurrenceKind(str, Enum):
    """How a trip template repeats."""

    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    IRREGULAR = "irregular"


# Kinds that enumerate a date range and therefore need an end date
RANGED_KINDS = frozenset({
    RecurrenceKind.DAILY,
    RecurrenceKind.WEEKLY,
    RecurrenceKind.BIWEEKLY,
    RecurrenceKind.MONTHLY,
})


def sunday_weekday(day: date) -> int:
    """Weekday index with Sunday=0 (Python's date.weekday() has Monday=0)."""
    return (day.weekday() + 1) % 7


class RecurrencePattern(BaseModel):
    """Rule describing on which dates a trip happens.

    For IRREGULAR patterns only specific_dates matters; end_date,
    days_of_week and exception_dates are ignored.
    """

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "kind": "weekly",
                    "anchor_date": "2024-01-03",
                    "end_date": "2024-03-31",
                    "days_of_week": [1, 3],
                    "exception_dates": ["2024-02-14"],
                }
            ]
        },
    }

    kind: RecurrenceKind = Field(
        default=RecurrenceKind.ONE_TIME,
        description="Recurrence rule",
    )
    anchor_date: date = Field(
        description="Date of the reference trip; expansion starts here",
    )
    end_date: Optional[date] = Field(
        default=None,
        description="Last date (inclusive) considered for ranged kinds",
    )
    days_of_week: frozenset[int] = Field(
        default_factory=frozenset,
        description="Weekday indices, 0=Sunday..6=Saturday",
    )
    exception_dates: frozenset[date] = Field(
        default_factory=frozenset,
        description="Dates removed from a generated schedule",
    )
    specific_dates: frozenset[date] = Field(
        default_factory=frozenset,
        description="Explicit dates for IRREGULAR patterns",
    )

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: frozenset[int]) -> frozenset[int]:
        """Weekday indices must be in 0..6."""
        bad = sorted(d for d in v if d < 0 or d > 6)
        if bad:
            raise ValueError(f"Weekday indices must be between 0 and 6, got {bad}")
        return v

    @property
    def requires_end_date(self) -> bool:
        """True when the kind enumerates a range and needs end_date."""
        return self.kind in RANGED_KINDS


class TripTemplate(BaseModel):
    """A trip as entered once by the user, before expansion."""

    model_config = {"frozen": True}

    distance_per_occurrence: Decimal = Field(
        ge=0,
        description="Distance in kilometers driven on each occurrence",
    )
    pattern: RecurrencePattern
    route_label: Optional[str] = Field(default=None, max_length=500)
    purpose: Optional[str] = Field(default=None, max_length=500)

    @field_validator("distance_per_occurrence", mode="before")
    @classmethod
    def coerce_distance_to_decimal(cls, v):
        """Coerce float/str distances to Decimal without float noise."""
        if isinstance(v, (float, int, str)) and not isinstance(v, bool):
            return Decimal(str(v))
        return v


class Occurrence(BaseModel):
    """One concrete trip produced by expanding a template."""

    model_config = {"frozen": True}

    date: datetime.date
    distance: Decimal = Field(ge=0)


__all__ = [
    "RecurrenceKind",
    "RANGED_KINDS",
    "sunday_weekday",
    "RecurrencePattern",
    "TripTemplate",
    "Occurrence",
]
