"""Data models for mileage-core.

This package provides the value types passed between the engine and its
caller:
- Recurrence patterns, templates and occurrences (recurrence.py)
- Deduction schedules, ledgers and results (deduction.py)
- Imported trip candidates and batches (trips.py)
- Recurring-trip plans and yearly summaries (plan.py)
"""

from mileage_core.models.recurrence import (
    RecurrenceKind,
    RANGED_KINDS,
    sunday_weekday,
    RecurrencePattern,
    TripTemplate,
    Occurrence,
)
from mileage_core.models.deduction import (
    DeductionTier,
    DeductionSchedule,
    validate_tiers,
    YearToDateLedger,
    TierPortion,
    DeductionResult,
)
from mileage_core.models.trips import (
    SourceFormat,
    ImportErrorReason,
    Coordinates,
    TripCandidate,
    ImportBatch,
)
from mileage_core.models.plan import (
    PlannedTrip,
    MonthlyTripStats,
    TripPlan,
    YearSummary,
)

__all__ = [
    # Recurrence
    "RecurrenceKind",
    "RANGED_KINDS",
    "sunday_weekday",
    "RecurrencePattern",
    "TripTemplate",
    "Occurrence",
    # Deduction
    "DeductionTier",
    "DeductionSchedule",
    "validate_tiers",
    "YearToDateLedger",
    "TierPortion",
    "DeductionResult",
    # Trips
    "SourceFormat",
    "ImportErrorReason",
    "Coordinates",
    "TripCandidate",
    "ImportBatch",
    # Plans and summaries
    "PlannedTrip",
    "MonthlyTripStats",
    "TripPlan",
    "YearSummary",
]
