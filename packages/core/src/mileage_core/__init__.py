"""Mileage Core - Recurring trips, tiered deductions and trip import."""

__version__ = "0.1.0"

from .calculator import DeductionCalculator, compute_deduction
from .config import MileageConfig, configure_logging
from .importer import TripNormalizer, normalize, normalize_batch
from .models import (
    DeductionResult,
    DeductionSchedule,
    DeductionTier,
    Occurrence,
    RecurrenceKind,
    RecurrencePattern,
    TripCandidate,
    TripPlan,
    TripTemplate,
    YearSummary,
    YearToDateLedger,
)
from .planner import TripPlanner, plan_recurring_trip
from .rates import get_deduction_schedule
from .recurrence import RecurrenceExpander, expand
from .routing import RouteEstimate, RouteLookup, TripStore, backfill_distances
from .summary import summarize_year

__all__ = [
    "DeductionCalculator",
    "compute_deduction",
    "MileageConfig",
    "configure_logging",
    "TripNormalizer",
    "normalize",
    "normalize_batch",
    "DeductionResult",
    "DeductionSchedule",
    "DeductionTier",
    "Occurrence",
    "RecurrenceKind",
    "RecurrencePattern",
    "TripCandidate",
    "TripPlan",
    "TripTemplate",
    "YearSummary",
    "YearToDateLedger",
    "TripPlanner",
    "plan_recurring_trip",
    "get_deduction_schedule",
    "RecurrenceExpander",
    "expand",
    "RouteEstimate",
    "RouteLookup",
    "TripStore",
    "backfill_distances",
    "summarize_year",
]
