"""Recurring-trip planning.

Expands a TripTemplate and prices each occurrence, in date order, against
the caller's year-to-date ledger. The ledger is never mutated; the plan
carries the advanced ledger(s) for the caller to persist.
"""

from decimal import Decimal
from typing import Optional

import structlog

from .calculator import compute_deduction
from .config import MileageConfig
from .models import (
    DeductionSchedule,
    MonthlyTripStats,
    PlannedTrip,
    TripPlan,
    TripTemplate,
    YearToDateLedger,
)
from .rates import get_deduction_schedule
from .recurrence import RecurrenceExpander, with_default_end_date

logger = structlog.get_logger()


def _monthly_breakdown(trips: list[PlannedTrip]) -> tuple[MonthlyTripStats, ...]:
    buckets: dict[tuple[int, int], list[PlannedTrip]] = {}
    for trip in trips:
        key = (trip.occurrence.date.year, trip.occurrence.date.month)
        buckets.setdefault(key, []).append(trip)

    return tuple(
        MonthlyTripStats(
            year=year,
            month=month,
            trips=len(items),
            distance=sum((t.occurrence.distance for t in items), Decimal("0")),
            deduction=sum((t.deduction.deductible_amount for t in items), Decimal("0")),
        )
        for (year, month), items in sorted(buckets.items())
    )


class TripPlanner:
    """
    Plan recurring trips against a ledger.

    When no schedule is given, each calendar year is priced with that
    year's rate table (and the configured territory bonus).
    """

    def __init__(
        self,
        schedule: Optional[DeductionSchedule] = None,
        config: Optional[MileageConfig] = None,
    ):
        self.config = config or MileageConfig()
        self.schedule = schedule
        self._schedules: dict[int, DeductionSchedule] = {}
        self.expander = RecurrenceExpander(self.config.recurrence)

    def schedule_for(self, year: int) -> DeductionSchedule:
        if self.schedule is not None:
            return self.schedule
        if year not in self._schedules:
            self._schedules[year] = get_deduction_schedule(
                year, territory=self.config.deduction.territory
            )
        return self._schedules[year]

    def plan(
        self,
        template: TripTemplate,
        ledger: YearToDateLedger,
        *,
        max_occurrences: Optional[int] = None,
    ) -> TripPlan:
        """
        Expand and price a template.

        Args:
            template: Recurring trip; a ranged pattern without an end date
                gets the configured default horizon
            ledger: Distance already driven in ledger.year
            max_occurrences: Optional cap on the number of occurrences

        Returns:
            TripPlan with per-trip deductions and the advanced ledgers.
            Occurrences in another calendar year are priced against a
            ledger for that year starting at zero.
        """
        pattern = with_default_end_date(
            template.pattern, self.config.recurrence.default_horizon_months
        )
        if pattern is not template.pattern:
            template = template.model_copy(update={"pattern": pattern})

        occurrences = self.expander.expand_template(
            template, max_occurrences=max_occurrences
        )

        ledgers: dict[int, YearToDateLedger] = {ledger.year: ledger}
        trips: list[PlannedTrip] = []

        for occurrence in occurrences:
            year = occurrence.date.year
            current = ledgers.get(year) or YearToDateLedger(year=year)
            result = compute_deduction(
                occurrence.distance,
                current.accumulated_distance,
                self.schedule_for(year),
            )
            ledgers[year] = current.add(result.distance)
            trips.append(PlannedTrip(occurrence=occurrence, deduction=result))

        plan = TripPlan(
            template=template,
            trips=tuple(trips),
            ledger_after=ledgers[ledger.year],
            ledgers_after=ledgers,
            monthly_breakdown=_monthly_breakdown(trips),
        )

        logger.info(
            "trip_plan_built",
            kind=template.pattern.kind.value,
            trips=plan.trip_count,
            total_distance=str(plan.total_distance),
            total_deductible=str(plan.total_deductible),
            years=sorted(ledgers),
        )
        return plan


def plan_recurring_trip(
    template: TripTemplate,
    ledger: YearToDateLedger,
    schedule: Optional[DeductionSchedule] = None,
    *,
    max_occurrences: Optional[int] = None,
    config: Optional[MileageConfig] = None,
) -> TripPlan:
    """Expand a template and price its occurrences; see TripPlanner.plan()."""
    return TripPlanner(schedule, config).plan(
        template, ledger, max_occurrences=max_occurrences
    )


__all__ = ["TripPlanner", "plan_recurring_trip"]
