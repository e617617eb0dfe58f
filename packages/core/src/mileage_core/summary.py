"""Yearly mileage summary.

Totals a year's trips and estimates the sales tax embedded in the
deduction. The fuel share of the per-kilometer allowance is assumed to
have been bought tax-included, so the tax is extracted from it:

    fuel = deduction * fuel_portion
    tax  = fuel - fuel / (1 + sales_tax_rate)

and the input tax credit is the full extracted amount.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

import structlog

from .calculator import compute_deduction
from .config import MileageConfig
from .models import DeductionSchedule, Occurrence, TripCandidate, YearSummary
from .rates import get_deduction_schedule

logger = structlog.get_logger()

CENTS = Decimal("0.01")

Trip = Union[Occurrence, TripCandidate]


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def estimate_sales_tax(
    deductible_amount: Decimal,
    fuel_portion: Decimal,
    sales_tax_rate: Decimal,
) -> Decimal:
    """Sales tax contained in the fuel share of a deduction, unrounded."""
    fuel = deductible_amount * fuel_portion
    return fuel - fuel / (1 + sales_tax_rate)


def _countable(trip: Trip, year: int) -> bool:
    if isinstance(trip, TripCandidate) and not trip.valid:
        return False
    return trip.date is not None and trip.date.year == year


def summarize_year(
    trips: Iterable[Trip],
    year: int,
    schedule: Optional[DeductionSchedule] = None,
    config: Optional[MileageConfig] = None,
) -> YearSummary:
    """
    Summarize one calendar year of trips.

    Trips are priced in date order against a running total that starts
    at zero on January 1. Trips dated in other years, undated candidates
    and invalid candidates are ignored.

    Args:
        trips: Occurrences and/or imported candidates, in any order
        year: Calendar year to summarize
        schedule: Tier schedule; defaults to the rate table for year
        config: Engine configuration (fuel portion, tax rate, territory)

    Returns:
        YearSummary with totals rounded to cents
    """
    config = config or MileageConfig()
    schedule = schedule or get_deduction_schedule(
        year, territory=config.deduction.territory
    )

    in_year = sorted(
        (t for t in trips if _countable(t, year)),
        key=lambda t: t.date,
    )

    running = Decimal("0")
    total_deductible = Decimal("0")
    for trip in in_year:
        result = compute_deduction(trip.distance, running, schedule)
        total_deductible += result.deductible_amount
        running += max(result.distance, Decimal("0"))

    tax = estimate_sales_tax(
        total_deductible,
        config.deduction.fuel_portion,
        config.deduction.sales_tax_rate,
    )

    summary = YearSummary(
        year=year,
        trip_count=len(in_year),
        total_distance=running,
        total_deductible=_cents(total_deductible),
        estimated_sales_tax_paid=_cents(tax),
        itc_claimable=_cents(tax),
        schedule_version=schedule.version,
    )

    logger.info(
        "year_summarized",
        year=year,
        trips=summary.trip_count,
        total_distance=str(summary.total_distance),
        total_deductible=str(summary.total_deductible),
        itc_claimable=str(summary.itc_claimable),
    )
    return summary


__all__ = ["estimate_sales_tax", "summarize_year"]
