"""CRA automobile allowance rates used as deduction schedules.

This module holds the per-kilometer rates the tracker applies to business
driving: a higher rate for the first 5,000 km driven in the calendar year
and a lower rate beyond, with a flat bonus added in the northern
territories.

Sources:
- Automobile allowance rates: https://www.canada.ca/en/revenue-agency/services/tax/businesses/topics/payroll/benefits-allowances/automobile/automobile-motor-vehicle-allowances/automobile-allowance-rates.html

The calculator never reads these tables directly. Callers build a
DeductionSchedule here (or supply their own) and pass it in.
"""

from decimal import Decimal
from typing import NamedTuple, Optional

import structlog

from .models import DeductionSchedule, DeductionTier

logger = structlog.get_logger()


# =============================================================================
# RATE TABLES
# =============================================================================

TIER_THRESHOLD_KM = Decimal("5000")


class AllowanceRates(NamedTuple):
    """Per-km rates for one calendar year."""
    first_tier: Decimal
    after_threshold: Decimal


ALLOWANCE_RATES_BY_YEAR: dict[int, AllowanceRates] = {
    2023: AllowanceRates(Decimal("0.68"), Decimal("0.62")),
    2024: AllowanceRates(Decimal("0.70"), Decimal("0.64")),
    2025: AllowanceRates(Decimal("0.72"), Decimal("0.66")),
}

LATEST_RATE_YEAR = max(ALLOWANCE_RATES_BY_YEAR)

# Added to every tier in Yukon, Northwest Territories and Nunavut
TERRITORY_BONUS = Decimal("0.04")
NORTHERN_TERRITORIES = frozenset({"YT", "NT", "NU"})


def is_northern_territory(code: Optional[str]) -> bool:
    """True for the territories that receive the per-km bonus."""
    return bool(code) and code.strip().upper() in NORTHERN_TERRITORIES


def resolve_rate_year(year: Optional[int] = None) -> int:
    """Year of the table used for year: exact match, else the nearest edge."""
    if year is None:
        return LATEST_RATE_YEAR
    if year in ALLOWANCE_RATES_BY_YEAR:
        return year

    oldest = min(ALLOWANCE_RATES_BY_YEAR)
    fallback = oldest if year < oldest else LATEST_RATE_YEAR
    logger.warning("rate_table_missing", year=year, fallback_year=fallback)
    return fallback


def get_allowance_rates(year: Optional[int] = None) -> AllowanceRates:
    """Rates for a year, falling back to the nearest known table.

    Args:
        year: Calendar year; None means the latest known year

    Returns:
        AllowanceRates for that year
    """
    return ALLOWANCE_RATES_BY_YEAR[resolve_rate_year(year)]


def get_deduction_schedule(
    year: Optional[int] = None,
    *,
    territory: Optional[str] = None,
) -> DeductionSchedule:
    """Build the two-tier deduction schedule for a year.

    Args:
        year: Calendar year of the trips
        territory: Province/territory code; YT, NT and NU add the bonus

    Returns:
        DeductionSchedule with a 5,000 km bounded tier and an unbounded tier
    """
    resolved = resolve_rate_year(year)
    rates = ALLOWANCE_RATES_BY_YEAR[resolved]
    bonus = TERRITORY_BONUS if is_northern_territory(territory) else Decimal("0")

    version = f"CRA-{resolved}"
    if bonus:
        version += f"-{territory.strip().upper()}"

    return DeductionSchedule(
        tiers=(
            DeductionTier(upper_bound=TIER_THRESHOLD_KM, rate=rates.first_tier + bonus),
            DeductionTier(upper_bound=None, rate=rates.after_threshold + bonus),
        ),
        version=version,
    )


__all__ = [
    "TIER_THRESHOLD_KM",
    "AllowanceRates",
    "ALLOWANCE_RATES_BY_YEAR",
    "LATEST_RATE_YEAR",
    "TERRITORY_BONUS",
    "NORTHERN_TERRITORIES",
    "is_northern_territory",
    "resolve_rate_year",
    "get_allowance_rates",
    "get_deduction_schedule",
]
