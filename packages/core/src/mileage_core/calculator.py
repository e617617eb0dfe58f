"""Tiered per-kilometer deduction calculations.

The deduction for a trip depends on how far the driver has already gone
this calendar year: the span [ytd, ytd + distance) is priced against the
schedule's tiers and the portions are summed.

The calculator is pure. It never updates the caller's ledger; callers
pricing several trips feed them in date order and carry the ledger forward
themselves (or use DeductionCalculator.price_sequence, which does exactly
that).
"""

from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from .config import MileageConfig
from .exceptions import ValidationError
from .models import DeductionResult, DeductionSchedule, TierPortion, YearToDateLedger
from .rates import get_deduction_schedule

logger = structlog.get_logger()

Number = Union[Decimal, int, float, str]


def _as_decimal(value: Number, field: str) -> Decimal:
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except ArithmeticError as e:
            raise ValidationError(
                f"{field} is not a number",
                field=field,
                value=str(value),
                constraint="decimal number",
            ) from e

    if not d.is_finite():
        raise ValidationError(
            f"{field} must be a finite number",
            field=field,
            value=str(value),
            constraint="finite number",
        )
    return d


def compute_deduction(
    new_distance: Number,
    year_to_date_before: Number,
    schedule: Optional[DeductionSchedule] = None,
) -> DeductionResult:
    """Marginal deduction for new_distance driven on top of year_to_date_before.

    Args:
        new_distance: Kilometers of the new trip(s)
        year_to_date_before: Kilometers already driven this year
        schedule: Tier schedule; defaults to the latest CRA rates

    Returns:
        DeductionResult with the amount, the applied (possibly blended) rate
        and the per-tier breakdown

    Raises:
        ValidationError: if an input is not a finite number, or
            year_to_date_before is negative
    """
    schedule = schedule or get_deduction_schedule()
    distance = _as_decimal(new_distance, "new_distance")
    ytd = _as_decimal(year_to_date_before, "year_to_date_before")

    if ytd < 0:
        raise ValidationError(
            "Year-to-date distance cannot be negative",
            field="year_to_date_before",
            value=str(ytd),
            constraint=">= 0",
        )

    if distance <= 0:
        return DeductionResult(
            deductible_amount=Decimal("0"),
            rate_applied=schedule.rate_at(ytd),
            distance=distance,
            year_to_date_before=ytd,
        )

    span_start = ytd
    span_end = ytd + distance
    lower = Decimal("0")
    portions: list[TierPortion] = []

    for index, tier in enumerate(schedule.tiers):
        upper = tier.upper_bound
        portion_start = max(span_start, lower)
        portion_end = span_end if upper is None else min(span_end, upper)

        if portion_end > portion_start:
            portion = portion_end - portion_start
            portions.append(
                TierPortion(
                    tier_index=index,
                    distance=portion,
                    rate=tier.rate,
                    amount=portion * tier.rate,
                )
            )

        if upper is None or upper >= span_end:
            break
        lower = upper

    amount = sum((p.amount for p in portions), Decimal("0"))
    if len(portions) == 1:
        rate = portions[0].rate
    else:
        rate = amount / distance

    logger.debug(
        "deduction_computed",
        distance=str(distance),
        year_to_date_before=str(ytd),
        amount=str(amount),
        rate=str(rate),
        tiers=[p.tier_index for p in portions],
        schedule=schedule.version,
    )

    return DeductionResult(
        deductible_amount=amount,
        rate_applied=rate,
        distance=distance,
        year_to_date_before=ytd,
        portions=tuple(portions),
    )


class DeductionCalculator:
    """
    Price trips against a tiered deduction schedule.

    The schedule comes from the caller, or from the configured rate table
    year and territory when none is given.
    """

    def __init__(
        self,
        schedule: Optional[DeductionSchedule] = None,
        config: Optional[MileageConfig] = None,
    ):
        """
        Initialize calculator.

        Args:
            schedule: Explicit tier schedule (takes precedence over config)
            config: Engine configuration used to pick the rate table
        """
        self.config = config or MileageConfig()
        self.schedule = schedule or get_deduction_schedule(
            self.config.deduction.rate_year,
            territory=self.config.deduction.territory,
        )

    def compute(self, new_distance: Number, year_to_date_before: Number) -> DeductionResult:
        """Marginal deduction for one distance; see compute_deduction()."""
        return compute_deduction(new_distance, year_to_date_before, self.schedule)

    def compute_for_ledger(self, new_distance: Number, ledger: YearToDateLedger) -> DeductionResult:
        """Marginal deduction on top of a ledger's accumulated distance."""
        return self.compute(new_distance, ledger.accumulated_distance)

    def price_sequence(
        self,
        distances: Iterable[Number],
        ledger: YearToDateLedger,
    ) -> tuple[list[DeductionResult], YearToDateLedger]:
        """
        Price distances one after another, carrying the running total.

        Distances are applied strictly in the given order, so callers pass
        them sorted by trip date.

        Returns:
            The per-distance results and the ledger after the last one.
            The input ledger is left unchanged.
        """
        results: list[DeductionResult] = []
        current = ledger

        for distance in distances:
            result = self.compute_for_ledger(distance, current)
            results.append(result)
            current = current.add(result.distance)

        logger.info(
            "deduction_sequence_priced",
            year=ledger.year,
            trips=len(results),
            start_distance=str(ledger.accumulated_distance),
            end_distance=str(current.accumulated_distance),
            total=str(sum((r.deductible_amount for r in results), Decimal("0"))),
            schedule=self.schedule.version,
        )
        return results, current


__all__ = [
    "compute_deduction",
    "DeductionCalculator",
]
