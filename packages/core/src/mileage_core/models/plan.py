"""Result models for recurring-trip plans and yearly summaries."""

from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

from .deduction import DeductionResult, YearToDateLedger
from .recurrence import Occurrence, TripTemplate


class PlannedTrip(BaseModel):
    """An occurrence together with its marginal deduction."""

    model_config = {"frozen": True}

    occurrence: Occurrence
    deduction: DeductionResult


class MonthlyTripStats(BaseModel):
    """Per-month totals of a plan, as shown on a calendar preview."""

    model_config = {"frozen": True}

    year: int
    month: int = Field(ge=1, le=12)
    trips: int = Field(default=0, ge=0)
    distance: Decimal = Field(default=Decimal("0"))
    deduction: Decimal = Field(default=Decimal("0"))

    @property
    def label(self) -> str:
        """YYYY-MM key for the month."""
        return f"{self.year:04d}-{self.month:02d}"


class TripPlan(BaseModel):
    """A template expanded and priced against the caller's ledger."""

    model_config = {"frozen": True}

    template: TripTemplate
    trips: tuple[PlannedTrip, ...] = Field(default_factory=tuple)
    ledger_after: YearToDateLedger = Field(
        description="The input ledger advanced by the trips falling in its year",
    )
    ledgers_after: dict[int, YearToDateLedger] = Field(
        default_factory=dict,
        description="Running total per calendar year after the plan is applied",
    )
    monthly_breakdown: tuple[MonthlyTripStats, ...] = Field(default_factory=tuple)

    @computed_field
    @property
    def trip_count(self) -> int:
        return len(self.trips)

    @computed_field
    @property
    def total_distance(self) -> Decimal:
        return sum((t.occurrence.distance for t in self.trips), Decimal("0"))

    @computed_field
    @property
    def total_deductible(self) -> Decimal:
        return sum((t.deduction.deductible_amount for t in self.trips), Decimal("0"))

    @property
    def occurrences(self) -> list[Occurrence]:
        return [t.occurrence for t in self.trips]


class YearSummary(BaseModel):
    """Yearly mileage totals and the estimated sales-tax credit.

    Monetary fields are rounded to cents.
    """

    model_config = {"frozen": True}

    year: int
    trip_count: int = Field(default=0, ge=0)
    total_distance: Decimal = Field(default=Decimal("0"))
    total_deductible: Decimal = Field(default=Decimal("0"))
    estimated_sales_tax_paid: Decimal = Field(default=Decimal("0"))
    itc_claimable: Decimal = Field(default=Decimal("0"))
    schedule_version: str = "custom"

    @computed_field
    @property
    def average_rate(self) -> Decimal:
        """Deduction per kilometer across the year."""
        if self.total_distance <= 0:
            return Decimal("0")
        return (self.total_deductible / self.total_distance).quantize(Decimal("0.0001"))


__all__ = ["PlannedTrip", "MonthlyTripStats", "TripPlan", "YearSummary"]
