"""Deduction schedule and result models.

A DeductionSchedule is an ordered list of tiers. Each bounded tier covers
distance up to its upper_bound (exclusive of what earlier tiers cover);
the last tier is unbounded. Bounds are year-to-date distances, so a tier
applies to the kilometers driven while the running yearly total sits in
its range.
"""

from decimal import Decimal
from typing import Optional, Sequence, Union

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from ..exceptions import ConfigurationError


def _to_decimal(v):
    if isinstance(v, (float, int, str)) and not isinstance(v, bool):
        return Decimal(str(v))
    return v


class DeductionTier(BaseModel):
    """One rate band of a deduction schedule."""

    model_config = {"frozen": True}

    upper_bound: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Year-to-date distance where this tier ends; None for the last tier",
    )
    rate: Decimal = Field(
        ge=0,
        description="Deduction per kilometer within this tier",
    )

    @field_validator("upper_bound", mode="before")
    @classmethod
    def coerce_bound(cls, v):
        """Treat an infinite bound as the unbounded marker."""
        v = _to_decimal(v)
        if isinstance(v, Decimal) and v.is_infinite():
            return None
        return v

    @field_validator("rate", mode="before")
    @classmethod
    def coerce_rate(cls, v):
        """Coerce numeric inputs to Decimal."""
        return _to_decimal(v)

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None


class DeductionSchedule(BaseModel):
    """Ordered, validated list of deduction tiers.

    Construction raises ConfigurationError (not a pydantic error) for
    malformed tier lists, since a bad schedule is a caller programming
    error. from_tiers() accepts plain (upper_bound, rate) pairs.
    """

    model_config = {"frozen": True}

    tiers: tuple[DeductionTier, ...]
    version: str = Field(default="custom", description="Label of the rate table")

    @model_validator(mode="after")
    def check_tiers(self) -> "DeductionSchedule":
        validate_tiers(self.tiers)
        return self

    @classmethod
    def from_tiers(
        cls,
        tiers: Sequence[Union[DeductionTier, tuple]],
        version: str = "custom",
    ) -> "DeductionSchedule":
        """Build a schedule from (upper_bound, rate) pairs or tier objects."""
        built: list[DeductionTier] = []
        for index, tier in enumerate(tiers):
            if isinstance(tier, DeductionTier):
                built.append(tier)
                continue
            try:
                upper_bound, rate = tier
                built.append(DeductionTier(upper_bound=upper_bound, rate=rate))
            except (TypeError, ValueError, ArithmeticError) as e:
                raise ConfigurationError(
                    "Malformed deduction tier",
                    config_key=f"tiers[{index}]",
                    expected="(upper_bound > 0 or None, rate >= 0)",
                    actual=repr(tier),
                ) from e
        return cls(tiers=tuple(built), version=version)

    def tier_index_at(self, distance: Decimal) -> int:
        """Index of the tier containing the given year-to-date distance."""
        for index, tier in enumerate(self.tiers):
            if tier.upper_bound is None or distance < tier.upper_bound:
                return index
        return len(self.tiers) - 1

    def rate_at(self, distance: Decimal) -> Decimal:
        """Rate of the tier containing the given year-to-date distance."""
        return self.tiers[self.tier_index_at(distance)].rate


def validate_tiers(tiers: tuple[DeductionTier, ...]) -> None:
    """Check ordering and termination of a tier list.

    Raises:
        ConfigurationError: if the list is empty, bounds are not strictly
            ascending, or the list does not end with exactly one unbounded
            tier.
    """
    if not tiers:
        raise ConfigurationError(
            "Deduction schedule needs at least one tier",
            config_key="tiers",
            expected="non-empty list ending with an unbounded tier",
        )

    if not tiers[-1].is_unbounded:
        raise ConfigurationError(
            "Last deduction tier must be unbounded",
            config_key="tiers",
            expected="upper_bound=None on the final tier",
            actual=str(tiers[-1].upper_bound),
        )

    previous: Optional[Decimal] = None
    for index, tier in enumerate(tiers[:-1]):
        if tier.is_unbounded:
            raise ConfigurationError(
                "Only the last deduction tier may be unbounded",
                config_key=f"tiers[{index}]",
                expected="finite upper_bound",
            )
        if previous is not None and tier.upper_bound <= previous:
            raise ConfigurationError(
                "Deduction tier bounds must be strictly ascending",
                config_key=f"tiers[{index}]",
                expected=f"> {previous}",
                actual=str(tier.upper_bound),
            )
        previous = tier.upper_bound


class YearToDateLedger(BaseModel):
    """Distance already accumulated in a calendar year.

    Ledgers are values: add() returns a new ledger and the original is left
    untouched.
    """

    model_config = {"frozen": True}

    year: int = Field(ge=1900, le=2200)
    accumulated_distance: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("accumulated_distance", mode="before")
    @classmethod
    def coerce_distance(cls, v):
        """Coerce numeric inputs to Decimal."""
        return _to_decimal(v)

    def add(self, distance: Decimal) -> "YearToDateLedger":
        """Return a ledger with distance added (negative distances ignored)."""
        if distance <= 0:
            return self
        return self.model_copy(
            update={"accumulated_distance": self.accumulated_distance + distance}
        )


class TierPortion(BaseModel):
    """Part of a priced span that fell into a single tier."""

    model_config = {"frozen": True}

    tier_index: int = Field(ge=0)
    distance: Decimal
    rate: Decimal
    amount: Decimal


class DeductionResult(BaseModel):
    """Marginal deduction for a new distance on top of a ledger."""

    model_config = {"frozen": True}

    deductible_amount: Decimal
    rate_applied: Decimal = Field(
        description="Tier rate, or the weighted average when the span straddles tiers",
    )
    distance: Decimal = Field(default=Decimal("0"))
    year_to_date_before: Decimal = Field(default=Decimal("0"))
    portions: tuple[TierPortion, ...] = Field(default_factory=tuple)

    @computed_field
    @property
    def year_to_date_after(self) -> Decimal:
        """Running total after this distance is added."""
        if self.distance <= 0:
            return self.year_to_date_before
        return self.year_to_date_before + self.distance

    @property
    def straddles_boundary(self) -> bool:
        """True when the priced span crossed at least one tier boundary."""
        return len(self.portions) > 1


__all__ = [
    "DeductionTier",
    "DeductionSchedule",
    "validate_tiers",
    "YearToDateLedger",
    "TierPortion",
    "DeductionResult",
]
