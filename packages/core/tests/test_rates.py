"""Tests for the CRA allowance rate tables."""

from decimal import Decimal

import pytest

from mileage_core.rates import (
    ALLOWANCE_RATES_BY_YEAR,
    LATEST_RATE_YEAR,
    TERRITORY_BONUS,
    TIER_THRESHOLD_KM,
    get_allowance_rates,
    get_deduction_schedule,
    is_northern_territory,
    resolve_rate_year,
)


class TestAllowanceRates:
    """Rate table lookups."""

    def test_2024_rates(self):
        rates = get_allowance_rates(2024)

        assert rates.first_tier == Decimal("0.70")
        assert rates.after_threshold == Decimal("0.64")

    def test_first_tier_always_higher(self):
        for rates in ALLOWANCE_RATES_BY_YEAR.values():
            assert rates.first_tier > rates.after_threshold

    def test_none_means_latest(self):
        assert resolve_rate_year(None) == LATEST_RATE_YEAR

    @pytest.mark.parametrize(
        "year,expected",
        [
            (2024, 2024),
            (2030, LATEST_RATE_YEAR),
            (1999, min(ALLOWANCE_RATES_BY_YEAR)),
        ],
    )
    def test_resolve_rate_year(self, year: int, expected: int):
        """Unknown years fall back to the nearest known table."""
        assert resolve_rate_year(year) == expected


class TestNorthernTerritories:
    """Territory bonus."""

    @pytest.mark.parametrize("code", ["YT", "nt", " NU "])
    def test_territories(self, code: str):
        assert is_northern_territory(code)

    @pytest.mark.parametrize("code", ["ON", "QC", "", None])
    def test_provinces(self, code):
        assert not is_northern_territory(code)


class TestDeductionSchedule:
    """Schedules built from the tables."""

    def test_two_tiers_at_threshold(self):
        schedule = get_deduction_schedule(2024)

        assert len(schedule.tiers) == 2
        assert schedule.tiers[0].upper_bound == TIER_THRESHOLD_KM
        assert schedule.tiers[0].rate == Decimal("0.70")
        assert schedule.tiers[1].is_unbounded
        assert schedule.tiers[1].rate == Decimal("0.64")
        assert schedule.version == "CRA-2024"

    def test_territory_bonus_on_every_tier(self):
        """Northern territories add the bonus to both tiers."""
        schedule = get_deduction_schedule(2024, territory="yt")

        assert schedule.tiers[0].rate == Decimal("0.70") + TERRITORY_BONUS
        assert schedule.tiers[1].rate == Decimal("0.64") + TERRITORY_BONUS
        assert schedule.version == "CRA-2024-YT"

    def test_province_gets_no_bonus(self):
        schedule = get_deduction_schedule(2024, territory="ON")

        assert schedule.tiers[0].rate == Decimal("0.70")
        assert schedule.version == "CRA-2024"

    def test_version_names_table_actually_used(self):
        assert get_deduction_schedule(2099).version == f"CRA-{LATEST_RATE_YEAR}"
