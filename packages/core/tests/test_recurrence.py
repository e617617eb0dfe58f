"""Tests for recurrence expansion."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from mileage_core import RecurrenceExpander, RecurrenceKind, RecurrencePattern, TripTemplate, expand
from mileage_core.config import RecurrenceConfig
from mileage_core.exceptions import ConfigurationError
from mileage_core.recurrence import default_end_date, with_default_end_date


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class TestSingleAndIrregular:
    """Patterns that do not enumerate a range."""

    def test_one_time_returns_anchor(self):
        """One-time patterns yield just the anchor date."""
        pattern = RecurrencePattern(kind=RecurrenceKind.ONE_TIME, anchor_date=date(2024, 3, 4))
        assert expand(pattern) == [date(2024, 3, 4)]

    def test_one_time_ignores_range_fields(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.ONE_TIME,
            anchor_date=date(2024, 3, 4),
            end_date=date(2024, 6, 1),
            days_of_week=[1, 2, 3],
        )
        assert expand(pattern) == [date(2024, 3, 4)]

    def test_irregular_returns_sorted_specific_dates(self):
        """Irregular patterns return exactly the sorted specific dates."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.IRREGULAR,
            anchor_date=date(2024, 1, 1),
            end_date=date(2024, 1, 2),
            days_of_week=[3],
            exception_dates=[date(2024, 3, 1)],
            specific_dates=[date(2024, 3, 5), date(2024, 3, 1), date(2024, 3, 3)],
        )

        assert expand(pattern) == [date(2024, 3, 1), date(2024, 3, 3), date(2024, 3, 5)]

    def test_irregular_deduplicates(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.IRREGULAR,
            anchor_date=date(2024, 1, 1),
            specific_dates=[date(2024, 2, 1), date(2024, 2, 1)],
        )
        assert expand(pattern) == [date(2024, 2, 1)]

    def test_irregular_without_dates_is_empty(self):
        pattern = RecurrencePattern(kind=RecurrenceKind.IRREGULAR, anchor_date=date(2024, 1, 1))
        assert expand(pattern) == []


class TestDaily:
    """Daily patterns."""

    def test_every_day_inclusive(self):
        """Without weekdays, every date in [anchor, end] is returned."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 2, 26),
            end_date=date(2024, 3, 2),
        )
        assert expand(pattern) == _days(date(2024, 2, 26), date(2024, 3, 2))

    def test_exceptions_removed(self):
        """Exception dates are removed from the schedule."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 3, 4),
            end_date=date(2024, 3, 8),
            exception_dates=[date(2024, 3, 6)],
        )

        assert expand(pattern) == [
            date(2024, 3, 4),
            date(2024, 3, 5),
            date(2024, 3, 7),
            date(2024, 3, 8),
        ]

    def test_weekday_filter(self):
        """Days of week restrict a daily pattern (1=Monday, 5=Friday)."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 3, 1),  # Friday
            end_date=date(2024, 3, 10),
            days_of_week=[1, 5],
        )

        assert expand(pattern) == [date(2024, 3, 1), date(2024, 3, 4), date(2024, 3, 8)]

    def test_sunday_is_zero(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 3, 1),
            end_date=date(2024, 3, 17),
            days_of_week=[0],
        )
        assert expand(pattern) == [date(2024, 3, 3), date(2024, 3, 10), date(2024, 3, 17)]


class TestWeekly:
    """Weekly and biweekly patterns."""

    def test_wednesday_anchor_defaults_to_wednesdays(self):
        """A Wednesday anchor with no weekdays yields only Wednesdays."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.WEEKLY,
            anchor_date=date(2024, 1, 3),
            end_date=date(2024, 1, 31),
        )

        result = expand(pattern)

        assert result == [
            date(2024, 1, 3),
            date(2024, 1, 10),
            date(2024, 1, 17),
            date(2024, 1, 24),
            date(2024, 1, 31),
        ]
        assert all(d.weekday() == 2 for d in result)

    def test_explicit_days(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.WEEKLY,
            anchor_date=date(2024, 1, 1),
            end_date=date(2024, 1, 14),
            days_of_week=[2, 4],
        )
        assert expand(pattern) == [
            date(2024, 1, 2),
            date(2024, 1, 4),
            date(2024, 1, 9),
            date(2024, 1, 11),
        ]

    def test_biweekly_single_day_is_every_fourteen_days(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.BIWEEKLY,
            anchor_date=date(2024, 1, 3),
            end_date=date(2024, 2, 28),
        )
        assert expand(pattern) == [
            date(2024, 1, 3),
            date(2024, 1, 17),
            date(2024, 1, 31),
            date(2024, 2, 14),
            date(2024, 2, 28),
        ]

    def test_biweekly_keeps_every_other_matching_day(self):
        """Biweekly keeps positions 0, 2, 4... of the filtered weekday list."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.BIWEEKLY,
            anchor_date=date(2024, 1, 1),  # Monday
            end_date=date(2024, 1, 26),   # Friday of the fourth week
            days_of_week=[1, 2, 3, 4, 5],
        )

        weekdays = [d for d in _days(date(2024, 1, 1), date(2024, 1, 26)) if d.weekday() < 5]
        result = expand(pattern)

        assert len(weekdays) == 20
        assert result == weekdays[::2]
        assert result == [
            date(2024, 1, 1),
            date(2024, 1, 3),
            date(2024, 1, 5),
            date(2024, 1, 9),
            date(2024, 1, 11),
            date(2024, 1, 15),
            date(2024, 1, 17),
            date(2024, 1, 19),
            date(2024, 1, 23),
            date(2024, 1, 25),
        ]

    def test_biweekly_exceptions_applied_after_stride(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.BIWEEKLY,
            anchor_date=date(2024, 1, 3),
            end_date=date(2024, 2, 1),
            exception_dates=[date(2024, 1, 17)],
        )
        assert expand(pattern) == [date(2024, 1, 3), date(2024, 1, 31)]


class TestMonthly:
    """Monthly patterns."""

    def test_same_day_each_month(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.MONTHLY,
            anchor_date=date(2024, 1, 15),
            end_date=date(2024, 4, 15),
        )
        assert expand(pattern) == [
            date(2024, 1, 15),
            date(2024, 2, 15),
            date(2024, 3, 15),
            date(2024, 4, 15),
        ]

    def test_short_months_are_skipped(self):
        """Months without the anchor's day produce no occurrence."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.MONTHLY,
            anchor_date=date(2024, 1, 31),
            end_date=date(2024, 5, 31),
        )
        assert expand(pattern) == [date(2024, 1, 31), date(2024, 3, 31), date(2024, 5, 31)]

    def test_leap_day(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.MONTHLY,
            anchor_date=date(2024, 2, 29),
            end_date=date(2024, 5, 1),
        )
        assert expand(pattern) == [date(2024, 2, 29), date(2024, 3, 29), date(2024, 4, 29)]


class TestRangeHandling:
    """End dates, limits and errors."""

    @pytest.mark.parametrize(
        "kind",
        [RecurrenceKind.DAILY, RecurrenceKind.WEEKLY, RecurrenceKind.BIWEEKLY, RecurrenceKind.MONTHLY],
    )
    def test_missing_end_date_raises(self, kind: RecurrenceKind):
        """Ranged kinds without an end date are a caller error."""
        pattern = RecurrencePattern(kind=kind, anchor_date=date(2024, 1, 1))

        with pytest.raises(ConfigurationError) as exc_info:
            expand(pattern)

        assert exc_info.value.config_key == "end_date"
        assert not exc_info.value.recoverable

    def test_end_before_anchor_is_empty(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 3, 10),
            end_date=date(2024, 3, 1),
        )
        assert expand(pattern) == []

    def test_end_equal_to_anchor_is_empty(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.WEEKLY,
            anchor_date=date(2024, 3, 6),
            end_date=date(2024, 3, 6),
        )
        assert expand(pattern) == []

    def test_exceptions_outside_range_are_ignored(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 3, 1),
            end_date=date(2024, 3, 3),
            exception_dates=[date(2023, 3, 2)],
        )
        assert len(expand(pattern)) == 3

    def test_max_occurrences_truncates_earliest_first(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 3, 1),
            end_date=date(2024, 3, 31),
        )
        assert expand(pattern, 3) == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3)]

    def test_max_occurrences_zero(self):
        pattern = RecurrencePattern(kind=RecurrenceKind.ONE_TIME, anchor_date=date(2024, 3, 1))
        assert expand(pattern, 0) == []

    def test_negative_max_occurrences_raises(self):
        pattern = RecurrencePattern(kind=RecurrenceKind.ONE_TIME, anchor_date=date(2024, 3, 1))
        with pytest.raises(ConfigurationError):
            expand(pattern, -1)

    def test_range_limit(self):
        """Spans longer than the configured limit are rejected."""
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 1, 1),
            end_date=date(2024, 3, 1),
        )
        with pytest.raises(ConfigurationError) as exc_info:
            expand(pattern, max_range_days=30)
        assert exc_info.value.actual == 60

    def test_invalid_weekday_rejected(self):
        with pytest.raises(ValueError):
            RecurrencePattern(
                kind=RecurrenceKind.WEEKLY,
                anchor_date=date(2024, 1, 1),
                days_of_week=[7],
            )

    def test_expansion_is_repeatable(self):
        pattern = RecurrencePattern(
            kind=RecurrenceKind.WEEKLY,
            anchor_date=date(2024, 1, 3),
            end_date=date(2024, 6, 30),
            days_of_week=[1, 3],
        )
        assert expand(pattern) == expand(pattern)


class TestDefaultEndDate:
    """Caller-side defaulting of open-ended patterns."""

    def test_three_months_after_anchor(self):
        assert default_end_date(date(2024, 1, 15)) == date(2024, 4, 15)

    def test_month_end_clamps(self):
        """Nov 30 + 3 months lands on the last day of February."""
        assert default_end_date(date(2023, 11, 30)) == date(2024, 2, 29)
        assert default_end_date(date(2024, 11, 30)) == date(2025, 2, 28)

    def test_with_default_end_date_fills_only_when_missing(self):
        open_ended = RecurrencePattern(kind=RecurrenceKind.WEEKLY, anchor_date=date(2024, 1, 3))
        bounded = open_ended.model_copy(update={"end_date": date(2024, 1, 20)})
        one_time = RecurrencePattern(kind=RecurrenceKind.ONE_TIME, anchor_date=date(2024, 1, 3))

        assert with_default_end_date(open_ended).end_date == date(2024, 4, 3)
        assert with_default_end_date(bounded) is bounded
        assert with_default_end_date(one_time).end_date is None


class TestRecurrenceExpander:
    """Configured expander."""

    def test_expand_template_carries_distance(self):
        template = TripTemplate(
            distance_per_occurrence="12.5",
            pattern=RecurrencePattern(
                kind=RecurrenceKind.WEEKLY,
                anchor_date=date(2024, 1, 3),
                end_date=date(2024, 1, 17),
            ),
        )

        occurrences = RecurrenceExpander().expand_template(template)

        assert [o.date for o in occurrences] == [date(2024, 1, 3), date(2024, 1, 10), date(2024, 1, 17)]
        assert all(o.distance == Decimal("12.5") for o in occurrences)

    def test_configured_cap(self):
        expander = RecurrenceExpander(RecurrenceConfig(max_occurrences=2))
        pattern = RecurrencePattern(
            kind=RecurrenceKind.DAILY,
            anchor_date=date(2024, 1, 1),
            end_date=date(2024, 1, 10),
        )
        assert len(expander.expand(pattern)) == 2

    def test_configured_horizon(self):
        expander = RecurrenceExpander(RecurrenceConfig(default_horizon_months=1))
        assert expander.default_end_date(date(2024, 1, 31)) == date(2024, 2, 29)
