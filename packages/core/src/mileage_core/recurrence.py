"""Recurrence expansion for trip templates.

Turns a RecurrencePattern into the ordered list of dates on which the trip
happens. Uses dateutil.rrule for range enumeration and
dateutil.relativedelta for the caller-side default end date.

Expansion is pure: it never reads the clock and never invents an end date.
Callers that need the "anchor + 3 months" default compute it with
default_end_date() before expanding.
"""

from datetime import date
from typing import Optional

import structlog
from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, MONTHLY, rrule

from .config import RecurrenceConfig
from .exceptions import ConfigurationError
from .models import (
    Occurrence,
    RecurrenceKind,
    RecurrencePattern,
    TripTemplate,
    sunday_weekday,
)

logger = structlog.get_logger()


DEFAULT_HORIZON_MONTHS = 3
DEFAULT_MAX_RANGE_DAYS = 3660


def default_end_date(anchor: date, months: int = DEFAULT_HORIZON_MONTHS) -> date:
    """End date used when the user left it blank.

    Month arithmetic clamps to the last day of shorter months, so
    Nov 30 + 3 months is Feb 28 (or 29).
    """
    return anchor + relativedelta(months=months)


def with_default_end_date(
    pattern: RecurrencePattern,
    months: int = DEFAULT_HORIZON_MONTHS,
) -> RecurrencePattern:
    """Return the pattern with end_date filled in if it needs one."""
    if not pattern.requires_end_date or pattern.end_date is not None:
        return pattern
    return pattern.model_copy(
        update={"end_date": default_end_date(pattern.anchor_date, months)}
    )


def _to_rrule_weekday(index: int) -> int:
    # Sunday-first index -> rrule's Monday-first index
    return (index + 6) % 7


def _enumerate(
    pattern: RecurrencePattern,
    end: date,
) -> list[date]:
    """Dates in [anchor, end] matching the pattern, before exceptions."""
    anchor = pattern.anchor_date
    kind = pattern.kind

    if kind == RecurrenceKind.MONTHLY:
        # bymonthday skips months that lack the day: no end-of-month rollover
        rule = rrule(MONTHLY, dtstart=anchor, until=end, bymonthday=anchor.day)
        return [dt.date() for dt in rule]

    if kind == RecurrenceKind.DAILY:
        weekdays = pattern.days_of_week or None
    else:
        weekdays = pattern.days_of_week or frozenset({sunday_weekday(anchor)})

    byweekday = (
        sorted(_to_rrule_weekday(d) for d in weekdays) if weekdays else None
    )
    days = [dt.date() for dt in rrule(DAILY, dtstart=anchor, until=end, byweekday=byweekday)]

    if kind == RecurrenceKind.BIWEEKLY:
        # Every other matching day by position in the filtered list
        days = days[::2]
    return days


def expand(
    pattern: RecurrencePattern,
    max_occurrences: Optional[int] = None,
    *,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
) -> list[date]:
    """Expand a pattern into ascending, de-duplicated occurrence dates.

    Args:
        pattern: The recurrence rule and its anchor.
        max_occurrences: Keep at most this many dates (earliest first).
        max_range_days: Reject anchor-to-end spans longer than this.

    Returns:
        Sorted list of dates. Empty when end_date is on or before the anchor.

    Raises:
        ConfigurationError: if a ranged pattern has no end_date, the range
            exceeds max_range_days, or max_occurrences is negative.
    """
    if max_occurrences is not None and max_occurrences < 0:
        raise ConfigurationError(
            "max_occurrences cannot be negative",
            config_key="max_occurrences",
            expected=">= 0",
            actual=max_occurrences,
        )

    kind = pattern.kind

    if kind == RecurrenceKind.ONE_TIME:
        dates = [pattern.anchor_date]
    elif kind == RecurrenceKind.IRREGULAR:
        dates = sorted(pattern.specific_dates)
    else:
        if pattern.end_date is None:
            raise ConfigurationError(
                f"{kind.value} recurrence requires an end date",
                config_key="end_date",
                expected="end date (callers default it to anchor + 3 months)",
                details={"anchor_date": pattern.anchor_date.isoformat()},
            )

        end = pattern.end_date
        if end <= pattern.anchor_date:
            logger.debug(
                "recurrence_empty_range",
                kind=kind.value,
                anchor=pattern.anchor_date.isoformat(),
                end=end.isoformat(),
            )
            return []

        span = (end - pattern.anchor_date).days
        if span > max_range_days:
            raise ConfigurationError(
                "Recurrence range is too long",
                config_key="end_date",
                expected=f"at most {max_range_days} days after anchor",
                actual=span,
            )

        dates = _enumerate(pattern, end)
        if pattern.exception_dates:
            dates = [d for d in dates if d not in pattern.exception_dates]

    # rrule output is already ordered; the set pass covers irregular input
    dates = sorted(set(dates))
    if max_occurrences is not None:
        dates = dates[:max_occurrences]

    logger.debug(
        "recurrence_expanded",
        kind=kind.value,
        anchor=pattern.anchor_date.isoformat(),
        count=len(dates),
    )
    return dates


class RecurrenceExpander:
    """Expand trip templates using configured limits."""

    def __init__(self, config: Optional[RecurrenceConfig] = None):
        self.config = config or RecurrenceConfig()

    def expand(
        self,
        pattern: RecurrencePattern,
        max_occurrences: Optional[int] = None,
    ) -> list[date]:
        """Expand a pattern; max_occurrences falls back to the configured cap."""
        if max_occurrences is None:
            max_occurrences = self.config.max_occurrences
        return expand(
            pattern,
            max_occurrences,
            max_range_days=self.config.max_range_days,
        )

    def expand_template(
        self,
        template: TripTemplate,
        max_occurrences: Optional[int] = None,
    ) -> list[Occurrence]:
        """Expand a template into occurrences carrying its per-trip distance."""
        return [
            Occurrence(date=d, distance=template.distance_per_occurrence)
            for d in self.expand(template.pattern, max_occurrences)
        ]

    def default_end_date(self, anchor: date) -> date:
        """Configured default end date for a pattern anchored at anchor."""
        return default_end_date(anchor, self.config.default_horizon_months)


__all__ = [
    "DEFAULT_HORIZON_MONTHS",
    "DEFAULT_MAX_RANGE_DAYS",
    "default_end_date",
    "with_default_end_date",
    "expand",
    "RecurrenceExpander",
]
