"""Custom exceptions for the mileage engine.

All exceptions inherit from MileageError so callers can catch every
engine-specific failure in one place. Row-level import problems are never
raised; they are reported on the TripCandidate itself. Exceptions here are
reserved for caller mistakes (bad configuration, bad numeric input) and for
documents the normalizer cannot recognize at all.

Example:
    try:
        dates = expand(pattern)
    except ConfigurationError as e:
        # Caller forgot to default the end date
        logger.error("expansion_rejected", error=str(e), **e.details)
        raise
"""

from typing import Any, Optional


class MileageError(Exception):
    """Base exception for all mileage engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the caller can fix the input and retry.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ConfigurationError(MileageError):
    """Error raised when the engine is driven with invalid configuration.

    Covers malformed deduction schedules and recurrence patterns that
    reach the expander without the defaults the caller is responsible for
    (e.g. a weekly pattern with no end date). These are programming errors
    in the caller, so they are not recoverable by default.

    Example:
        >>> raise ConfigurationError(
        ...     "Recurring pattern requires an end date",
        ...     config_key="end_date",
        ...     expected="date after anchor_date",
        ... )
        ConfigurationError: Recurring pattern requires an end date
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


class ValidationError(MileageError):
    """Error raised when a numeric input to the engine is out of range.

    Example:
        >>> raise ValidationError(
        ...     "Year-to-date distance cannot be negative",
        ...     field="year_to_date_before",
        ...     value="-10",
        ...     constraint=">= 0",
        ... )
        ValidationError: Year-to-date distance cannot be negative
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class ImportFormatError(MileageError):
    """Error raised when an import document cannot be recognized.

    Individual bad rows never raise this; it is only used when the whole
    document is of an unknown format, so nothing can be normalized.

    Attributes:
        source_format: The format the caller asked for.
        sample: First characters of the offending content.
    """

    def __init__(
        self,
        message: str,
        *,
        source_format: Optional[str] = None,
        sample: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.source_format = source_format
        self.sample = sample

        if source_format:
            self.details["source_format"] = source_format
        if sample is not None:
            self.details["sample"] = sample[:40]


__all__ = [
    "MileageError",
    "ConfigurationError",
    "ValidationError",
    "ImportFormatError",
]
