"""Configuration system for the mileage engine.

This module provides Pydantic Settings-based configuration with environment
variable support and defaults matching the behavior of the trip tracker.

Usage:
    from mileage_core.config import MileageConfig

    # Load from environment variables and .env file
    config = MileageConfig()

    # Recurrence defaults
    print(config.recurrence.default_horizon_months)

    # Import noise filter
    print(config.importer.noise_floor_km)
"""

from decimal import Decimal
from typing import Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecurrenceConfig(BaseSettings):
    """Recurrence expansion settings.

    Environment Variables:
        MILEAGE_RECURRENCE_DEFAULT_HORIZON_MONTHS: Months added to the anchor
            when a caller needs a default end date
        MILEAGE_RECURRENCE_MAX_RANGE_DAYS: Longest anchor-to-end span accepted
        MILEAGE_RECURRENCE_MAX_OCCURRENCES: Optional cap on generated dates
    """

    model_config = SettingsConfigDict(
        env_prefix="MILEAGE_RECURRENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_horizon_months: int = Field(
        default=3,
        gt=0,
        le=120,
        description="Months after the anchor used as the default end date",
    )
    max_range_days: int = Field(
        default=3660,
        gt=0,
        description="Maximum number of days between anchor and end date",
    )
    max_occurrences: Optional[int] = Field(
        default=None,
        ge=0,
        description="Truncate expanded schedules to this many dates",
    )


class DeductionConfig(BaseSettings):
    """Deduction rate and tax-estimate settings.

    Environment Variables:
        MILEAGE_DEDUCTION_RATE_YEAR: Rate table year (default: latest)
        MILEAGE_DEDUCTION_TERRITORY: Province/territory code for the
            northern bonus (YT, NT, NU)
        MILEAGE_DEDUCTION_FUEL_PORTION: Share of the deduction treated as fuel
        MILEAGE_DEDUCTION_SALES_TAX_RATE: HST/GST rate for the ITC estimate
    """

    model_config = SettingsConfigDict(
        env_prefix="MILEAGE_DEDUCTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rate_year: Optional[int] = Field(
        default=None,
        ge=2000,
        le=2100,
        description="Year of the rate table to use",
    )
    territory: Optional[str] = Field(
        default=None,
        description="Two-letter province or territory code",
    )
    fuel_portion: Decimal = Field(
        default=Decimal("0.40"),
        ge=0,
        le=1,
        description="Estimated fuel share of the per-km deduction",
    )
    sales_tax_rate: Decimal = Field(
        default=Decimal("0.13"),
        ge=0,
        le=1,
        description="Sales tax rate embedded in fuel purchases",
    )

    @field_validator("territory")
    @classmethod
    def normalize_territory(cls, v: Optional[str]) -> Optional[str]:
        """Uppercase the territory code; blank means none."""
        if v is None or not v.strip():
            return None
        return v.strip().upper()


class ImportConfig(BaseSettings):
    """Trip import settings.

    Environment Variables:
        MILEAGE_IMPORT_DELIMITER: Field separator for delimited text
        MILEAGE_IMPORT_NOISE_FLOOR_KM: Location-history segments shorter than
            this are dropped
        MILEAGE_IMPORT_COORDINATE_SCALE: Divisor for fixed-point coordinates
        MILEAGE_IMPORT_VEHICLE_ACTIVITY_TYPES: JSON list of activity types
            treated as driving
    """

    model_config = SettingsConfigDict(
        env_prefix="MILEAGE_IMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    delimiter: str = Field(
        default=",",
        min_length=1,
        max_length=1,
        description="Column separator for delimited-text imports",
    )
    noise_floor_km: Decimal = Field(
        default=Decimal("0.5"),
        ge=0,
        description="Minimum segment length kept from location history",
    )
    coordinate_scale: Decimal = Field(
        default=Decimal("1e7"),
        gt=0,
        description="Fixed-point scale of latitudeE7/longitudeE7 values",
    )
    vehicle_activity_types: list[str] = Field(
        default_factory=lambda: ["IN_VEHICLE", "DRIVING"],
        description="Activity types that represent a driving segment",
    )


class RoutingConfig(BaseSettings):
    """Route lookup collaborator settings.

    Environment Variables:
        MILEAGE_ROUTING_MAX_ATTEMPTS: Attempts per candidate before giving up
    """

    model_config = SettingsConfigDict(
        env_prefix="MILEAGE_ROUTING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Lookup attempts per candidate",
    )


class MileageConfig(BaseSettings):
    """Root configuration for the mileage engine.

    Environment Variables:
        MILEAGE_ENV: Environment name (development, staging, production, test)
        MILEAGE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        config = MileageConfig(
            deduction=DeductionConfig(rate_year=2024, territory="YT"),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="MILEAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    recurrence: RecurrenceConfig = Field(default_factory=RecurrenceConfig)
    deduction: DeductionConfig = Field(default_factory=DeductionConfig)
    importer: ImportConfig = Field(default_factory=ImportConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    @property
    def is_debug(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"


_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}


def configure_logging(config: Optional[MileageConfig] = None) -> None:
    """Apply the configured log level to structlog's default pipeline."""
    config = config or MileageConfig()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS[config.log_level]),
    )


__all__ = [
    "RecurrenceConfig",
    "DeductionConfig",
    "ImportConfig",
    "RoutingConfig",
    "MileageConfig",
    "configure_logging",
]
