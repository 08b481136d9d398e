"""
Configuration management with environment variable support and validation.

Design principles:
- Validation at startup (fail fast)
- Type safety with Pydantic
- Insight thresholds are configuration, not constants buried in rules
"""

import os
from functools import lru_cache
from typing import Literal, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from healthboard.services.insights import InsightThresholds

# Load environment variables from .env file
load_dotenv()


class DashboardConfig(BaseModel):
    """Which windows callers may request and how days are delimited."""

    allowed_window_days: list[int] = Field(
        default_factory=lambda: [7, 30, 90], min_length=1, description="Selectable window lengths"
    )
    default_window_days: int = Field(default=30, gt=0, description="Window used when none given")
    timezone: str = Field(default="UTC", description="IANA zone that defines calendar days")

    @field_validator("allowed_window_days")
    def validate_window_days(cls, v: list[int]) -> list[int]:
        if any(days <= 0 for days in v):
            raise ValueError("window lengths must be positive")
        return sorted(set(v))

    @field_validator("timezone")
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'. Use IANA timezone identifiers.") from e
        return v

    @model_validator(mode="after")
    def default_window_is_allowed(self) -> "DashboardConfig":
        if self.default_window_days not in self.allowed_window_days:
            raise ValueError("default_window_days must be one of allowed_window_days")
        return self


class FetchConfig(BaseModel):
    """Limits for fetching categories from the record store."""

    timeout_seconds: float = Field(default=10.0, gt=0.0, description="Per-category fetch timeout")
    max_concurrent_fetches: int = Field(
        default=6, gt=0, description="Maximum number of category fetches in flight"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    insights: InsightThresholds = Field(default_factory=InsightThresholds)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_int_list(val: str) -> list[int]:
        return [int(part) for part in val.split(",") if part.strip()]

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    thresholds = InsightThresholds(
        active_calories_per_activity=float(os.getenv("INSIGHT_ACTIVE_CALORIES", "300")),
        min_total_protein_g=float(os.getenv("INSIGHT_MIN_PROTEIN_G", "50")),
        good_mood_rating=float(os.getenv("INSIGHT_GOOD_MOOD_RATING", "4.0")),
        min_total_water_ml=float(os.getenv("INSIGHT_MIN_WATER_ML", "2000")),
    )

    dashboard_config = DashboardConfig(
        allowed_window_days=_parse_int_list(os.getenv("DASHBOARD_WINDOW_DAYS", "7,30,90")),
        default_window_days=int(os.getenv("DASHBOARD_DEFAULT_WINDOW_DAYS", "30")),
        timezone=os.getenv("DASHBOARD_TIMEZONE", "UTC"),
    )

    fetch_config = FetchConfig(
        timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "10.0")),
        max_concurrent_fetches=int(os.getenv("FETCH_MAX_CONCURRENCY", "6")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        insights=thresholds,
        dashboard=dashboard_config,
        fetch=fetch_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")
    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nDASHBOARD")
    print(f"Windows: {', '.join(str(d) for d in config.dashboard.allowed_window_days)} days")
    print(f"Default Window: {config.dashboard.default_window_days} days")
    print(f"Timezone: {config.dashboard.timezone}")

    print("\nINSIGHT THRESHOLDS")
    print(f"Active Lifestyle: > {config.insights.active_calories_per_activity:.0f} kcal/activity")
    print(f"Low Protein: < {config.insights.min_total_protein_g:.0f} g")
    print(f"Good Mood: > {config.insights.good_mood_rating:.1f}")
    print(f"Low Hydration: < {config.insights.min_total_water_ml:.0f} ml")

    print("\nFETCH")
    print(f"Timeout: {config.fetch.timeout_seconds}s")
    print(f"Max Concurrency: {config.fetch.max_concurrent_fetches}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
