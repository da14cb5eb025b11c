"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Calibration constants live in code, only tunables come from the environment
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


class PatternConfig(BaseModel):
    """Defaults fed to the pattern detector engine."""

    min_occurrences: int = Field(
        default=3, ge=1, description="Minimum hits before a tag or pair is considered"
    )
    tag_lag_window_hours: tuple[int, int] = Field(
        default=(12, 24), description="Inclusive hour window after a tagged entry"
    )
    lookback_days: int = Field(default=30, ge=1, description="Trailing window for detectors")
    max_patterns: int = Field(default=3, ge=1, description="Patterns kept after ranking")

    @field_validator("tag_lag_window_hours")
    def validate_window(cls, v):
        low, high = v
        if low < 0 or high < low:
            raise ValueError("tag lag window must satisfy 0 <= low <= high")
        return v


class TrendConfig(BaseModel):
    days: int = Field(default=30, ge=1, description="Days in the severity trend")
    top_symptoms: int = Field(default=5, ge=1, description="Symptoms in the top-N ranking")


class TimingConfig(BaseModel):
    """Timing-interaction evaluation settings used by the report service."""

    max_hints: int = Field(default=2, ge=1, description="Hints kept per medication and overall")
    recent_tag_window_hours: int = Field(
        default=4, gt=0, description="Symptom tags newer than this count as current context"
    )
    meds_for_hints: int = Field(default=2, ge=1, description="Recent medications evaluated")
    unique_meds_limit: int = Field(default=5, ge=1, description="Distinct medications listed")


class ReportConfig(BaseModel):
    window_days: int = Field(
        default=30, ge=1, description="Trailing window of symptoms and medication logs in a report"
    )


class AdherenceConfig(BaseModel):
    window_days: int = Field(default=30, ge=1, description="Trailing window for adherence stats")


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

    patterns: PatternConfig = Field(default_factory=PatternConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    adherence: AdherenceConfig = Field(default_factory=AdherenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _parse_window(val: str) -> tuple[int, int]:
    low, _, high = val.partition(",")
    return int(low.strip()), int(high.strip())


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

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    pattern_config = PatternConfig(
        min_occurrences=int(os.getenv("PATTERN_MIN_OCCURRENCES", "3")),
        tag_lag_window_hours=_parse_window(os.getenv("PATTERN_LAG_WINDOW_HOURS", "12,24")),
        lookback_days=int(os.getenv("PATTERN_LOOKBACK_DAYS", "30")),
    )

    trend_config = TrendConfig(days=int(os.getenv("TREND_DAYS", "30")))

    report_config = ReportConfig(window_days=int(os.getenv("REPORT_WINDOW_DAYS", "30")))

    timing_config = TimingConfig(max_hints=int(os.getenv("TIMING_MAX_HINTS", "2")))

    adherence_config = AdherenceConfig(
        window_days=int(os.getenv("ADHERENCE_WINDOW_DAYS", "30")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        patterns=pattern_config,
        trend=trend_config,
        report=report_config,
        timing=timing_config,
        adherence=adherence_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def reset_config_cache() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    get_config.cache_clear()
