"""Environment-driven settings for the fairness scheduler."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError


_ENV_PREFIX = "FAIRSHARE_"

T = TypeVar("T")


@dataclass(frozen=True)
class Settings:
    app_name: str = "fairshare"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    fairness_hours_weight: float = 0.7
    fairness_booking_weight: float = 0.3
    fairness_ownership_cap_points: float = 40.0
    fairness_deficit_cap_points: float = 60.0
    fairness_warn_threshold_pct: float = 20.0
    fairness_deny_threshold_pct: float = 50.0
    fairness_tie_break_points: float = 1.0
    fairness_project_requested_hours: bool = False

    monthly_hours: int = 720
    default_time_range: str = "month"

    report_deviation_threshold_pct: float = 15.0
    report_insight_score_threshold: float = 60.0
    report_excellent_min_score: float = 90.0
    report_good_min_score: float = 75.0
    report_fair_min_score: float = 60.0
    report_needs_improvement_min_score: float = 40.0


def _read(name: str) -> str | None:
    value = os.getenv(f"{_ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


@lru_cache(maxsize=None)
def _adapter(value_type: type) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


def _env(name: str, default: T) -> T:
    """Read ``FAIRSHARE_<name>`` coerced to the type of ``default``."""
    value = _read(name)
    if value is None:
        return default
    try:
        return _adapter(type(default)).validate_python(value)
    except ValidationError as exc:
        raise ValueError(
            f"{_ENV_PREFIX}{name} must be a valid {type(default).__name__}, got {value!r}"
        ) from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process; call ``get_settings.cache_clear()`` to reload."""
    defaults = Settings()
    return Settings(
        app_name=_env("APP_NAME", defaults.app_name),
        app_version=_env("APP_VERSION", defaults.app_version),
        log_level=_env("LOG_LEVEL", defaults.log_level),
        log_format=_env("LOG_FORMAT", defaults.log_format),
        fairness_hours_weight=_env("HOURS_WEIGHT", defaults.fairness_hours_weight),
        fairness_booking_weight=_env("BOOKING_WEIGHT", defaults.fairness_booking_weight),
        fairness_ownership_cap_points=_env(
            "OWNERSHIP_CAP_POINTS", defaults.fairness_ownership_cap_points
        ),
        fairness_deficit_cap_points=_env(
            "DEFICIT_CAP_POINTS", defaults.fairness_deficit_cap_points
        ),
        fairness_warn_threshold_pct=_env(
            "WARN_THRESHOLD_PCT", defaults.fairness_warn_threshold_pct
        ),
        fairness_deny_threshold_pct=_env(
            "DENY_THRESHOLD_PCT", defaults.fairness_deny_threshold_pct
        ),
        fairness_tie_break_points=_env(
            "TIE_BREAK_POINTS", defaults.fairness_tie_break_points
        ),
        fairness_project_requested_hours=_env(
            "PROJECT_REQUESTED_HOURS", defaults.fairness_project_requested_hours
        ),
        monthly_hours=_env("MONTHLY_HOURS", defaults.monthly_hours),
        default_time_range=_env("DEFAULT_TIME_RANGE", defaults.default_time_range),
        report_deviation_threshold_pct=_env(
            "REPORT_DEVIATION_THRESHOLD_PCT", defaults.report_deviation_threshold_pct
        ),
        report_insight_score_threshold=_env(
            "REPORT_INSIGHT_SCORE_THRESHOLD", defaults.report_insight_score_threshold
        ),
        report_excellent_min_score=_env(
            "REPORT_EXCELLENT_MIN_SCORE", defaults.report_excellent_min_score
        ),
        report_good_min_score=_env("REPORT_GOOD_MIN_SCORE", defaults.report_good_min_score),
        report_fair_min_score=_env("REPORT_FAIR_MIN_SCORE", defaults.report_fair_min_score),
        report_needs_improvement_min_score=_env(
            "REPORT_NEEDS_IMPROVEMENT_MIN_SCORE", defaults.report_needs_improvement_min_score
        ),
    )
