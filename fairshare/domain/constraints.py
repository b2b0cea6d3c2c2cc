"""Domain-level policy objects for fairness scoring."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FairnessWeights:
    hours_weight: float = 0.7
    booking_weight: float = 0.3
    ownership_cap_points: float = 40.0
    deficit_cap_points: float = 60.0
    warn_threshold_pct: float = 20.0
    deny_threshold_pct: float = 50.0
    tie_break_points: float = 1.0
    project_requested_hours: bool = False


@dataclass(frozen=True)
class FairnessReportConfig:
    deviation_threshold_pct: float = 15.0
    insight_score_threshold: float = 60.0
    excellent_min_score: float = 90.0
    good_min_score: float = 75.0
    fair_min_score: float = 60.0
    needs_improvement_min_score: float = 40.0


DEFAULT_WEIGHTS = FairnessWeights()
DEFAULT_REPORT_CONFIG = FairnessReportConfig()


def validate_fairness_weights(weights: FairnessWeights) -> None:
    if weights.hours_weight < 0.0 or weights.booking_weight < 0.0:
        raise ValueError("hours_weight and booking_weight must be >= 0")
    if weights.hours_weight + weights.booking_weight <= 0.0:
        raise ValueError("hours_weight + booking_weight must be > 0")
    if weights.ownership_cap_points < 0.0:
        raise ValueError("ownership_cap_points must be >= 0")
    if weights.deficit_cap_points < 0.0:
        raise ValueError("deficit_cap_points must be >= 0")
    if weights.warn_threshold_pct > weights.deny_threshold_pct:
        raise ValueError("warn_threshold_pct must not exceed deny_threshold_pct")
    if weights.tie_break_points < 0.0:
        raise ValueError("tie_break_points must be >= 0")


def validate_report_config(config: FairnessReportConfig) -> None:
    if config.deviation_threshold_pct < 0.0:
        raise ValueError("deviation_threshold_pct must be >= 0")
    if not 0.0 <= config.insight_score_threshold <= 100.0:
        raise ValueError("insight_score_threshold must be between 0 and 100")
    cut_offs = (
        config.excellent_min_score,
        config.good_min_score,
        config.fair_min_score,
        config.needs_improvement_min_score,
    )
    if any(not 0.0 <= value <= 100.0 for value in cut_offs):
        raise ValueError("fairness level cut-offs must be between 0 and 100")
    if list(cut_offs) != sorted(cut_offs, reverse=True):
        raise ValueError("fairness level cut-offs must descend from excellent to needs_improvement")
