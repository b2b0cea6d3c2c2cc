"""Group-level fairness analysis and rule-based recommendations."""

from __future__ import annotations

from dataclasses import replace

import numpy as np
import pandas as pd

from fairshare.domain.constraints import (
    DEFAULT_REPORT_CONFIG,
    DEFAULT_WEIGHTS,
    FairnessReportConfig,
    FairnessWeights,
)
from fairshare.domain.models import (
    FairnessReport,
    Insight,
    MemberFairness,
    Recommendation,
    TimeSlotSuggestion,
    UsageSnapshot,
)
from fairshare.services.scheduling_service import compute_priority_score, round_half_up


STATUS_OVERUSE = "overuse"
STATUS_UNDERUSE = "underuse"
STATUS_FAIR = "fair"

UNDERUSE_TIME_SLOTS = (
    TimeSlotSuggestion(
        day_of_week="monday",
        start_hour=8,
        end_hour=12,
        reason="Low-conflict window",
    ),
    TimeSlotSuggestion(
        day_of_week="wednesday",
        start_hour=14,
        end_hour=18,
        reason="High vehicle availability",
    ),
)


def fairness_level(score: float, config: FairnessReportConfig = DEFAULT_REPORT_CONFIG) -> str:
    if score >= config.excellent_min_score:
        return "excellent"
    if score >= config.good_min_score:
        return "good"
    if score >= config.fair_min_score:
        return "fair"
    if score >= config.needs_improvement_min_score:
        return "needs_improvement"
    return "poor"


def _build_member_frame(snapshot: UsageSnapshot) -> pd.DataFrame:
    frame = pd.DataFrame(
        [
            {
                "user_id": member.user_id,
                "ownership_percentage": float(member.ownership_percentage),
                "total_bookings_count": int(member.total_bookings_count),
                "total_hours_used": float(member.total_hours_used),
            }
            for member in snapshot.members
        ],
        columns=["user_id", "ownership_percentage", "total_bookings_count", "total_hours_used"],
    )
    total_hours = float(snapshot.group.group_total_hours)
    if total_hours > 0:
        frame["actual_usage_percentage"] = frame["total_hours_used"] / total_hours * 100
    else:
        frame["actual_usage_percentage"] = 0.0
    frame["usage_deviation"] = frame["actual_usage_percentage"] - frame["ownership_percentage"]
    frame["fairness_score"] = np.maximum(0.0, 100.0 - frame["usage_deviation"].abs() * 2)
    frame["recommended_hours"] = total_hours * frame["ownership_percentage"] / 100
    return frame


def calculate_fairness_report(
    snapshot: UsageSnapshot,
    weights: FairnessWeights = DEFAULT_WEIGHTS,
    config: FairnessReportConfig = DEFAULT_REPORT_CONFIG,
) -> FairnessReport:
    """Measure how closely each member's share of hours tracks their ownership."""
    if not snapshot.members:
        return FairnessReport(
            period=snapshot.period,
            members=(),
            overall_fairness_score=100,
            fairness_level=fairness_level(100, config),
            total_bookings=snapshot.group.group_total_bookings,
            total_hours=round_half_up(float(snapshot.group.group_total_hours), 1),
        )

    frame = _build_member_frame(snapshot)
    threshold = config.deviation_threshold_pct
    frame["status"] = np.where(
        frame["usage_deviation"] > threshold,
        STATUS_OVERUSE,
        np.where(frame["usage_deviation"] < -threshold, STATUS_UNDERUSE, STATUS_FAIR),
    )

    member_rows: list[MemberFairness] = []
    for row in frame.itertuples(index=False):
        member = snapshot.member(row.user_id)
        member_rows.append(
            MemberFairness(
                user_id=row.user_id,
                ownership_percentage=member.ownership_percentage,
                total_bookings_count=member.total_bookings_count,
                total_hours_used=member.total_hours_used,
                actual_usage_percentage=float(row.actual_usage_percentage),
                usage_deviation=float(row.usage_deviation),
                fairness_score=int(round_half_up(float(row.fairness_score))),
                status=str(row.status),
                recommended_hours=round_half_up(float(row.recommended_hours), 1),
                priority_score=compute_priority_score(member, snapshot.group, weights),
                monthly_target_hours=member.monthly_target_hours,
            )
        )

    average_deviation = float(frame["usage_deviation"].abs().mean())
    raw_overall_score = max(0.0, 100.0 - average_deviation * 2)
    overall_score = int(round_half_up(raw_overall_score))

    report = FairnessReport(
        period=snapshot.period,
        members=tuple(member_rows),
        overall_fairness_score=overall_score,
        fairness_level=fairness_level(raw_overall_score, config),
        total_bookings=snapshot.group.group_total_bookings,
        total_hours=round_half_up(float(snapshot.group.group_total_hours), 1),
    )
    recommendations, insights = generate_recommendations(report, config)
    return replace(report, recommendations=recommendations, insights=insights)


def generate_recommendations(
    report: FairnessReport,
    config: FairnessReportConfig = DEFAULT_REPORT_CONFIG,
) -> tuple[tuple[Recommendation, ...], tuple[Insight, ...]]:
    recommendations: list[Recommendation] = []
    for member in report.members:
        if member.status == STATUS_OVERUSE:
            recommendations.append(
                Recommendation(
                    user_id=member.user_id,
                    priority="high",
                    message=(
                        f"You used {member.actual_usage_percentage:.1f}% of group hours against a "
                        f"{member.ownership_percentage:g}% ownership share. Consider booking less "
                        "so other members get their fair share."
                    ),
                )
            )
        elif member.status == STATUS_UNDERUSE:
            recommendations.append(
                Recommendation(
                    user_id=member.user_id,
                    priority="medium",
                    message=(
                        f"You used {member.actual_usage_percentage:.1f}% of group hours against a "
                        f"{member.ownership_percentage:g}% ownership share. You can book about "
                        f"{member.recommended_hours:g}h in the next period."
                    ),
                    suggested_time_slots=UNDERUSE_TIME_SLOTS,
                )
            )

    insights: list[Insight] = []
    if report.members and report.overall_fairness_score < config.insight_score_threshold:
        insights.append(
            Insight(
                category="fairness",
                severity="warning",
                message=(
                    "Group fairness is low. Agree on a clearer usage schedule among members."
                ),
                affected_users=tuple(member.user_id for member in report.members),
            )
        )
    return tuple(recommendations), tuple(insights)
