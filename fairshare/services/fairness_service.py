"""Booking-workflow facade over the fairness scheduler."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from fairshare.domain.constraints import (
    FairnessReportConfig,
    FairnessWeights,
    validate_fairness_weights,
    validate_report_config,
)
from fairshare.domain.models import (
    BookingRecord,
    BookingRequest,
    EligibilityDecision,
    FairnessReport,
    GroupUsageAggregate,
    MemberPriority,
    MemberShare,
    MemberUsage,
    RankedBooking,
    UsageSnapshot,
)
from fairshare.services.fairness_report_service import calculate_fairness_report
from fairshare.services.scheduling_service import (
    calculate_monthly_target,
    check_booking_eligibility,
    compute_priority_score,
    rank_conflicting_bookings,
    sort_members_by_priority,
)
from fairshare.services.usage_service import aggregate_usage, calculate_period
from fairshare.utils.config import Settings, get_settings
from fairshare.utils.logger import get_logger


logger = get_logger(__name__)


def build_weights(settings: Settings) -> FairnessWeights:
    return FairnessWeights(
        hours_weight=settings.fairness_hours_weight,
        booking_weight=settings.fairness_booking_weight,
        ownership_cap_points=settings.fairness_ownership_cap_points,
        deficit_cap_points=settings.fairness_deficit_cap_points,
        warn_threshold_pct=settings.fairness_warn_threshold_pct,
        deny_threshold_pct=settings.fairness_deny_threshold_pct,
        tie_break_points=settings.fairness_tie_break_points,
        project_requested_hours=settings.fairness_project_requested_hours,
    )


def build_report_config(settings: Settings) -> FairnessReportConfig:
    return FairnessReportConfig(
        deviation_threshold_pct=settings.report_deviation_threshold_pct,
        insight_score_threshold=settings.report_insight_score_threshold,
        excellent_min_score=settings.report_excellent_min_score,
        good_min_score=settings.report_good_min_score,
        fair_min_score=settings.report_fair_min_score,
        needs_improvement_min_score=settings.report_needs_improvement_min_score,
    )


class BookingFairnessService:
    """Applies the configured fairness policy for the booking approval workflow."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        weights: Optional[FairnessWeights] = None,
        report_config: Optional[FairnessReportConfig] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._weights = weights or build_weights(self._settings)
        self._report_config = report_config or build_report_config(self._settings)
        validate_fairness_weights(self._weights)
        validate_report_config(self._report_config)

    @property
    def weights(self) -> FairnessWeights:
        return self._weights

    def priority_score(self, member: MemberUsage, group: GroupUsageAggregate) -> float:
        return compute_priority_score(member, group, self._weights)

    def check_eligibility(
        self,
        member: MemberUsage,
        group: GroupUsageAggregate,
        requested_hours: float = 0.0,
    ) -> EligibilityDecision:
        decision = check_booking_eligibility(
            member,
            group,
            requested_hours=requested_hours,
            weights=self._weights,
        )
        if not decision.allowed:
            logger.warning(
                (
                    "Booking denied by fair-usage policy | user_id=%s | "
                    "overuse_pct=%.1f | priority_score=%.2f"
                ),
                member.user_id,
                decision.overuse_percentage,
                decision.priority_score,
            )
        elif decision.warning:
            logger.warning(
                "Booking allowed with overuse warning | user_id=%s | overuse_pct=%.1f",
                member.user_id,
                decision.overuse_percentage,
            )
        else:
            logger.info(
                "Booking eligible | user_id=%s | priority_score=%.2f | requested_hours=%.2f",
                member.user_id,
                decision.priority_score,
                requested_hours,
            )
        return decision

    def rank_conflict(
        self,
        conflicting_bookings: Sequence[BookingRequest],
        members: Iterable[MemberUsage],
        group: GroupUsageAggregate,
    ) -> list[RankedBooking]:
        ranked = rank_conflicting_bookings(
            conflicting_bookings,
            members,
            group,
            self._weights,
        )
        unknown = [item.booking.user_id for item in ranked if item.member is None]
        if unknown:
            logger.warning(
                "Conflict includes requesters outside the roster | user_ids=%s",
                unknown,
            )
        winner = ranked[0]
        logger.info(
            "Booking conflict resolved | winner_user_id=%s | booking_id=%s | "
            "priority_score=%.2f | contenders=%s",
            winner.booking.user_id,
            winner.booking.booking_id,
            winner.priority_score,
            len(ranked),
        )
        return ranked

    def resolve_conflict(
        self,
        conflicting_bookings: Sequence[BookingRequest],
        members: Iterable[MemberUsage],
        group: GroupUsageAggregate,
    ) -> BookingRequest:
        return self.rank_conflict(conflicting_bookings, members, group)[0].booking

    def rank_members(
        self,
        members: Iterable[MemberUsage],
        group: GroupUsageAggregate,
    ) -> list[MemberPriority]:
        return sort_members_by_priority(members, group, self._weights)

    def monthly_target(self, ownership_percentage: float) -> int:
        return calculate_monthly_target(ownership_percentage, self._settings.monthly_hours)

    def snapshot_usage(
        self,
        members: Iterable[MemberShare],
        bookings: Iterable[BookingRecord],
        *,
        time_range: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> UsageSnapshot:
        period = calculate_period(
            time_range=time_range or self._settings.default_time_range,
            start=start,
            end=end,
            now=now,
        )
        snapshot = aggregate_usage(
            members,
            bookings,
            period,
            monthly_hours=self._settings.monthly_hours,
        )
        logger.debug(
            "Usage snapshot built | range=%s | days=%s | members=%s | "
            "total_bookings=%s | total_hours=%.2f",
            period.time_range,
            period.duration_days,
            len(snapshot.members),
            snapshot.group.group_total_bookings,
            snapshot.group.group_total_hours,
        )
        return snapshot

    def analyze_group(
        self,
        members: Iterable[MemberShare],
        bookings: Iterable[BookingRecord],
        *,
        time_range: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> FairnessReport:
        snapshot = self.snapshot_usage(
            members,
            bookings,
            time_range=time_range,
            start=start,
            end=end,
            now=now,
        )
        report = calculate_fairness_report(snapshot, self._weights, self._report_config)
        logger.info(
            "Fairness analysis completed | range=%s | overall_score=%s | level=%s | "
            "recommendations=%s",
            report.period.time_range,
            report.overall_fairness_score,
            report.fairness_level,
            len(report.recommendations),
        )
        return report
