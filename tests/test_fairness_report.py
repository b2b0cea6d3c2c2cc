from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fairshare.domain.constraints import FairnessReportConfig
from fairshare.domain.models import GroupUsageAggregate, MemberUsage, UsagePeriod, UsageSnapshot
from fairshare.services.fairness_report_service import (
    calculate_fairness_report,
    fairness_level,
)
from fairshare.services.scheduling_service import compute_priority_score


PERIOD = UsagePeriod(
    start=datetime(2026, 2, 1, tzinfo=timezone.utc),
    end=datetime(2026, 3, 1, tzinfo=timezone.utc),
    time_range="month",
)


def _snapshot(*members: MemberUsage) -> UsageSnapshot:
    return UsageSnapshot(
        period=PERIOD,
        members=members,
        group=GroupUsageAggregate(
            group_total_bookings=sum(member.total_bookings_count for member in members),
            group_total_hours=sum(member.total_hours_used for member in members),
        ),
    )


def _member(user_id: str, ownership: float, hours: float, bookings: int) -> MemberUsage:
    return MemberUsage(
        user_id=user_id,
        ownership_percentage=ownership,
        total_bookings_count=bookings,
        total_hours_used=hours,
        monthly_target_hours=int(ownership * 7.2),
    )


def test_unbalanced_group_flags_overuse_and_underuse():
    snapshot = _snapshot(_member("alice", 60.0, 8.0, 2), _member("bob", 40.0, 2.0, 1))

    report = calculate_fairness_report(snapshot)

    alice, bob = report.members
    assert alice.status == "overuse"
    assert alice.actual_usage_percentage == pytest.approx(80.0)
    assert alice.usage_deviation == pytest.approx(20.0)
    assert alice.fairness_score == 60
    assert alice.recommended_hours == pytest.approx(6.0)
    assert bob.status == "underuse"
    assert bob.usage_deviation == pytest.approx(-20.0)
    assert bob.recommended_hours == pytest.approx(4.0)
    assert report.overall_fairness_score == 60
    assert report.fairness_level == "fair"
    assert report.total_bookings == 3
    assert report.total_hours == pytest.approx(10.0)


def test_unbalanced_group_gets_member_recommendations():
    snapshot = _snapshot(_member("alice", 60.0, 8.0, 2), _member("bob", 40.0, 2.0, 1))

    report = calculate_fairness_report(snapshot)

    by_user = {item.user_id: item for item in report.recommendations}
    assert by_user["alice"].priority == "high"
    assert by_user["alice"].suggested_time_slots == ()
    assert by_user["bob"].priority == "medium"
    assert len(by_user["bob"].suggested_time_slots) == 2
    assert "4h" in by_user["bob"].message
    assert report.insights == ()


def test_balanced_group_is_excellent_without_recommendations():
    snapshot = _snapshot(_member("alice", 50.0, 5.0, 1), _member("bob", 50.0, 5.0, 1))

    report = calculate_fairness_report(snapshot)

    assert [member.status for member in report.members] == ["fair", "fair"]
    assert [member.fairness_score for member in report.members] == [100, 100]
    assert report.overall_fairness_score == 100
    assert report.fairness_level == "excellent"
    assert report.recommendations == ()


def test_group_without_usage_raises_low_fairness_insight():
    snapshot = _snapshot(_member("alice", 60.0, 0.0, 0), _member("bob", 40.0, 0.0, 0))

    report = calculate_fairness_report(snapshot)

    assert [member.fairness_score for member in report.members] == [0, 20]
    assert report.overall_fairness_score == 0
    assert report.fairness_level == "poor"
    assert len(report.insights) == 1
    assert report.insights[0].severity == "warning"
    assert report.insights[0].affected_users == ("alice", "bob")


def test_member_rows_carry_priority_and_target():
    snapshot = _snapshot(_member("alice", 60.0, 8.0, 2), _member("bob", 40.0, 2.0, 1))

    report = calculate_fairness_report(snapshot)

    for row, member in zip(report.members, snapshot.members):
        assert row.priority_score == compute_priority_score(member, snapshot.group)
        assert row.monthly_target_hours == member.monthly_target_hours


def test_deviation_threshold_is_configurable():
    snapshot = _snapshot(_member("alice", 60.0, 8.0, 2), _member("bob", 40.0, 2.0, 1))

    report = calculate_fairness_report(
        snapshot, config=FairnessReportConfig(deviation_threshold_pct=25.0)
    )

    assert [member.status for member in report.members] == ["fair", "fair"]
    assert report.recommendations == ()


def test_empty_snapshot_reports_perfect_fairness():
    report = calculate_fairness_report(_snapshot())

    assert report.members == ()
    assert report.overall_fairness_score == 100
    assert report.fairness_level == "excellent"
    assert report.insights == ()


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (100, "excellent"),
        (90, "excellent"),
        (89, "good"),
        (75, "good"),
        (60, "fair"),
        (40, "needs_improvement"),
        (39, "poor"),
        (0, "poor"),
    ],
)
def test_fairness_level_cut_offs(score, expected):
    assert fairness_level(score) == expected


def test_level_is_taken_from_unrounded_overall_score():
    snapshot = _snapshot(_member("alice", 50.0, 55.1, 5), _member("bob", 50.0, 44.9, 5))

    report = calculate_fairness_report(snapshot)

    assert report.overall_fairness_score == 90
    assert report.fairness_level == "good"
