"""Domain models for fair-usage booking scheduling."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class MemberShare:
    user_id: str
    ownership_percentage: float


@dataclass(frozen=True)
class MemberUsage:
    """One co-owner's stake and consumption over a single usage window."""

    user_id: str
    ownership_percentage: float
    total_bookings_count: int = 0
    total_hours_used: float = 0.0
    monthly_target_hours: Optional[int] = None


@dataclass(frozen=True)
class GroupUsageAggregate:
    group_total_bookings: int = 0
    group_total_hours: float = 0.0


@dataclass(frozen=True)
class BookingRequest:
    user_id: str
    created_at: datetime
    booking_id: Optional[str] = None


@dataclass(frozen=True)
class BookingRecord:
    """Historical booking used to derive usage counters."""

    user_id: str
    start_time: datetime
    end_time: datetime
    booking_id: Optional[str] = None
    status: str = "completed"


@dataclass(frozen=True)
class UsagePeriod:
    start: datetime
    end: datetime
    time_range: str

    @property
    def duration_days(self) -> int:
        seconds = (self.end - self.start).total_seconds()
        return int(-(-seconds // 86400))


@dataclass(frozen=True)
class UsageSnapshot:
    """Member rows and group totals computed over the same period."""

    period: UsagePeriod
    members: tuple[MemberUsage, ...]
    group: GroupUsageAggregate

    def member(self, user_id: str) -> Optional[MemberUsage]:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None


@dataclass(frozen=True)
class EligibilityDecision:
    allowed: bool
    reason: str
    priority_score: float
    overuse_percentage: float
    warning: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "allowed": self.allowed,
            "reason": self.reason,
            "priority_score": self.priority_score,
            "overuse_percentage": self.overuse_percentage,
        }
        if self.warning:
            payload["warning"] = True
        return payload


@dataclass(frozen=True)
class RankedBooking:
    booking: BookingRequest
    priority_score: float
    member: Optional[MemberUsage] = None


@dataclass(frozen=True)
class MemberPriority:
    member: MemberUsage
    priority_score: float


@dataclass(frozen=True)
class MemberFairness:
    user_id: str
    ownership_percentage: float
    total_bookings_count: int
    total_hours_used: float
    actual_usage_percentage: float
    usage_deviation: float
    fairness_score: int
    status: str
    recommended_hours: float
    priority_score: float
    monthly_target_hours: Optional[int] = None


@dataclass(frozen=True)
class TimeSlotSuggestion:
    day_of_week: str
    start_hour: int
    end_hour: int
    reason: str


@dataclass(frozen=True)
class Recommendation:
    user_id: str
    priority: str
    message: str
    suggested_time_slots: tuple[TimeSlotSuggestion, ...] = ()


@dataclass(frozen=True)
class Insight:
    category: str
    severity: str
    message: str
    affected_users: tuple[str, ...] = ()


@dataclass(frozen=True)
class FairnessReport:
    period: UsagePeriod
    members: tuple[MemberFairness, ...]
    overall_fairness_score: int
    fairness_level: str
    total_bookings: int
    total_hours: float
    recommendations: tuple[Recommendation, ...] = ()
    insights: tuple[Insight, ...] = ()
