"""Fair-usage priority scoring, eligibility gating, and conflict resolution.

Every function in this module is a pure function of its arguments: no I/O,
no logging, no clock reads, no mutation of inputs. Callers supply a
``MemberUsage`` and a ``GroupUsageAggregate`` computed over the same usage
window (see ``fairshare.services.usage_service.aggregate_usage``).
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from fairshare.domain.constraints import DEFAULT_WEIGHTS, FairnessWeights
from fairshare.domain.models import (
    BookingRequest,
    EligibilityDecision,
    GroupUsageAggregate,
    MemberPriority,
    MemberUsage,
    RankedBooking,
)


DEFAULT_MONTHLY_HOURS = 720

ELIGIBLE_REASON = "Eligible to book"


class InvalidArgumentError(ValueError):
    """Raised when a caller passes input the scheduler cannot score."""


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _validate_member(member: MemberUsage) -> None:
    if not 0.0 <= member.ownership_percentage <= 100.0:
        raise InvalidArgumentError(
            f"ownership_percentage must be between 0 and 100 (user_id={member.user_id})"
        )
    if member.total_bookings_count < 0:
        raise InvalidArgumentError(
            f"total_bookings_count must be >= 0 (user_id={member.user_id})"
        )
    if member.total_hours_used < 0.0:
        raise InvalidArgumentError(f"total_hours_used must be >= 0 (user_id={member.user_id})")


def _validate_group(group: GroupUsageAggregate) -> None:
    if group.group_total_bookings < 0:
        raise InvalidArgumentError("group_total_bookings must be >= 0")
    if group.group_total_hours < 0.0:
        raise InvalidArgumentError("group_total_hours must be >= 0")


def _ratio(part: float, total: float) -> float:
    if total > 0:
        return part / total
    return 0.0


def compute_priority_score(
    member: MemberUsage,
    group: GroupUsageAggregate,
    weights: FairnessWeights = DEFAULT_WEIGHTS,
) -> float:
    """Score a member in [0, 100]: ownership stake plus an under-use bonus.

    Over-use earns no bonus but no penalty either; penalties are applied by
    ``check_booking_eligibility``.
    """
    _validate_member(member)
    _validate_group(group)

    expected_ratio = member.ownership_percentage / 100
    actual_booking_ratio = _ratio(member.total_bookings_count, group.group_total_bookings)
    actual_hours_ratio = _ratio(member.total_hours_used, group.group_total_hours)

    booking_deficit = expected_ratio - actual_booking_ratio
    hours_deficit = expected_ratio - actual_hours_ratio
    combined_deficit = (
        weights.hours_weight * hours_deficit + weights.booking_weight * booking_deficit
    )

    ownership_points = member.ownership_percentage * weights.ownership_cap_points / 100
    deficit_points = max(0.0, min(weights.deficit_cap_points, combined_deficit * 100))
    return round_half_up(ownership_points + deficit_points, 2)


def check_booking_eligibility(
    member: MemberUsage,
    group: GroupUsageAggregate,
    requested_hours: float = 0.0,
    weights: FairnessWeights = DEFAULT_WEIGHTS,
) -> EligibilityDecision:
    """Gate a new booking on how far the member sits above their fair share.

    ``requested_hours`` only affects the verdict when
    ``weights.project_requested_hours`` is enabled; the request is then added
    to both the member's and the group's hours. A group with no recorded
    hours is never gated.
    """
    priority_score = compute_priority_score(member, group, weights)
    if member.ownership_percentage <= 0.0:
        raise InvalidArgumentError(
            f"ownership_percentage must be > 0 to check eligibility (user_id={member.user_id})"
        )
    if requested_hours < 0.0:
        raise InvalidArgumentError("requested_hours must be >= 0")

    expected_ratio = member.ownership_percentage / 100
    if weights.project_requested_hours and group.group_total_hours > 0:
        current_ratio = _ratio(
            member.total_hours_used + requested_hours,
            group.group_total_hours + requested_hours,
        )
    else:
        current_ratio = _ratio(member.total_hours_used, group.group_total_hours)

    overuse_percentage = ((current_ratio - expected_ratio) / expected_ratio) * 100

    if overuse_percentage > weights.deny_threshold_pct:
        return EligibilityDecision(
            allowed=False,
            reason=(
                f"Usage is {overuse_percentage:.1f}% above your ownership share. "
                "Please wait for other members to use the vehicle."
            ),
            priority_score=priority_score,
            overuse_percentage=overuse_percentage,
        )
    if overuse_percentage > weights.warn_threshold_pct:
        return EligibilityDecision(
            allowed=True,
            reason=f"Note: usage is {overuse_percentage:.1f}% above your ownership share.",
            priority_score=priority_score,
            overuse_percentage=overuse_percentage,
            warning=True,
        )
    return EligibilityDecision(
        allowed=True,
        reason=ELIGIBLE_REASON,
        priority_score=priority_score,
        overuse_percentage=overuse_percentage,
    )


def rank_conflicting_bookings(
    conflicting_bookings: Sequence[BookingRequest],
    members: Iterable[MemberUsage],
    group: GroupUsageAggregate,
    weights: FairnessWeights = DEFAULT_WEIGHTS,
) -> list[RankedBooking]:
    """Order competing requests from winner to last place.

    The highest remaining score leads, but any request scoring within
    ``weights.tie_break_points`` of it is tied, and the earliest ``created_at``
    among the tied set is taken first. Unknown requesters score 0.
    """
    if not conflicting_bookings:
        raise InvalidArgumentError("conflicting_bookings must contain at least one request")

    members_by_user: dict[str, MemberUsage] = {}
    for member in members:
        members_by_user.setdefault(member.user_id, member)

    remaining: list[tuple[int, RankedBooking]] = []
    for index, booking in enumerate(conflicting_bookings):
        member = members_by_user.get(booking.user_id)
        score = compute_priority_score(member, group, weights) if member is not None else 0.0
        remaining.append(
            (index, RankedBooking(booking=booking, priority_score=score, member=member))
        )

    ranked: list[RankedBooking] = []
    while remaining:
        top_score = max(item.priority_score for _, item in remaining)
        tied = [
            (index, item)
            for index, item in remaining
            if item.priority_score == top_score
            or top_score - item.priority_score < weights.tie_break_points
        ]
        winner_index, winner = min(
            tied,
            key=lambda pair: (pair[1].booking.created_at, pair[0]),
        )
        ranked.append(winner)
        remaining = [pair for pair in remaining if pair[0] != winner_index]
    return ranked


def resolve_booking_conflict(
    conflicting_bookings: Sequence[BookingRequest],
    members: Iterable[MemberUsage],
    group: GroupUsageAggregate,
    weights: FairnessWeights = DEFAULT_WEIGHTS,
) -> BookingRequest:
    """Return the booking request that should win the conflict."""
    ranked = rank_conflicting_bookings(conflicting_bookings, members, group, weights)
    return ranked[0].booking


def sort_members_by_priority(
    members: Iterable[MemberUsage],
    group: GroupUsageAggregate,
    weights: FairnessWeights = DEFAULT_WEIGHTS,
) -> list[MemberPriority]:
    scored = [
        MemberPriority(member=member, priority_score=compute_priority_score(member, group, weights))
        for member in members
    ]
    return sorted(scored, key=lambda item: item.priority_score, reverse=True)


def calculate_monthly_target(
    ownership_percentage: float,
    total_monthly_hours: float = DEFAULT_MONTHLY_HOURS,
) -> int:
    """Hours per month a member is entitled to at their ownership share."""
    if ownership_percentage < 0.0:
        raise InvalidArgumentError("ownership_percentage must be >= 0")
    if total_monthly_hours < 0:
        raise InvalidArgumentError("total_monthly_hours must be >= 0")
    return int(round_half_up((ownership_percentage / 100) * total_monthly_hours))
