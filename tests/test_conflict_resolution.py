from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from fairshare.domain.constraints import FairnessWeights
from fairshare.domain.models import BookingRequest, GroupUsageAggregate, MemberUsage
from fairshare.services.scheduling_service import (
    InvalidArgumentError,
    compute_priority_score,
    rank_conflicting_bookings,
    resolve_booking_conflict,
)


BASE_TIME = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
GROUP = GroupUsageAggregate(group_total_bookings=200, group_total_hours=200.0)


def _member(user_id: str, ownership: float, hours: float = 0.0, bookings: int = 0):
    return MemberUsage(
        user_id=user_id,
        ownership_percentage=ownership,
        total_bookings_count=bookings,
        total_hours_used=hours,
    )


def _request(user_id: str, minutes_after_base: int, booking_id: str | None = None):
    return BookingRequest(
        user_id=user_id,
        created_at=BASE_TIME + timedelta(minutes=minutes_after_base),
        booking_id=booking_id or f"booking-{user_id}",
    )


def test_clear_priority_gap_beats_earlier_submission():
    high = _member("high", 50.0)
    low = _member("low", 50.0, hours=40.0, bookings=40)
    assert compute_priority_score(high, GROUP) == pytest.approx(70.0)
    assert compute_priority_score(low, GROUP) == pytest.approx(50.0)

    early_low = _request("low", 0)
    late_high = _request("high", 30)

    winner = resolve_booking_conflict([early_low, late_high], [high, low], GROUP)

    assert winner == late_high


def test_near_tie_falls_back_to_first_come_first_served():
    nominally_lower = _member("a", 50.5, hours=1.0, bookings=1)
    nominally_higher = _member("b", 51.0, hours=1.0, bookings=1)
    assert compute_priority_score(nominally_lower, GROUP) == pytest.approx(70.2)
    assert compute_priority_score(nominally_higher, GROUP) == pytest.approx(70.9)

    early = _request("a", 0)
    late = _request("b", 5)

    assert resolve_booking_conflict([late, early], [nominally_lower, nominally_higher], GROUP) == early


def test_near_tie_winner_does_not_depend_on_input_order():
    members = [_member("a", 50.5, hours=1.0, bookings=1), _member("b", 51.0, hours=1.0, bookings=1)]
    early = _request("b", 0)
    late = _request("a", 5)

    assert resolve_booking_conflict([early, late], members, GROUP) == early
    assert resolve_booking_conflict([late, early], members, GROUP) == early


def test_empty_conflict_list_is_rejected():
    with pytest.raises(InvalidArgumentError):
        resolve_booking_conflict([], [_member("a", 50.0)], GROUP)


def test_unknown_requester_scores_zero_and_loses():
    known = _member("known", 20.0, hours=40.0, bookings=40)
    stranger_first = _request("stranger", 0)
    known_later = _request("known", 60)

    ranked = rank_conflicting_bookings([stranger_first, known_later], [known], GROUP)

    assert ranked[0].booking == known_later
    assert ranked[1].booking == stranger_first
    assert ranked[1].priority_score == 0.0
    assert ranked[1].member is None


def test_only_unknown_requesters_resolve_by_submission_time():
    first = _request("ghost-1", 0)
    second = _request("ghost-2", 10)

    assert resolve_booking_conflict([second, first], [], GROUP) == first


def test_identical_timestamps_keep_input_order():
    members = [_member("a", 30.0), _member("b", 30.0)]
    first = _request("a", 0)
    second = _request("b", 0)

    assert resolve_booking_conflict([first, second], members, GROUP) == first
    assert resolve_booking_conflict([second, first], members, GROUP) == second


def test_full_ranking_is_returned_in_priority_order():
    members = [
        _member("top", 60.0),
        _member("mid", 30.0),
        _member("bottom", 10.0, hours=50.0, bookings=50),
    ]
    requests = [_request("bottom", 0), _request("mid", 1), _request("top", 2)]

    ranked = rank_conflicting_bookings(requests, members, GROUP)

    assert [item.booking.user_id for item in ranked] == ["top", "mid", "bottom"]
    assert [item.priority_score for item in ranked] == sorted(
        (item.priority_score for item in ranked), reverse=True
    )


def test_zero_tie_break_orders_strictly_by_score():
    weights = FairnessWeights(tie_break_points=0.0)
    members = [_member("a", 50.5, hours=1.0, bookings=1), _member("b", 51.0, hours=1.0, bookings=1)]
    early = _request("a", 0)
    late = _request("b", 5)

    assert resolve_booking_conflict([early, late], members, GROUP, weights) == late


def test_wider_tie_break_window_favours_submission_time():
    weights = FairnessWeights(tie_break_points=25.0)
    members = [_member("high", 50.0), _member("low", 50.0, hours=40.0, bookings=40)]
    early_low = _request("low", 0)
    late_high = _request("high", 30)

    assert resolve_booking_conflict([early_low, late_high], members, GROUP, weights) == early_low


def test_conflict_inputs_are_not_mutated():
    members = [_member("a", 40.0), _member("b", 60.0)]
    requests = [_request("a", 0), _request("b", 1)]
    members_before = list(members)
    requests_before = list(requests)

    rank_conflicting_bookings(requests, members, GROUP)

    assert members == members_before
    assert requests == requests_before


def test_duplicate_roster_entries_use_first_match():
    members = [_member("a", 60.0), _member("a", 10.0)]

    ranked = rank_conflicting_bookings([_request("a", 0)], members, GROUP)

    assert ranked[0].member == members[0]
