"""Usage aggregation from booking history into scheduler-ready snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

import pandas as pd

from fairshare.domain.models import (
    BookingRecord,
    GroupUsageAggregate,
    MemberShare,
    MemberUsage,
    UsagePeriod,
    UsageSnapshot,
)
from fairshare.services.scheduling_service import (
    DEFAULT_MONTHLY_HOURS,
    InvalidArgumentError,
    calculate_monthly_target,
)


COMPLETED_STATUS = "completed"

_PERIOD_OFFSETS = {
    "week": pd.DateOffset(weeks=1),
    "month": pd.DateOffset(months=1),
    "quarter": pd.DateOffset(months=3),
    "year": pd.DateOffset(years=1),
}


def _as_utc(value: datetime) -> pd.Timestamp:
    timestamp = pd.Timestamp(value)
    if timestamp.tzinfo is None:
        return timestamp.tz_localize("UTC")
    return timestamp.tz_convert("UTC")


def calculate_period(
    time_range: str = "month",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> UsagePeriod:
    """Resolve the usage window; explicit bounds take precedence over ``time_range``."""
    if (start is None) != (end is None):
        raise InvalidArgumentError("start and end must be provided together")

    if start is not None and end is not None:
        period_start = _as_utc(start)
        period_end = _as_utc(end)
        if period_end <= period_start:
            raise InvalidArgumentError("period end must be after period start")
        return UsagePeriod(
            start=period_start.to_pydatetime(),
            end=period_end.to_pydatetime(),
            time_range="custom",
        )

    resolved_range = time_range if time_range in _PERIOD_OFFSETS else "month"
    period_end = _as_utc(now or datetime.now(timezone.utc))
    period_start = period_end - _PERIOD_OFFSETS[resolved_range]
    return UsagePeriod(
        start=period_start.to_pydatetime(),
        end=period_end.to_pydatetime(),
        time_range=resolved_range,
    )


def _build_booking_frame(bookings: Iterable[BookingRecord]) -> pd.DataFrame:
    rows = []
    for booking in bookings:
        start_time = _as_utc(booking.start_time)
        end_time = _as_utc(booking.end_time)
        if end_time <= start_time:
            raise InvalidArgumentError(
                f"booking end_time must be after start_time (booking_id={booking.booking_id})"
            )
        rows.append(
            {
                "user_id": booking.user_id,
                "start_time": start_time,
                "end_time": end_time,
                "status": booking.status.lower(),
            }
        )
    return pd.DataFrame(rows, columns=["user_id", "start_time", "end_time", "status"])


def aggregate_usage(
    members: Iterable[MemberShare],
    bookings: Iterable[BookingRecord],
    period: UsagePeriod,
    monthly_hours: float = DEFAULT_MONTHLY_HOURS,
) -> UsageSnapshot:
    """Sum completed bookings per roster member over ``period``.

    Bookings are attributed to the window their ``start_time`` falls in.
    Requesters who are not on the roster are excluded so that the group
    totals always equal the sum of the member rows.
    """
    roster = list(members)
    user_ids = [member.user_id for member in roster]
    if len(set(user_ids)) != len(user_ids):
        raise InvalidArgumentError("member roster contains duplicate user_id values")
    for member in roster:
        if not 0.0 <= member.ownership_percentage <= 100.0:
            raise InvalidArgumentError(
                f"ownership_percentage must be between 0 and 100 (user_id={member.user_id})"
            )

    frame = _build_booking_frame(bookings)
    per_user: dict[str, tuple[int, float]] = {}
    if not frame.empty:
        window_start = _as_utc(period.start)
        window_end = _as_utc(period.end)
        frame = frame[
            (frame["status"] == COMPLETED_STATUS)
            & frame["user_id"].isin(user_ids)
            & (frame["start_time"] >= window_start)
            & (frame["start_time"] < window_end)
        ].copy()
    if not frame.empty:
        frame["hours"] = (frame["end_time"] - frame["start_time"]).dt.total_seconds() / 3600
        grouped = frame.groupby("user_id")["hours"].agg(["size", "sum"])
        per_user = {
            str(user_id): (int(row["size"]), float(row["sum"]))
            for user_id, row in grouped.iterrows()
        }

    usage_rows = []
    for member in roster:
        bookings_count, hours_used = per_user.get(member.user_id, (0, 0.0))
        usage_rows.append(
            MemberUsage(
                user_id=member.user_id,
                ownership_percentage=member.ownership_percentage,
                total_bookings_count=bookings_count,
                total_hours_used=hours_used,
                monthly_target_hours=calculate_monthly_target(
                    member.ownership_percentage,
                    monthly_hours,
                ),
            )
        )

    group = GroupUsageAggregate(
        group_total_bookings=sum(row.total_bookings_count for row in usage_rows),
        group_total_hours=sum(row.total_hours_used for row in usage_rows),
    )
    return UsageSnapshot(period=period, members=tuple(usage_rows), group=group)
