"""Validated DTOs for member, usage, and booking payloads from peer services."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fairshare.domain.models import (
    BookingRecord,
    BookingRequest,
    GroupUsageAggregate,
    MemberShare,
    MemberUsage,
)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class MemberSharePayload(_Payload):
    """Roster entry as returned by the group-members endpoint."""

    user_id: str = Field(alias="userId", min_length=1)
    ownership_percentage: float = Field(alias="ownershipPercentage", ge=0.0, le=100.0)

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    def to_domain(self) -> MemberShare:
        return MemberShare(
            user_id=self.user_id,
            ownership_percentage=self.ownership_percentage,
        )


class MemberUsagePayload(MemberSharePayload):
    total_bookings: int = Field(default=0, alias="totalBookings", ge=0)
    total_hours_used: float = Field(default=0.0, alias="totalHoursUsed", ge=0.0)
    monthly_target: int | None = Field(default=None, alias="monthlyTarget", ge=0)

    def to_domain(self) -> MemberUsage:
        return MemberUsage(
            user_id=self.user_id,
            ownership_percentage=self.ownership_percentage,
            total_bookings_count=self.total_bookings,
            total_hours_used=self.total_hours_used,
            monthly_target_hours=self.monthly_target,
        )


class GroupStatsPayload(_Payload):
    total_bookings: int = Field(default=0, alias="totalBookings", ge=0)
    total_hours: float = Field(default=0.0, alias="totalHours", ge=0.0)

    def to_domain(self) -> GroupUsageAggregate:
        return GroupUsageAggregate(
            group_total_bookings=self.total_bookings,
            group_total_hours=self.total_hours,
        )


class BookingRequestPayload(_Payload):
    user_id: str = Field(alias="userId", min_length=1)
    created_at: datetime = Field(alias="createdAt")
    booking_id: str | None = Field(default=None, alias="id")

    @field_validator("user_id", "booking_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    def to_domain(self) -> BookingRequest:
        return BookingRequest(
            user_id=self.user_id,
            created_at=self.created_at,
            booking_id=self.booking_id,
        )


class BookingRecordPayload(_Payload):
    user_id: str = Field(alias="userId", min_length=1)
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    booking_id: str | None = Field(default=None, alias="id")
    status: str = "completed"

    @field_validator("user_id", "booking_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @model_validator(mode="after")
    def validate_time_range(self) -> "BookingRecordPayload":
        if (self.start_time.tzinfo is None) != (self.end_time.tzinfo is None):
            raise ValueError("startTime and endTime must both carry a UTC offset or neither")
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

    def to_domain(self) -> BookingRecord:
        return BookingRecord(
            user_id=self.user_id,
            start_time=self.start_time,
            end_time=self.end_time,
            booking_id=self.booking_id,
            status=self.status,
        )
