"""Booking and slot data models."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from booking_engine.utils import to_utc


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Only these statuses block the schedule
ACTIVE_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


class Booking(BaseModel):
    """One pending or historical service engagement with a provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    provider_id: str
    service_id: str
    customer_id: str
    scheduled_at: datetime
    duration_minutes: int = Field(gt=0)
    status: BookingStatus = BookingStatus.PENDING
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("scheduled_at")
    @classmethod
    def _normalize_start(cls, value: datetime) -> datetime:
        return to_utc(value)

    @property
    def end_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def blocked_until(self, buffer_minutes: int) -> datetime:
        """End of the interval this booking keeps others out of."""
        return self.end_at + timedelta(minutes=buffer_minutes)


class SlotStart(BaseModel):
    """A bookable start time offered to a customer. Not a reservation."""

    start: datetime
    end: datetime
    label: str

    def to_dict(self) -> dict:
        return {"startIso8601": self.start.isoformat(), "label": self.label}


class ShiftedBooking(BaseModel):
    """A downstream booking moved by an extension, with its prior start."""

    booking: Booking
    previous_start: datetime
    new_start: datetime

    @property
    def delta(self) -> timedelta:
        return self.new_start - self.previous_start

    def to_dict(self) -> dict:
        return {
            "booking": self.booking.model_dump(mode="json", by_alias=True),
            "previousStart": self.previous_start.isoformat(),
            "newStart": self.new_start.isoformat(),
        }


class ExtensionResult(BaseModel):
    """Outcome of a successful extension."""

    booking: Booking
    shifted_bookings: list[ShiftedBooking] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "booking": self.booking.model_dump(mode="json", by_alias=True),
            "shiftedBookings": [shifted.to_dict() for shifted in self.shifted_bookings],
        }
