"""Request payloads for the engine's external operations."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from booking_engine.schemas.booking_schema import BookingStatus


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SlotQuery(_Request):
    """GET slots?providerId&date&serviceId&durationMinutes"""
    provider_id: str
    day: date = Field(alias="date")
    service_id: str
    duration_minutes: Optional[int] = None


class BookingRequest(_Request):
    """POST booking"""
    provider_id: str
    service_id: str
    customer_id: str
    scheduled_at: datetime
    duration_minutes: int
    notes: Optional[str] = None


class StatusUpdateRequest(_Request):
    """PATCH booking/{id}/status"""
    status: BookingStatus


class ExtendRequest(_Request):
    """PATCH booking/{id}/extend"""
    extra_minutes: int
