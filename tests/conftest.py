"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytest

from booking_engine.handlers import SchedulingHandlers
from booking_engine.notifications import CollectingShiftNotifier
from booking_engine.schemas.availability_schema import WeeklySchedule
from booking_engine.schemas.booking_schema import Booking, BookingStatus
from booking_engine.scheduling.cascade import CascadeRescheduler
from booking_engine.scheduling.lifecycle import BookingLifecycleManager
from booking_engine.scheduling.locks import ProviderLockPool
from booking_engine.scheduling.slot_generator import SlotGenerator
from booking_engine.storage.booking_ledger import InMemoryBookingLedger
from booking_engine.storage.schedule_store import InMemoryScheduleStore

PROVIDER = "prov-1"
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY_MORNING = datetime(2030, 1, 6, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock passed wherever the engine asks for "now"."""

    def __init__(self, now: datetime = SUNDAY_MORNING) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def at(hhmm: str, day: date = MONDAY) -> datetime:
    """UTC instant for a wall-clock time on a test day."""
    hours, mins = hhmm.split(":")
    return datetime.combine(day, time(int(hours), int(mins)), tzinfo=timezone.utc)


def make_schedule(
    provider_id: str = PROVIDER,
    buffer_minutes: int = 0,
    windows: Optional[list[tuple[str, str]]] = None,
    day_of_week: str = "Monday",
    timezone_name: str = "UTC",
) -> WeeklySchedule:
    """Schedule open on one weekday (Monday 09:00-17:00 by default)."""
    windows = windows if windows is not None else [("09:00", "17:00")]
    return WeeklySchedule.model_validate({
        "providerId": provider_id,
        "bufferMinutes": buffer_minutes,
        "timezone": timezone_name,
        "days": [{
            "dayOfWeek": day_of_week,
            "isAvailable": True,
            "slots": [{"startTime": s, "endTime": e} for s, e in windows],
        }],
    })


def make_booking(
    booking_id: str,
    start: str,
    duration_minutes: int,
    status: BookingStatus = BookingStatus.CONFIRMED,
    provider_id: str = PROVIDER,
    day: date = MONDAY,
    customer_id: Optional[str] = None,
) -> Booking:
    """Helper to create a Booking starting at ``start`` (HH:MM, UTC)."""
    return Booking(
        id=booking_id,
        provider_id=provider_id,
        service_id="car-cleaning",
        customer_id=customer_id or f"cust-{booking_id}",
        scheduled_at=at(start, day),
        duration_minutes=duration_minutes,
        status=status,
        created_at=SUNDAY_MORNING,
        updated_at=SUNDAY_MORNING,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger():
    return InMemoryBookingLedger()


@pytest.fixture
def schedules():
    return InMemoryScheduleStore([make_schedule()])


@pytest.fixture
def buffered_schedules():
    return InMemoryScheduleStore([make_schedule(buffer_minutes=15)])


@pytest.fixture
def locks():
    return ProviderLockPool()


@pytest.fixture
def slot_generator(ledger, schedules, clock):
    return SlotGenerator(
        ledger, schedules, granularity_minutes=30, align_to_bookings=True, clock=clock
    )


@pytest.fixture
def lifecycle(ledger, schedules, locks, clock):
    return BookingLifecycleManager(
        ledger, schedules, locks=locks, clock=clock, enforce_working_hours=True
    )


@pytest.fixture
def rescheduler(ledger, buffered_schedules, clock):
    return CascadeRescheduler(ledger, buffered_schedules, clock=clock)


@pytest.fixture
def notifier():
    return CollectingShiftNotifier()


@pytest.fixture
def handlers(clock, notifier):
    return SchedulingHandlers(clock=clock, notifier=notifier)
