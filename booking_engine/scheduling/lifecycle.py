"""
Booking lifecycle: creation, status transitions and extensions.

Every mutation for a provider runs inside that provider's lock, so the
conflict check and the write it guards are linearized against every
other mutation for the same provider. At most one booking is ever
committed per overlapping interval; the loser of a race gets
``ConflictError`` and is expected to re-query slots.

Status graph:

    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled

Bookings are never deleted. Cancelling frees the interval but keeps the
record.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from booking_engine.config import settings
from booking_engine.errors import (
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.booking_schema import (
    Booking,
    BookingStatus,
    ExtensionResult,
)
from booking_engine.scheduling.cascade import CascadeRescheduler
from booking_engine.scheduling.conflict_checker import ConflictChecker
from booking_engine.scheduling.locks import ProviderLockPool
from booking_engine.storage.booking_ledger import BookingLedger
from booking_engine.storage.schedule_store import ScheduleStore
from booking_engine.utils import local_date, minutes, to_utc, utc_now

logger = get_request_logger(__name__)


@dataclass(frozen=True)
class StatusTransition:
    """A single valid status change."""
    from_status: BookingStatus
    to_status: BookingStatus


TRANSITIONS: list[StatusTransition] = [
    StatusTransition(BookingStatus.PENDING, BookingStatus.CONFIRMED),
    StatusTransition(BookingStatus.PENDING, BookingStatus.CANCELLED),
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    StatusTransition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
]


def valid_targets(current: BookingStatus) -> list[BookingStatus]:
    """Statuses reachable from ``current`` in one step."""
    return [t.to_status for t in TRANSITIONS if t.from_status == current]


def check_transition(current: BookingStatus, target: BookingStatus) -> None:
    """
    Raises:
        InvalidStateError: If ``current -> target`` is not in the graph.
    """
    if target in valid_targets(current):
        return
    allowed = [s.value for s in valid_targets(current)]
    raise InvalidStateError(
        f"Cannot move booking from '{current.value}' to '{target.value}'. "
        f"Allowed: {allowed}"
    )


def _new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


class BookingLifecycleManager:
    """Orchestrates create, confirm, cancel, complete and extend."""

    def __init__(
        self,
        ledger: BookingLedger,
        schedules: ScheduleStore,
        *,
        locks: Optional[ProviderLockPool] = None,
        clock: Callable[[], datetime] = utc_now,
        enforce_working_hours: Optional[bool] = None,
    ) -> None:
        self._ledger = ledger
        self._schedules = schedules
        self._locks = locks or ProviderLockPool()
        self._clock = clock
        self._conflicts = ConflictChecker(ledger, schedules)
        self._cascade = CascadeRescheduler(ledger, schedules, clock=clock)
        self._enforce_working_hours = (
            settings.bookings.enforce_working_hours
            if enforce_working_hours is None
            else enforce_working_hours
        )

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await self._ledger.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found.")
        return booking

    async def list_bookings(
        self, provider_id: str, status: Optional[BookingStatus] = None
    ) -> list[Booking]:
        """A provider's bookings ordered by start, optionally by status."""
        statuses = [status] if status is not None else None
        return await self._ledger.list_for_provider(provider_id, statuses=statuses)

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    def _validate_request(self, scheduled_at: datetime, duration_minutes: int) -> None:
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise InvalidInputError("durationMinutes must be an integer number of minutes.")
        if duration_minutes <= 0:
            raise InvalidInputError(f"durationMinutes must be positive, got {duration_minutes}.")
        minimum = settings.bookings.min_duration_minutes
        if duration_minutes < minimum:
            raise InvalidInputError(
                f"durationMinutes must be at least {minimum}, got {duration_minutes}."
            )
        maximum = settings.bookings.max_duration_minutes
        if duration_minutes > maximum:
            raise InvalidInputError(
                f"durationMinutes must be at most {maximum}, got {duration_minutes}."
            )
        if scheduled_at.tzinfo is None or scheduled_at.utcoffset() is None:
            raise InvalidInputError("scheduledAt must include a timezone offset.")
        if scheduled_at <= self._clock():
            raise InvalidInputError("scheduledAt must be in the future.")

    async def _check_working_hours(
        self, provider_id: str, start: datetime, end: datetime
    ) -> None:
        schedule = await self._schedules.get(provider_id)
        windows = schedule.windows_on(local_date(start, schedule.tz))
        if not any(ws <= start and end <= we for ws, we in windows):
            raise InvalidInputError(
                "The requested time is outside the provider's working hours."
            )

    async def create_booking(
        self,
        provider_id: str,
        service_id: str,
        customer_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Commit a new pending booking if its interval is still free.

        Raises:
            InvalidInputError: Duration outside the configured bounds, naive or
                past start, or outside working hours.
            ConflictError: Another active booking blocks the interval.
        """
        self._validate_request(scheduled_at, duration_minutes)
        start = to_utc(scheduled_at)
        end = start + minutes(duration_minutes)

        if self._enforce_working_hours:
            await self._check_working_hours(provider_id, start, end)

        async with self._locks.hold(provider_id):
            conflicts = await self._conflicts.find_conflicts(provider_id, start, end)
            if conflicts:
                logger.info(
                    "Booking rejected for provider %s at %s: conflicts with %s",
                    provider_id, start.isoformat(), [b.id for b in conflicts],
                )
                raise ConflictError(
                    "The selected time slot conflicts with an existing booking."
                )

            now = self._clock()
            booking = Booking(
                id=_new_booking_id(),
                provider_id=provider_id,
                service_id=service_id,
                customer_id=customer_id,
                scheduled_at=start,
                duration_minutes=duration_minutes,
                status=BookingStatus.PENDING,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            await self._ledger.add(booking)

        logger.info(
            "Booking created: %s provider=%s at %s for %d min",
            booking.id, provider_id, start.isoformat(), duration_minutes,
        )
        return booking

    # ------------------------------------------------------------------ #
    # Status transitions
    # ------------------------------------------------------------------ #

    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        """
        Move a booking to ``status`` if the transition graph allows it.

        Raises:
            NotFoundError: Unknown booking.
            InvalidStateError: Illegal transition, or completing a booking
                that has not started yet.
        """
        provider_id = (await self.get_booking(booking_id)).provider_id

        async with self._locks.hold(provider_id):
            booking = await self.get_booking(booking_id)
            check_transition(booking.status, status)

            now = self._clock()
            if status == BookingStatus.COMPLETED and now < booking.scheduled_at:
                raise InvalidStateError(
                    f"Booking {booking_id} cannot be completed before its scheduled start."
                )

            updated = booking.model_copy(update={"status": status, "updated_at": now})
            await self._ledger.save_all([updated])

        logger.info(
            "Booking %s: %s -> %s", booking_id, booking.status.value, status.value
        )
        return updated

    async def confirm(self, booking_id: str) -> Booking:
        return await self.update_status(booking_id, BookingStatus.CONFIRMED)

    async def cancel(self, booking_id: str) -> Booking:
        return await self.update_status(booking_id, BookingStatus.CANCELLED)

    async def complete(self, booking_id: str) -> Booking:
        return await self.update_status(booking_id, BookingStatus.COMPLETED)

    # ------------------------------------------------------------------ #
    # Extension
    # ------------------------------------------------------------------ #

    async def extend_booking(self, booking_id: str, extra_minutes: int) -> ExtensionResult:
        """
        Push a confirmed booking's end later, shifting same-day followers.

        Raises:
            InvalidInputError: Non-positive or oversized extension.
            NotFoundError: Unknown booking.
            InvalidStateError: Booking is not confirmed.
            InfeasibleError: The cascade cannot fit; nothing was written.
        """
        if isinstance(extra_minutes, bool) or not isinstance(extra_minutes, int):
            raise InvalidInputError("extraMinutes must be an integer number of minutes.")
        if extra_minutes <= 0:
            raise InvalidInputError(f"extraMinutes must be positive, got {extra_minutes}.")
        limit = settings.bookings.max_extension_minutes
        if extra_minutes > limit:
            raise InvalidInputError(f"extraMinutes must be at most {limit}, got {extra_minutes}.")

        provider_id = (await self.get_booking(booking_id)).provider_id
        async with self._locks.hold(provider_id):
            return await self._cascade.extend(booking_id, extra_minutes)
