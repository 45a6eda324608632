"""
Cascade rescheduling for in-place booking extensions.

When a provider pushes a confirmed booking's end later, the bookings that
follow it on the same local day may no longer respect the buffer. The
rescheduler walks that tail in start order, moving each displaced booking
forward by the minimum amount and carrying the new end forward as the
threshold for the next one. The walk stops at the first booking that
already clears the threshold.

Every moved booking must still fit inside one of the provider's working
windows for that day. If any does not, the whole extension is rejected
with ``InfeasibleError`` and nothing is written. Cascades never cross
into another day.
"""

from datetime import datetime
from typing import Callable

from booking_engine.errors import InfeasibleError, InvalidStateError, NotFoundError
from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.availability_schema import WeeklySchedule
from booking_engine.schemas.booking_schema import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    ExtensionResult,
    ShiftedBooking,
)
from booking_engine.storage.booking_ledger import BookingLedger
from booking_engine.storage.schedule_store import ScheduleStore
from booking_engine.utils import format_label, local_date, local_day_bounds, minutes, utc_now

logger = get_request_logger(__name__)


def _fits_a_window(start: datetime, end: datetime, windows: list[tuple[datetime, datetime]]) -> bool:
    return any(window_start <= start and end <= window_end for window_start, window_end in windows)


def plan_cascade(
    target: Booking,
    extra_minutes: int,
    tail: list[Booking],
    schedule: WeeklySchedule,
    now: datetime,
) -> ExtensionResult:
    """
    Compute the extended target and every shift it forces, without writing.

    Args:
        target: The confirmed booking being extended.
        extra_minutes: Minutes added to its end.
        tail: Active bookings of the same provider-day starting at or after
            the target's original end, sorted by start.
        schedule: The provider's weekly schedule.
        now: Timestamp recorded as ``updated_at`` on changed bookings.

    Raises:
        InfeasibleError: If the target would run past the end of its day or a
            displaced booking cannot fit inside a working window.
    """
    tz = schedule.tz
    day = local_date(target.scheduled_at, tz)
    _, day_end = local_day_bounds(day, tz)
    buffer = minutes(schedule.buffer_minutes)

    new_end = target.end_at + minutes(extra_minutes)
    if new_end > day_end:
        raise InfeasibleError(
            f"Cannot extend booking {target.id}: it would run past the end of {day.isoformat()}."
        )

    windows = schedule.windows_on(day)
    threshold = new_end + buffer
    shifted: list[ShiftedBooking] = []

    for booking in tail:
        if booking.scheduled_at >= threshold:
            break
        new_start = threshold
        new_booking_end = new_start + minutes(booking.duration_minutes)
        if not _fits_a_window(new_start, new_booking_end, windows):
            raise InfeasibleError(
                f"Cannot extend booking {target.id}: booking {booking.id} would have to move to "
                f"{format_label(new_start, tz, '%H:%M')}, outside the provider's availability."
            )
        shifted.append(
            ShiftedBooking(
                booking=booking.model_copy(update={"scheduled_at": new_start, "updated_at": now}),
                previous_start=booking.scheduled_at,
                new_start=new_start,
            )
        )
        threshold = new_booking_end + buffer

    extended = target.model_copy(
        update={
            "duration_minutes": target.duration_minutes + extra_minutes,
            "updated_at": now,
        }
    )
    return ExtensionResult(booking=extended, shifted_bookings=shifted)


class CascadeRescheduler:
    """Loads the tail, plans the cascade and commits it atomically.

    Callers must hold the provider lock around ``extend``.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        schedules: ScheduleStore,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ledger = ledger
        self._schedules = schedules
        self._clock = clock

    async def load_tail(self, target: Booking, schedule: WeeklySchedule) -> list[Booking]:
        """Active same-day bookings starting at or after the target's end."""
        day = local_date(target.scheduled_at, schedule.tz)
        _, day_end = local_day_bounds(day, schedule.tz)
        bookings = await self._ledger.list_for_provider(
            target.provider_id,
            statuses=ACTIVE_STATUSES,
            starts_from=target.end_at,
            starts_before=day_end,
        )
        return [booking for booking in bookings if booking.id != target.id]

    async def extend(self, booking_id: str, extra_minutes: int) -> ExtensionResult:
        target = await self._ledger.get(booking_id)
        if target is None:
            raise NotFoundError(f"Booking {booking_id} not found.")
        if target.status != BookingStatus.CONFIRMED:
            raise InvalidStateError(
                f"Only confirmed bookings can be extended; {booking_id} is {target.status.value}."
            )

        schedule = await self._schedules.get(target.provider_id)
        tail = await self.load_tail(target, schedule)
        result = plan_cascade(target, extra_minutes, tail, schedule, self._clock())

        await self._ledger.save_all(
            [result.booking] + [shifted.booking for shifted in result.shifted_bookings]
        )
        logger.info(
            "Booking %s extended by %d min; %d downstream booking(s) shifted",
            booking_id, extra_minutes, len(result.shifted_bookings),
        )
        return result
