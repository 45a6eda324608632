"""
Slot generation: turns weekly working hours into bookable start times.

For a local calendar day, every working window contributes candidate
starts on a fixed grid (``granularity_minutes`` from the window start),
plus, when aligned to bookings, the first instant after each existing
booking's buffer. A candidate survives when the requested duration fits
inside its window, it does not conflict with an active booking, and it
is still in the future. The result is sorted and de-duplicated.

This is a pure query: it takes no locks and writes nothing. A slot is a
recommendation that must be re-validated at commit time.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Optional

from booking_engine.config import settings
from booking_engine.errors import InvalidInputError
from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.booking_schema import ACTIVE_STATUSES, Booking, SlotStart
from booking_engine.scheduling.conflict_checker import conflicts_among
from booking_engine.storage.booking_ledger import BookingLedger
from booking_engine.storage.schedule_store import ScheduleStore
from booking_engine.utils import format_label, minutes, utc_now

logger = get_request_logger(__name__)

MAX_GRANULARITY_MINUTES = 24 * 60


def _window_candidates(
    window_start: datetime,
    window_end: datetime,
    duration: timedelta,
    step: timedelta,
    boundaries: list[datetime],
) -> set[datetime]:
    candidates: set[datetime] = set()
    current = window_start
    while current + duration <= window_end:
        candidates.add(current)
        current += step
    for boundary in boundaries:
        if window_start <= boundary and boundary + duration <= window_end:
            candidates.add(boundary)
    return candidates


class SlotGenerator:
    """Computes the ordered list of bookable starts for a provider-day."""

    def __init__(
        self,
        ledger: BookingLedger,
        schedules: ScheduleStore,
        *,
        granularity_minutes: Optional[int] = None,
        align_to_bookings: Optional[bool] = None,
        label_format: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ledger = ledger
        self._schedules = schedules
        if granularity_minutes is None:
            granularity_minutes = settings.slots.granularity_minutes
        if not 1 <= granularity_minutes <= MAX_GRANULARITY_MINUTES:
            raise ValueError(
                f"granularity_minutes must be between 1 and {MAX_GRANULARITY_MINUTES}, "
                f"got {granularity_minutes}"
            )
        self.granularity_minutes = granularity_minutes
        self.align_to_bookings = (
            settings.slots.align_to_bookings if align_to_bookings is None else align_to_bookings
        )
        self.label_format = label_format or settings.slots.label_format
        self._clock = clock

    async def generate_slots(
        self,
        provider_id: str,
        day: date,
        service_id: str,
        duration_minutes: int,
    ) -> list[SlotStart]:
        """
        List bookable starts for ``duration_minutes`` on a local day.

        Returns:
            Slots sorted by start; empty when the day is closed or past.

        Raises:
            InvalidInputError: If the duration is not positive or exceeds the
                configured maximum booking length.
        """
        if duration_minutes <= 0:
            raise InvalidInputError(f"durationMinutes must be positive, got {duration_minutes}")
        limit = settings.bookings.max_duration_minutes
        if duration_minutes > limit:
            raise InvalidInputError(
                f"durationMinutes must be at most {limit}, got {duration_minutes}"
            )

        schedule = await self._schedules.get(provider_id)
        tz = schedule.tz
        now = self._clock()

        if day < now.astimezone(tz).date():
            logger.debug("Slots for %s on %s: date is in the past", provider_id, day)
            return []

        windows = schedule.windows_on(day)
        if not windows:
            logger.debug("Slots for %s on %s: provider not working", provider_id, day)
            return []

        buffer = minutes(schedule.buffer_minutes)
        duration = minutes(duration_minutes)
        span_start = min(start for start, _ in windows)
        span_end = max(end for _, end in windows)
        bookings: list[Booking] = await self._ledger.list_for_provider(
            provider_id,
            statuses=ACTIVE_STATUSES,
            starts_before=span_end + buffer,
            ends_after=span_start - buffer,
        )
        boundaries = (
            [booking.blocked_until(schedule.buffer_minutes) for booking in bookings]
            if self.align_to_bookings
            else []
        )

        step = minutes(self.granularity_minutes)
        starts: set[datetime] = set()
        for window_start, window_end in windows:
            for candidate in _window_candidates(window_start, window_end, duration, step, boundaries):
                if candidate <= now:
                    continue
                if conflicts_among(bookings, candidate, candidate + duration, schedule.buffer_minutes):
                    continue
                starts.add(candidate)

        slots = [
            SlotStart(
                start=start,
                end=start + duration,
                label=format_label(start, tz, self.label_format),
            )
            for start in sorted(starts)
        ]
        logger.debug(
            "Slots for %s on %s (service=%s, %dmin): %d offered",
            provider_id, day, service_id, duration_minutes, len(slots),
        )
        return slots
