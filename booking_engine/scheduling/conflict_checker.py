"""
Conflict detection between a proposed interval and a provider's bookings.

Two intervals [s1, e1) and [s2, e2) for the same provider conflict when
the gap between them is smaller than the provider's buffer:

    s1 < e2 + buffer  and  s2 < e1 + buffer

Only pending and confirmed bookings take part. The check reads the live
ledger, so it is advisory when offering slots and authoritative when
called under the provider lock at commit time.
"""

from datetime import datetime
from typing import Iterable, Optional

from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.booking_schema import ACTIVE_STATUSES, Booking
from booking_engine.storage.booking_ledger import BookingLedger
from booking_engine.storage.schedule_store import ScheduleStore
from booking_engine.utils import minutes

logger = get_request_logger(__name__)


def intervals_conflict(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
    buffer_minutes: int = 0,
) -> bool:
    """True if two intervals overlap once each end is padded by the buffer."""
    buffer = minutes(buffer_minutes)
    return start_a < end_b + buffer and start_b < end_a + buffer


def conflicts_among(
    bookings: Iterable[Booking],
    start: datetime,
    end: datetime,
    buffer_minutes: int,
    exclude_ids: Iterable[str] = (),
) -> list[Booking]:
    """Filter already-loaded bookings down to those blocking [start, end)."""
    excluded = set(exclude_ids)
    return [
        booking
        for booking in bookings
        if booking.is_active
        and booking.id not in excluded
        and intervals_conflict(start, end, booking.scheduled_at, booking.end_at, buffer_minutes)
    ]


class ConflictChecker:
    """Answers "is this interval free?" against the live ledger."""

    def __init__(self, ledger: BookingLedger, schedules: ScheduleStore) -> None:
        self._ledger = ledger
        self._schedules = schedules

    async def _buffer_for(self, provider_id: str, buffer_minutes: Optional[int]) -> int:
        if buffer_minutes is not None:
            return buffer_minutes
        schedule = await self._schedules.get(provider_id)
        return schedule.buffer_minutes

    async def find_conflicts(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_ids: Iterable[str] = (),
        buffer_minutes: Optional[int] = None,
    ) -> list[Booking]:
        """Return every active booking that blocks [start, end), ordered by start."""
        buffer = await self._buffer_for(provider_id, buffer_minutes)
        candidates = await self._ledger.list_for_provider(
            provider_id,
            statuses=ACTIVE_STATUSES,
            starts_before=end + minutes(buffer),
            ends_after=start - minutes(buffer),
        )
        conflicts = conflicts_among(candidates, start, end, buffer, exclude_ids)
        if conflicts:
            logger.debug(
                "Interval %s-%s for provider %s blocked by %s",
                start.isoformat(), end.isoformat(), provider_id,
                [b.id for b in conflicts],
            )
        return conflicts

    async def has_conflict(
        self,
        provider_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_ids: Iterable[str] = (),
        buffer_minutes: Optional[int] = None,
    ) -> bool:
        conflicts = await self.find_conflicts(
            provider_id, start, end, exclude_ids=exclude_ids, buffer_minutes=buffer_minutes
        )
        return bool(conflicts)
