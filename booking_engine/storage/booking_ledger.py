"""
Booking Ledger: the authoritative set of bookings per provider.

``BookingLedger`` is the contract a persistence layer implements.
``InMemoryBookingLedger`` is the reference implementation used by tests
and the console demo; in production this would sit on a database with
provider-scoped queries and transactional multi-row writes.
"""

import asyncio
from datetime import datetime
from typing import Iterable, Optional, Protocol

from booking_engine.errors import NotFoundError
from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.booking_schema import Booking, BookingStatus

logger = get_request_logger(__name__)


class BookingLedger(Protocol):
    """Storage contract consumed by the scheduling engine.

    Implementations raise ``UnavailableError`` for transient storage
    failures. ``save_all`` must apply every update or none of them.
    """

    async def get(self, booking_id: str) -> Optional[Booking]: ...

    async def list_for_provider(
        self,
        provider_id: str,
        *,
        statuses: Optional[Iterable[BookingStatus]] = None,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        ends_after: Optional[datetime] = None,
    ) -> list[Booking]: ...

    async def add(self, booking: Booking) -> Booking: ...

    async def save_all(self, bookings: list[Booking]) -> None: ...


class InMemoryBookingLedger:
    """Dict-backed ledger that yields to the event loop at each I/O boundary."""

    def __init__(self, bookings: Optional[Iterable[Booking]] = None) -> None:
        self._bookings: dict[str, Booking] = {}
        for booking in bookings or []:
            self._bookings[booking.id] = booking.model_copy()

    async def _round_trip(self) -> None:
        # Stand-in for network latency: lets other tasks interleave here
        await asyncio.sleep(0)

    async def get(self, booking_id: str) -> Optional[Booking]:
        await self._round_trip()
        booking = self._bookings.get(booking_id)
        return booking.model_copy() if booking else None

    async def list_for_provider(
        self,
        provider_id: str,
        *,
        statuses: Optional[Iterable[BookingStatus]] = None,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        ends_after: Optional[datetime] = None,
    ) -> list[Booking]:
        """Return a provider's bookings ordered by start time."""
        await self._round_trip()
        wanted = set(statuses) if statuses is not None else None
        results = []
        for booking in self._bookings.values():
            if booking.provider_id != provider_id:
                continue
            if wanted is not None and booking.status not in wanted:
                continue
            if starts_from is not None and booking.scheduled_at < starts_from:
                continue
            if starts_before is not None and booking.scheduled_at >= starts_before:
                continue
            if ends_after is not None and booking.end_at <= ends_after:
                continue
            results.append(booking.model_copy())
        results.sort(key=lambda b: (b.scheduled_at, b.id))
        return results

    async def add(self, booking: Booking) -> Booking:
        await self._round_trip()
        if booking.id in self._bookings:
            raise ValueError(f"Booking {booking.id} already exists")
        self._bookings[booking.id] = booking.model_copy()
        logger.debug("Ledger insert: %s", booking.id)
        return booking.model_copy()

    async def save_all(self, bookings: list[Booking]) -> None:
        """Replace every given booking in one step, or none if any is unknown."""
        await self._round_trip()
        missing = [b.id for b in bookings if b.id not in self._bookings]
        if missing:
            raise NotFoundError(f"Cannot update unknown booking(s): {', '.join(missing)}")
        for booking in bookings:
            self._bookings[booking.id] = booking.model_copy()
        logger.debug("Ledger update: %s", [b.id for b in bookings])

    def snapshot(self) -> dict[str, dict]:
        """Serialized view of the whole ledger, for audits and tests."""
        return {
            booking_id: booking.model_dump(mode="json")
            for booking_id, booking in sorted(self._bookings.items())
        }

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        self._bookings.clear()
