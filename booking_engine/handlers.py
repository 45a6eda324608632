"""
Transport-agnostic handlers for the engine's external operations.

Each handler takes the raw query or body as a dict, validates it, calls
the engine and returns ``(status_code, payload)``. An HTTP, RPC or queue
adapter only has to route requests here and serialize the payload.

    GET   slots                 -> get_slots
    POST  booking               -> create_booking
    PATCH booking/{id}/status   -> update_status
    PATCH booking/{id}/extend   -> extend_booking

Engine errors map to their status codes (400/404/409/503); malformed
payloads map to 400. Nothing here retries.
"""

import functools
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from booking_engine.errors import InvalidInputError, SchedulingError
from booking_engine.logging_context import get_request_logger, new_request_id
from booking_engine.notifications import LoggingShiftNotifier, ShiftNotifier
from booking_engine.schemas.api_schema import (
    BookingRequest,
    ExtendRequest,
    SlotQuery,
    StatusUpdateRequest,
)
from booking_engine.schemas.booking_schema import Booking, BookingStatus
from booking_engine.scheduling.lifecycle import BookingLifecycleManager
from booking_engine.scheduling.locks import ProviderLockPool
from booking_engine.scheduling.slot_generator import SlotGenerator
from booking_engine.storage.booking_ledger import BookingLedger, InMemoryBookingLedger
from booking_engine.storage.schedule_store import InMemoryScheduleStore, ScheduleStore
from booking_engine.storage.services import resolve_duration
from booking_engine.utils import utc_now

logger = get_request_logger(__name__)

Response = tuple[int, dict[str, Any]]


def _validation_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid value')}"


def endpoint(func: Callable[..., Awaitable[Response]]) -> Callable[..., Awaitable[Response]]:
    """Give each call a request id and turn engine errors into responses."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        request_id = new_request_id()
        try:
            return await func(*args, **kwargs)
        except ValidationError as exc:
            message = _validation_message(exc)
            logger.info("%s rejected: %s", func.__name__, message)
            payload = InvalidInputError(message).to_dict()
            payload["requestId"] = request_id
            return 400, payload
        except SchedulingError as exc:
            log = logger.warning if exc.status_code >= 500 else logger.info
            log("%s failed [%s]: %s", func.__name__, exc.kind, exc.message)
            payload = exc.to_dict()
            payload["requestId"] = request_id
            return exc.status_code, payload

    return wrapper


def _booking_payload(booking: Booking) -> dict[str, Any]:
    return booking.model_dump(mode="json", by_alias=True)


class SchedulingHandlers:
    """Entry points a host service routes requests to."""

    def __init__(
        self,
        ledger: Optional[BookingLedger] = None,
        schedules: Optional[ScheduleStore] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        notifier: Optional[ShiftNotifier] = None,
        locks: Optional[ProviderLockPool] = None,
    ) -> None:
        self.ledger = ledger if ledger is not None else InMemoryBookingLedger()
        self.schedules = schedules if schedules is not None else InMemoryScheduleStore()
        self.notifier = notifier or LoggingShiftNotifier()
        self.slots = SlotGenerator(self.ledger, self.schedules, clock=clock)
        self.lifecycle = BookingLifecycleManager(
            self.ledger, self.schedules, locks=locks, clock=clock
        )

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    @endpoint
    async def put_availability(self, body: dict[str, Any]) -> Response:
        schedule = await self.schedules.upsert(body)
        return 200, {
            "success": True,
            "message": "Availability updated successfully.",
            "data": schedule.model_dump(mode="json", by_alias=True),
        }

    @endpoint
    async def get_availability(self, provider_id: str) -> Response:
        schedule = await self.schedules.get(provider_id)
        return 200, {"success": True, "data": schedule.model_dump(mode="json", by_alias=True)}

    # ------------------------------------------------------------------ #
    # Slots
    # ------------------------------------------------------------------ #

    @endpoint
    async def get_slots(self, params: dict[str, Any]) -> Response:
        query = SlotQuery.model_validate(params)
        try:
            duration = resolve_duration(query.service_id, query.duration_minutes)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from None

        slots = await self.slots.generate_slots(
            query.provider_id, query.day, query.service_id, duration
        )
        return 200, {
            "success": True,
            "durationMinutes": duration,
            "data": [slot.to_dict() for slot in slots],
        }

    # ------------------------------------------------------------------ #
    # Bookings
    # ------------------------------------------------------------------ #

    @endpoint
    async def create_booking(self, body: dict[str, Any]) -> Response:
        request = BookingRequest.model_validate(body)
        booking = await self.lifecycle.create_booking(
            provider_id=request.provider_id,
            service_id=request.service_id,
            customer_id=request.customer_id,
            scheduled_at=request.scheduled_at,
            duration_minutes=request.duration_minutes,
            notes=request.notes,
        )
        return 201, {
            "success": True,
            "message": "Booking request created. Pending confirmation.",
            "data": {"bookingId": booking.id, "status": booking.status.value},
        }

    @endpoint
    async def get_booking(self, booking_id: str) -> Response:
        booking = await self.lifecycle.get_booking(booking_id)
        return 200, {"success": True, "data": _booking_payload(booking)}

    @endpoint
    async def list_bookings(self, provider_id: str, status: Optional[str] = None) -> Response:
        try:
            wanted = BookingStatus(status) if status else None
        except ValueError:
            raise InvalidInputError(f"Unknown status filter: {status!r}") from None
        bookings = await self.lifecycle.list_bookings(provider_id, wanted)
        return 200, {
            "success": True,
            "count": len(bookings),
            "data": [_booking_payload(b) for b in bookings],
        }

    @endpoint
    async def update_status(self, booking_id: str, body: dict[str, Any]) -> Response:
        request = StatusUpdateRequest.model_validate(body)
        if request.status == BookingStatus.PENDING:
            raise InvalidInputError("status must be one of: confirmed, cancelled, completed.")
        booking = await self.lifecycle.update_status(booking_id, request.status)
        return 200, {"success": True, "data": _booking_payload(booking)}

    @endpoint
    async def extend_booking(self, booking_id: str, body: dict[str, Any]) -> Response:
        request = ExtendRequest.model_validate(body)
        result = await self.lifecycle.extend_booking(booking_id, request.extra_minutes)
        if result.shifted_bookings:
            try:
                self.notifier.notify_shifted(result.booking, result.shifted_bookings)
            except Exception:
                # Extension is committed at this point
                logger.exception("Shift notification failed for booking %s", booking_id)
        return 200, {"success": True, "data": result.to_dict()}
