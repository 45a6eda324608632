"""
Shifted-booking notifications.

After an extension commits, every customer whose booking moved must be
told. Delivery (email, push, chat) belongs to the host application; the
engine only hands over the list through a ``ShiftNotifier``.
"""

from typing import Protocol

from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.booking_schema import Booking, ShiftedBooking

logger = get_request_logger(__name__)


def build_shift_message(shifted: ShiftedBooking) -> str:
    """Customer-facing text describing one moved booking."""
    moved_by = int(shifted.delta.total_seconds() // 60)
    return (
        f"Your booking {shifted.booking.id} has moved from "
        f"{shifted.previous_start.isoformat()} to {shifted.new_start.isoformat()} "
        f"({moved_by} min later) because the previous job is running over."
    )


class ShiftNotifier(Protocol):
    def notify_shifted(self, extended: Booking, shifted: list[ShiftedBooking]) -> None: ...


class LoggingShiftNotifier:
    """Default notifier: records each move in the log."""

    def notify_shifted(self, extended: Booking, shifted: list[ShiftedBooking]) -> None:
        for item in shifted:
            logger.info(
                "Notify customer %s (after %s extended): %s",
                item.booking.customer_id, extended.id, build_shift_message(item),
            )


class CollectingShiftNotifier:
    """Keeps every message in memory; used by the console demo and tests."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify_shifted(self, extended: Booking, shifted: list[ShiftedBooking]) -> None:
        for item in shifted:
            self.messages.append((item.booking.customer_id, build_shift_message(item)))
