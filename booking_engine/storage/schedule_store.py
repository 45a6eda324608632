"""
WeeklySchedule Store: one availability document per provider.

Written by provider settings, read by the slot generator, the lifecycle
manager and the cascade rescheduler. Read-mostly; writes replace the
whole document.
"""

import asyncio
from typing import Any, Optional, Protocol, Union

from pydantic import ValidationError

from booking_engine.errors import InvalidInputError
from booking_engine.logging_context import get_request_logger
from booking_engine.schemas.availability_schema import WeeklySchedule

logger = get_request_logger(__name__)


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def validate_schedule(document: Union[WeeklySchedule, dict[str, Any]]) -> WeeklySchedule:
    """Parse a provider's availability document, enforcing settings rules.

    Beyond the model's own checks, every day marked available must carry
    at least one working window.

    Raises:
        InvalidInputError: If the document is malformed.
    """
    if isinstance(document, WeeklySchedule):
        schedule = document
    else:
        try:
            schedule = WeeklySchedule.model_validate(document)
        except ValidationError as exc:
            raise InvalidInputError(_first_error(exc)) from None

    for day in schedule.days:
        if day.is_available and not day.slots:
            raise InvalidInputError(
                f'At least one slot is required when isAvailable is true for "{day.day_of_week.value}".'
            )
    return schedule


class ScheduleStore(Protocol):
    """Storage contract for provider availability documents."""

    async def get(self, provider_id: str) -> WeeklySchedule: ...

    async def upsert(self, document: Union[WeeklySchedule, dict[str, Any]]) -> WeeklySchedule: ...


class InMemoryScheduleStore:
    """Provider id -> WeeklySchedule, with the closed schedule as default."""

    def __init__(self, schedules: Optional[list[WeeklySchedule]] = None) -> None:
        self._schedules: dict[str, WeeklySchedule] = {}
        for schedule in schedules or []:
            self._schedules[schedule.provider_id] = schedule

    async def get(self, provider_id: str) -> WeeklySchedule:
        await asyncio.sleep(0)
        schedule = self._schedules.get(provider_id)
        if schedule is None:
            return WeeklySchedule.closed(provider_id)
        return schedule.model_copy(deep=True)

    async def upsert(self, document: Union[WeeklySchedule, dict[str, Any]]) -> WeeklySchedule:
        """Validate and store a provider's schedule, replacing any previous one."""
        schedule = validate_schedule(document)
        await asyncio.sleep(0)
        self._schedules[schedule.provider_id] = schedule.model_copy(deep=True)
        open_days = [d.day_of_week.value for d in schedule.days if d.is_open]
        logger.info(
            "Availability updated for provider %s: open=%s buffer=%dmin",
            schedule.provider_id, open_days, schedule.buffer_minutes,
        )
        return schedule

    def reset(self) -> None:
        self._schedules.clear()
