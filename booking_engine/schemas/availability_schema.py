"""Weekly availability data models.

A provider's schedule is always held as exactly seven ``DayAvailability``
records in Sunday..Saturday order, so looking up a weekday is an index
operation and every weekday is accounted for.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from booking_engine.config import settings
from booking_engine.utils import at_local, parse_hhmm, resolve_timezone


class DayOfWeek(str, Enum):
    """Weekday names, declared in storage order (Sunday first)."""

    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

    @property
    def index(self) -> int:
        return _DAY_ORDER.index(self)

    @classmethod
    def for_date(cls, day: date) -> "DayOfWeek":
        # date.weekday() is Monday=0; storage order is Sunday=0
        return _DAY_ORDER[(day.weekday() + 1) % 7]


_DAY_ORDER: list[DayOfWeek] = list(DayOfWeek)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeWindow(_CamelModel):
    """A local wall-clock working window, e.g. 09:00-17:00."""

    start_time: str
    end_time: str

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        # Older provider documents stored windows as {"from": ..., "to": ...}
        if isinstance(data, dict) and "from" in data and "startTime" not in data:
            data = {**data, "startTime": data.get("from"), "endTime": data.get("to")}
            data.pop("from", None)
            data.pop("to", None)
        return data

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_format(cls, value: str) -> str:
        parse_hhmm(value)
        return value.strip()

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if self.start >= self.end:
            raise ValueError(
                f"startTime must be before endTime (got {self.start_time} - {self.end_time})"
            )
        return self

    @property
    def start(self) -> time:
        return parse_hhmm(self.start_time)

    @property
    def end(self) -> time:
        return parse_hhmm(self.end_time)

    def bounds_on(self, day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
        """UTC [start, end) of this window on a given local day."""
        return at_local(day, self.start, tz), at_local(day, self.end, tz)


class DayAvailability(_CamelModel):
    """Working windows for one weekday."""

    day_of_week: DayOfWeek
    is_available: bool = False
    slots: list[TimeWindow] = Field(default_factory=list)

    @field_validator("day_of_week", mode="before")
    @classmethod
    def _accept_numeric_day(cls, value: Any) -> Any:
        # Legacy documents use 0=Sunday .. 6=Saturday
        if isinstance(value, int) and not isinstance(value, bool):
            if not 0 <= value <= 6:
                raise ValueError(f"dayOfWeek must be between 0 and 6, got {value}")
            return _DAY_ORDER[value]
        return value

    @model_validator(mode="after")
    def _clear_unavailable(self) -> "DayAvailability":
        if not self.is_available:
            self.slots = []
        return self

    @property
    def is_open(self) -> bool:
        return self.is_available and bool(self.slots)


class WeeklySchedule(_CamelModel):
    """A provider's recurring weekly availability plus buffer time."""

    provider_id: str
    buffer_minutes: int = Field(default=0, ge=0)
    timezone: str = Field(default_factory=lambda: settings.default_timezone)
    days: list[DayAvailability] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_buffer_time(cls, data: Any) -> Any:
        # Provider documents name the gap "bufferTime"
        if isinstance(data, dict) and "bufferTime" in data:
            data = dict(data)
            buffer_time = data.pop("bufferTime")
            if buffer_time is not None and "bufferMinutes" not in data:
                data["bufferMinutes"] = buffer_time
        return data

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

    @model_validator(mode="after")
    def _normalize_days(self) -> "WeeklySchedule":
        by_day: dict[DayOfWeek, DayAvailability] = {}
        for day in self.days:
            if day.day_of_week in by_day:
                raise ValueError(f'Duplicate dayOfWeek "{day.day_of_week.value}" in days')
            by_day[day.day_of_week] = day
        self.days = [
            by_day.get(dow) or DayAvailability(day_of_week=dow, is_available=False)
            for dow in _DAY_ORDER
        ]
        return self

    @classmethod
    def closed(cls, provider_id: str, timezone: Optional[str] = None) -> "WeeklySchedule":
        """Schedule for a provider that has not published any hours."""
        if timezone is None:
            return cls(provider_id=provider_id)
        return cls(provider_id=provider_id, timezone=timezone)

    @property
    def tz(self) -> ZoneInfo:
        return resolve_timezone(self.timezone)

    def day_for(self, day: date) -> DayAvailability:
        return self.days[DayOfWeek.for_date(day).index]

    def windows_on(self, day: date) -> list[tuple[datetime, datetime]]:
        """UTC bounds of every working window on a local day, in listed order."""
        availability = self.day_for(day)
        if not availability.is_open:
            return []
        tz = self.tz
        return [window.bounds_on(day, tz) for window in availability.slots]
