"""Tests for configuration loading and validation."""

import pytest

from booking_engine.config import (
    AppConfig,
    BookingConfig,
    SlotConfig,
    _safe_bool,
    _safe_int,
    _validate_config,
)


def _config_with(slots=None, bookings=None, default_timezone="UTC") -> AppConfig:
    config = AppConfig.__new__(AppConfig)
    object.__setattr__(config, "slots", slots or SlotConfig())
    object.__setattr__(config, "bookings", bookings or BookingConfig())
    object.__setattr__(config, "default_timezone", default_timezone)
    object.__setattr__(config, "log_level", "INFO")
    object.__setattr__(config, "engine_name", "test")
    return config


def _slots(granularity: int = 30, label_format: str = "%H:%M") -> SlotConfig:
    slots = SlotConfig.__new__(SlotConfig)
    object.__setattr__(slots, "granularity_minutes", granularity)
    object.__setattr__(slots, "align_to_bookings", True)
    object.__setattr__(slots, "label_format", label_format)
    return slots


def _bookings(
    min_duration: int = 10, max_duration: int = 1440, max_extension: int = 480
) -> BookingConfig:
    bookings = BookingConfig.__new__(BookingConfig)
    object.__setattr__(bookings, "min_duration_minutes", min_duration)
    object.__setattr__(bookings, "max_duration_minutes", max_duration)
    object.__setattr__(bookings, "max_extension_minutes", max_extension)
    object.__setattr__(bookings, "enforce_working_hours", True)
    return bookings


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_zero_granularity_rejected(self):
        with pytest.raises(ValueError, match="SLOT_GRANULARITY_MINUTES"):
            _validate_config(_config_with(slots=_slots(granularity=0)))

    def test_granularity_longer_than_a_day_rejected(self):
        with pytest.raises(ValueError, match="SLOT_GRANULARITY_MINUTES"):
            _validate_config(_config_with(slots=_slots(granularity=1441)))

    def test_empty_label_format_rejected(self):
        with pytest.raises(ValueError, match="SLOT_LABEL_FORMAT"):
            _validate_config(_config_with(slots=_slots(label_format="")))

    def test_min_duration_below_one_rejected(self):
        with pytest.raises(ValueError, match="MIN_BOOKING_DURATION_MINUTES"):
            _validate_config(_config_with(bookings=_bookings(min_duration=0)))

    def test_max_duration_longer_than_a_day_rejected(self):
        with pytest.raises(ValueError, match="MAX_BOOKING_DURATION_MINUTES"):
            _validate_config(_config_with(bookings=_bookings(max_duration=1441)))

    def test_max_duration_below_minimum_rejected(self):
        with pytest.raises(ValueError, match="MAX_BOOKING_DURATION_MINUTES"):
            _validate_config(_config_with(bookings=_bookings(min_duration=30, max_duration=20)))

    def test_max_extension_below_one_rejected(self):
        with pytest.raises(ValueError, match="MAX_EXTENSION_MINUTES"):
            _validate_config(_config_with(bookings=_bookings(max_extension=0)))

    def test_empty_timezone_rejected(self):
        with pytest.raises(ValueError, match="DEFAULT_TIMEZONE"):
            _validate_config(_config_with(default_timezone=""))


class TestEnvParsing:
    def test_safe_int_parsing(self):
        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("BOOKING_TEST_INT", "thirty")
        with pytest.raises(ValueError, match="BOOKING_TEST_INT"):
            _safe_int("BOOKING_TEST_INT", "30")

    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_safe_bool_truthy(self, monkeypatch, raw):
        monkeypatch.setenv("BOOKING_TEST_BOOL", raw)
        assert _safe_bool("BOOKING_TEST_BOOL", "false") is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
    def test_safe_bool_falsy(self, monkeypatch, raw):
        monkeypatch.setenv("BOOKING_TEST_BOOL", raw)
        assert _safe_bool("BOOKING_TEST_BOOL", "true") is False

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("BOOKING_TEST_BOOL", "maybe")
        with pytest.raises(ValueError, match="BOOKING_TEST_BOOL"):
            _safe_bool("BOOKING_TEST_BOOL", "true")
