"""
Centralized configuration with environment variable overrides.

Slot grid, booking limits, and logging settings live here so the
scheduling modules never hardcode a policy value.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from booking_engine.logging_context import request_id_handler

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SlotConfig:
    """How candidate start times are laid out and labelled."""

    granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "30")
    align_to_bookings: bool = _safe_bool("SLOT_ALIGN_TO_BOOKINGS", "true")
    label_format: str = os.getenv("SLOT_LABEL_FORMAT", "%H:%M")


@dataclass(frozen=True)
class BookingConfig:
    """Limits applied when bookings are created or extended."""

    min_duration_minutes: int = _safe_int("MIN_BOOKING_DURATION_MINUTES", "10")
    max_duration_minutes: int = _safe_int("MAX_BOOKING_DURATION_MINUTES", "1440")
    max_extension_minutes: int = _safe_int("MAX_EXTENSION_MINUTES", "480")
    enforce_working_hours: bool = _safe_bool("ENFORCE_WORKING_HOURS", "true")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    slots: SlotConfig = field(default_factory=SlotConfig)
    bookings: BookingConfig = field(default_factory=BookingConfig)
    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "UTC")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    engine_name: str = os.getenv("ENGINE_NAME", "booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 1 <= config.slots.granularity_minutes <= 24 * 60:
        raise ValueError(
            "SLOT_GRANULARITY_MINUTES must be between 1 and 1440, "
            f"got {config.slots.granularity_minutes}"
        )
    if not config.slots.label_format:
        raise ValueError("SLOT_LABEL_FORMAT must not be empty")
    if config.bookings.min_duration_minutes < 1:
        raise ValueError(
            "MIN_BOOKING_DURATION_MINUTES must be >= 1, "
            f"got {config.bookings.min_duration_minutes}"
        )
    if not config.bookings.min_duration_minutes <= config.bookings.max_duration_minutes <= 24 * 60:
        raise ValueError(
            "MAX_BOOKING_DURATION_MINUTES must be between MIN_BOOKING_DURATION_MINUTES and 1440, "
            f"got {config.bookings.max_duration_minutes}"
        )
    if config.bookings.max_extension_minutes < 1:
        raise ValueError(
            "MAX_EXTENSION_MINUTES must be >= 1, "
            f"got {config.bookings.max_extension_minutes}"
        )
    if not config.default_timezone:
        raise ValueError("DEFAULT_TIMEZONE must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[request_id_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.engine_name)
    return config


# Singleton instance
settings = load_config()
