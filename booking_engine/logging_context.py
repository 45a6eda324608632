"""Request ID logging context for tracing engine calls across modules.

Provides a request_id-aware logger that attaches a correlation ID to
every log message, so a single slot query or booking mutation can be
followed through the conflict checker, the lifecycle manager and the
cascade rescheduler.

Usage:
    from booking_engine.logging_context import get_request_logger, set_request_id

    set_request_id("REQ-abc123")
    logger = get_request_logger(__name__)
    logger.info("Creating booking")  # record.request_id == "REQ-abc123"

    The root handler built by ``request_id_handler`` renders the id as
    ``[REQ-abc123]`` in every line.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional, TextIO

_request_id: ContextVar[str] = ContextVar("request_id", default="NO_REQUEST_ID")


def set_request_id(request_id: str) -> None:
    """Set the correlation ID for the current async context."""
    _request_id.set(request_id)


def get_request_id() -> str:
    """Retrieve the current correlation ID."""
    return _request_id.get()


def new_request_id() -> str:
    """Generate and install a fresh correlation ID for this context."""
    request_id = f"REQ-{uuid.uuid4().hex[:8]}"
    _request_id.set(request_id)
    return request_id


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached.

    The filter adds ``request_id`` to each record so formatters can
    include ``%(request_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger


def request_id_handler(stream: Optional[TextIO] = None) -> logging.Handler:
    """Stream handler that stamps every record it emits with the request id.

    Pair it with a format containing ``%(request_id)s``; ``load_config``
    installs one on the root logger.
    """
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    return handler
