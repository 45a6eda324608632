"""Error taxonomy surfaced by the scheduling engine.

Every failure the engine reports synchronously is a ``SchedulingError``
carrying a stable ``kind`` string and the HTTP-ish status code a host
service would answer with. None of them are retried inside the engine.
"""


class SchedulingError(Exception):
    """Base class for all engine failures."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


class InvalidInputError(SchedulingError):
    """Malformed, past or non-positive time or duration. Caller error."""

    kind = "invalid_input"
    status_code = 400


class NotFoundError(SchedulingError):
    """The referenced booking does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(SchedulingError):
    """The interval is no longer free; re-query slots and pick again."""

    kind = "conflict"
    status_code = 409


class InvalidStateError(SchedulingError):
    """The requested status transition is not allowed."""

    kind = "invalid_state"
    status_code = 409


class InfeasibleError(SchedulingError):
    """An extension cannot be satisfied without breaking availability."""

    kind = "infeasible"
    status_code = 409


class UnavailableError(SchedulingError):
    """The storage layer timed out or disconnected. Safe to retry."""

    kind = "unavailable"
    status_code = 503
