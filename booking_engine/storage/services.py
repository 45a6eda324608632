"""Service catalog with minimum durations used when offering slots."""

from typing import Optional

from booking_engine.logging_context import get_request_logger

logger = get_request_logger(__name__)

SERVICE_CATALOG: dict[str, dict] = {
    "house-cleaning": {
        "name": "House Cleaning",
        "min_duration_minutes": 120,
    },
    "car-cleaning": {
        "name": "Car Cleaning",
        "min_duration_minutes": 60,
    },
    "plumbing": {
        "name": "Plumbing Repair",
        "min_duration_minutes": 60,
    },
    "electrical": {
        "name": "Electrical Repair",
        "min_duration_minutes": 60,
    },
    "furniture-assembly": {
        "name": "Furniture Assembly",
        "min_duration_minutes": 90,
    },
    "tutoring": {
        "name": "Home Tutoring",
        "min_duration_minutes": 45,
    },
}


def get_service_details(service_id: str) -> Optional[dict]:
    """Get catalog details for a service, or None if unknown."""
    info = SERVICE_CATALOG.get(service_id.strip().lower())
    if info is None:
        return None
    return {"id": service_id.strip().lower(), **info}


def resolve_duration(service_id: str, requested_minutes: Optional[int]) -> int:
    """Duration to offer slots for.

    The requested duration wins when it is at least the service minimum;
    otherwise the service minimum is used. Unknown services trust the
    request as given.

    Raises:
        ValueError: If the service is unknown and no duration was requested.
    """
    details = get_service_details(service_id)
    if details is None:
        if requested_minutes is None:
            raise ValueError(f"Unknown service '{service_id}' and no duration requested")
        return requested_minutes

    minimum = details["min_duration_minutes"]
    if requested_minutes is None or requested_minutes < minimum:
        if requested_minutes is not None:
            logger.debug(
                "Requested %d min below %s minimum; using %d",
                requested_minutes, service_id, minimum,
            )
        return minimum
    return requested_minutes
