"""
Command-line entry point for the booking engine.

Usage:
    Console demo:  python main.py demo [--scenario extend]
    Slot query:    python main.py slots --schedule availability.json \\
                       --date 2030-01-07 --service car-cleaning [--duration 60] \\
                       [--bookings bookings.json]

The schedule file holds one provider availability document; the optional
bookings file holds a JSON list of bookings for the same provider.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from booking_engine.config import settings
from booking_engine.handlers import SchedulingHandlers
from booking_engine.schemas.booking_schema import Booking
from booking_engine.storage.booking_ledger import InMemoryBookingLedger

logger = logging.getLogger(__name__)


def _load_json(path: str):
    file_path = Path(path)
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        sys.exit(1)
    return json.loads(file_path.read_text(encoding="utf-8"))


async def _run_slots(args: argparse.Namespace) -> int:
    schedule_doc = _load_json(args.schedule)
    bookings = [Booking.model_validate(item) for item in _load_json(args.bookings)] if args.bookings else []

    handlers = SchedulingHandlers(ledger=InMemoryBookingLedger(bookings))
    status, payload = await handlers.put_availability(schedule_doc)
    if status != 200:
        sys.stderr.write(json.dumps(payload, indent=2) + "\n")
        return 1

    params = {
        "providerId": payload["data"]["providerId"],
        "date": args.date,
        "serviceId": args.service,
    }
    if args.duration is not None:
        params["durationMinutes"] = args.duration
    status, payload = await handlers.get_slots(params)
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    return 0 if status == 200 else 1


def _run_demo(args: argparse.Namespace) -> int:
    from console_demo import ConsoleSession

    for scenario in [args.scenario] if args.scenario else ConsoleSession.SCENARIOS:
        asyncio.run(ConsoleSession().run_scenario(scenario))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=f"{settings.engine_name} command line")
    sub = parser.add_subparsers(dest="command", required=True)

    demo = sub.add_parser("demo", help="Run the offline console demo.")
    demo.add_argument(
        "--scenario",
        choices=["slots", "extend", "infeasible", "race"],
        default=None,
        help="Run a single scenario.",
    )

    slots = sub.add_parser("slots", help="List bookable slots from JSON files.")
    slots.add_argument("--schedule", required=True, help="Availability document (JSON).")
    slots.add_argument("--date", required=True, help="Local date, YYYY-MM-DD.")
    slots.add_argument("--service", required=True, help="Service id.")
    slots.add_argument("--duration", type=int, default=None, help="Requested minutes.")
    slots.add_argument("--bookings", default=None, help="Existing bookings (JSON list).")

    args = parser.parse_args()

    if args.command == "demo":
        sys.exit(_run_demo(args))
    sys.exit(asyncio.run(_run_slots(args)))


if __name__ == "__main__":
    main()
