"""
Offline console demo: walks through slot queries, bookings and extensions.

Uses the real handlers, lifecycle manager and cascade rescheduler on an
in-memory ledger with a frozen clock, so every run prints the same thing.

Usage:
    python console_demo.py
    python console_demo.py --scenario extend
    python console_demo.py --scenario race
"""

import argparse
import asyncio
from datetime import date, datetime, timezone
from typing import Any

from booking_engine.config import settings
from booking_engine.handlers import SchedulingHandlers
from booking_engine.notifications import CollectingShiftNotifier

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

PROVIDER_ID = "prov-demo"
DEMO_DAY = date(2030, 1, 7)  # a Monday
FROZEN_NOW = datetime(2030, 1, 6, 8, 0, tzinfo=timezone.utc)


def _at(hhmm: str) -> str:
    return f"{DEMO_DAY.isoformat()}T{hhmm}:00+00:00"


class ConsoleSession:
    """Drives the handlers the way an API layer would, printing each step."""

    SCENARIOS = ["slots", "extend", "infeasible", "race"]

    def __init__(self) -> None:
        self.notifier = CollectingShiftNotifier()
        self.handlers = SchedulingHandlers(clock=lambda: FROZEN_NOW, notifier=self.notifier)

    def step(self, text: str) -> None:
        print(f"\n{BLUE}{BOLD}>>{RESET} {text}")

    def show(self, status: int, payload: dict[str, Any]) -> None:
        colour = GREEN if status < 400 else RED
        print(f"{colour}  [{status}]{RESET} {DIM}{payload}{RESET}")

    async def publish_hours(self, window_end: str = "17:00", buffer: int = 15) -> None:
        self.step(f"Provider publishes Monday 09:00-{window_end}, buffer {buffer} min")
        status, payload = await self.handlers.put_availability({
            "providerId": PROVIDER_ID,
            "bufferMinutes": buffer,
            "days": [{
                "dayOfWeek": "Monday",
                "isAvailable": True,
                "slots": [{"startTime": "09:00", "endTime": window_end}],
            }],
        })
        print(f"{GREEN}  [{status}]{RESET} {payload['message']}")

    async def book(self, customer: str, hhmm: str, duration: int, confirm: bool = True) -> str:
        self.step(f"{customer} books {hhmm} for {duration} min")
        status, payload = await self.handlers.create_booking({
            "providerId": PROVIDER_ID,
            "serviceId": "house-cleaning",
            "customerId": customer,
            "scheduledAt": _at(hhmm),
            "durationMinutes": duration,
        })
        self.show(status, payload)
        booking_id = payload.get("data", {}).get("bookingId", "")
        if confirm and booking_id:
            status, payload = await self.handlers.update_status(booking_id, {"status": "confirmed"})
            print(f"{GREEN}  [{status}]{RESET} {booking_id} -> {payload['data']['status']}")
        return booking_id

    async def list_slots(self, duration: int) -> None:
        self.step(f"Customer asks for {duration}-minute slots on {DEMO_DAY.isoformat()}")
        status, payload = await self.handlers.get_slots({
            "providerId": PROVIDER_ID,
            "date": DEMO_DAY.isoformat(),
            "serviceId": "car-cleaning",
            "durationMinutes": duration,
        })
        labels = [slot["label"] for slot in payload.get("data", [])]
        print(f"{GREEN}  [{status}]{RESET} {len(labels)} slot(s): {', '.join(labels)}")

    async def scenario_slots(self) -> None:
        await self.publish_hours(buffer=15)
        await self.list_slots(60)
        await self.book("cust-ana", "11:00", 60)
        await self.list_slots(60)

    async def scenario_extend(self, window_end: str = "17:00") -> None:
        await self.publish_hours(window_end=window_end, buffer=15)
        first = await self.book("cust-ana", "10:00", 60)
        await self.book("cust-ben", "11:15", 45)

        self.step(f"Provider extends {first} by 30 min")
        status, payload = await self.handlers.extend_booking(first, {"extraMinutes": 30})
        self.show(status, payload)
        for customer, message in self.notifier.messages:
            print(f"{YELLOW}  notify {customer}:{RESET} {message}")

    async def scenario_infeasible(self) -> None:
        await self.scenario_extend(window_end="12:00")
        snapshot = self.handlers.ledger.snapshot()
        print(f"{DIM}  ledger after rejection: {len(snapshot)} booking(s), unchanged{RESET}")

    async def scenario_race(self) -> None:
        await self.publish_hours(buffer=0)
        self.step("Three customers submit 10:00 at the same moment")
        results = await asyncio.gather(*[
            self.handlers.create_booking({
                "providerId": PROVIDER_ID,
                "serviceId": "car-cleaning",
                "customerId": f"cust-{n}",
                "scheduledAt": _at("10:00"),
                "durationMinutes": 60,
            })
            for n in range(3)
        ])
        for status, payload in results:
            self.show(status, payload)

    async def run_scenario(self, scenario: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.engine_name.upper()} - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        await getattr(self, f"scenario_{scenario}")()
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=ConsoleSession.SCENARIOS,
        default=None,
        help="Run one scenario instead of all of them",
    )
    args = parser.parse_args()

    for scenario in [args.scenario] if args.scenario else ConsoleSession.SCENARIOS:
        asyncio.run(ConsoleSession().run_scenario(scenario))


if __name__ == "__main__":
    main()
