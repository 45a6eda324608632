"""Tests for interval conflict detection."""

import pytest

from booking_engine.schemas.booking_schema import BookingStatus
from booking_engine.scheduling.conflict_checker import ConflictChecker, intervals_conflict
from booking_engine.storage.booking_ledger import InMemoryBookingLedger
from booking_engine.storage.schedule_store import InMemoryScheduleStore
from tests.conftest import at, make_booking, make_schedule


class TestIntervalsConflict:
    def test_overlap(self):
        assert intervals_conflict(at("10:00"), at("11:00"), at("10:30"), at("11:30"))

    def test_touching_without_buffer_is_free(self):
        assert not intervals_conflict(at("10:00"), at("11:00"), at("11:00"), at("12:00"))

    def test_gap_smaller_than_buffer(self):
        assert intervals_conflict(at("10:00"), at("11:00"), at("11:10"), at("12:00"), 15)

    def test_gap_equal_to_buffer_is_free(self):
        assert not intervals_conflict(at("10:00"), at("11:00"), at("11:15"), at("12:00"), 15)

    def test_symmetric(self):
        args = (at("11:10"), at("12:00"), at("10:00"), at("11:00"))
        assert intervals_conflict(*args, 15) == intervals_conflict(*args[2:], *args[:2], 15)

    def test_containment(self):
        assert intervals_conflict(at("09:00"), at("17:00"), at("12:00"), at("12:30"))


@pytest.fixture
def checker():
    ledger = InMemoryBookingLedger([
        make_booking("A", "10:00", 60),
        make_booking("P", "13:00", 60, status=BookingStatus.PENDING),
        make_booking("X", "15:00", 60, status=BookingStatus.CANCELLED),
        make_booking("D", "16:00", 30, status=BookingStatus.COMPLETED),
        make_booking("O", "10:00", 60, provider_id="prov-2"),
    ])
    schedules = InMemoryScheduleStore([make_schedule(buffer_minutes=15)])
    return ConflictChecker(ledger, schedules)


class TestConflictChecker:
    @pytest.mark.asyncio
    async def test_finds_confirmed_booking(self, checker):
        conflicts = await checker.find_conflicts("prov-1", at("10:30"), at("11:00"))
        assert [b.id for b in conflicts] == ["A"]

    @pytest.mark.asyncio
    async def test_pending_booking_blocks(self, checker):
        assert await checker.has_conflict("prov-1", at("12:00"), at("12:50"))

    @pytest.mark.asyncio
    async def test_buffer_from_schedule(self, checker):
        # 11:00 end + 15 min buffer
        assert await checker.has_conflict("prov-1", at("11:10"), at("11:40"))
        assert not await checker.has_conflict("prov-1", at("11:15"), at("11:45"))

    @pytest.mark.asyncio
    async def test_explicit_buffer_overrides_schedule(self, checker):
        assert not await checker.has_conflict(
            "prov-1", at("11:00"), at("11:30"), buffer_minutes=0
        )

    @pytest.mark.asyncio
    async def test_cancelled_and_completed_ignored(self, checker):
        assert not await checker.has_conflict("prov-1", at("15:00"), at("16:30"), buffer_minutes=0)

    @pytest.mark.asyncio
    async def test_exclude_ids(self, checker):
        assert not await checker.has_conflict(
            "prov-1", at("10:00"), at("11:00"), exclude_ids=["A"]
        )

    @pytest.mark.asyncio
    async def test_other_provider_does_not_block(self, checker):
        assert not await checker.has_conflict("prov-3", at("10:00"), at("11:00"))

    @pytest.mark.asyncio
    async def test_results_ordered_by_start(self, checker):
        conflicts = await checker.find_conflicts("prov-1", at("09:00"), at("17:00"))
        assert [b.id for b in conflicts] == ["A", "P"]
