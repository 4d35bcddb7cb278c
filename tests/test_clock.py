"""
Tests for the dashboard clock, its formatters and PeriodicTask.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from daybook.clock import (
    DashboardClock,
    PeriodicTask,
    format_clock,
    format_day_header,
    format_entry_time,
    format_month_day,
)

from tests.conftest import SEOUL


class TestDashboardClock:

    def test_now_is_projected_into_zone(self, clock):
        now = clock.now()
        assert now.tzinfo == SEOUL
        assert (now.hour, now.minute) == (12, 4)

    def test_today_follows_zone_not_utc(self, frozen_time):
        # 16:00 UTC on the 15th is already the 16th in Seoul
        frozen_time.moment = datetime(2024, 12, 15, 16, 0, tzinfo=timezone.utc)
        assert DashboardClock(SEOUL, now_fn=frozen_time).today() == date(2024, 12, 16)

    def test_tick_updates_current(self, clock, frozen_time):
        before = clock.current
        frozen_time.moment += timedelta(seconds=1)
        assert clock.tick() == before + timedelta(seconds=1)
        assert clock.current == before + timedelta(seconds=1)

    def test_local_day(self, clock):
        moment = datetime(2024, 12, 31, 20, 0, tzinfo=timezone.utc)
        assert clock.local_day(moment) == date(2025, 1, 1)

    def test_at_current_time_truncates_to_milliseconds(self, clock):
        stamped = clock.at_current_time(date(2024, 11, 2))
        assert stamped == datetime(2024, 11, 2, 12, 4, 5, 123000, tzinfo=SEOUL)


class TestFormatters:

    def test_day_header(self):
        # 2024-12-15 is a Sunday
        assert format_day_header(datetime(2024, 12, 15, 9, tzinfo=SEOUL)) == ("15일", "일요일")

    @pytest.mark.parametrize("hour, minute, expected", [
        (0, 5, "12:05"),
        (9, 5, "09:05"),
        (12, 0, "12:00"),
        (23, 59, "11:59"),
    ])
    def test_clock_face(self, hour, minute, expected):
        assert format_clock(datetime(2024, 12, 15, hour, minute, tzinfo=SEOUL)) == expected

    @pytest.mark.parametrize("hour, minute, expected", [
        (0, 7, "오전 12:07"),
        (9, 30, "오전 9:30"),
        (12, 0, "오후 12:00"),
        (15, 7, "오후 3:07"),
    ])
    def test_entry_time(self, hour, minute, expected):
        assert format_entry_time(datetime(2024, 12, 15, hour, minute, tzinfo=SEOUL)) == expected

    def test_month_day(self):
        assert format_month_day(date(2024, 10, 18)) == "10월 18일"


class TestPeriodicTask:

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            PeriodicTask("bad", 0, lambda: None)

    async def test_runs_immediately_then_repeats(self):
        calls = []
        task = PeriodicTask("tick", 0.01, lambda: calls.append(1))
        task.start()
        await asyncio.sleep(0.055)
        await task.stop()
        assert len(calls) >= 3
        assert not task.running

    async def test_deferred_first_run(self):
        calls = []
        task = PeriodicTask("tick", 10, lambda: calls.append(1), run_immediately=False)
        task.start()
        await asyncio.sleep(0.01)
        await task.stop()
        assert calls == []

    async def test_awaits_coroutine_callbacks(self):
        calls = []

        async def callback():
            await asyncio.sleep(0)
            calls.append(1)

        task = PeriodicTask("async", 10, callback)
        task.start()
        await asyncio.sleep(0.01)
        await task.stop()
        assert calls == [1]

    async def test_failures_do_not_stop_the_schedule(self):
        calls = []

        def callback():
            calls.append(1)
            raise RuntimeError("boom")

        task = PeriodicTask("flaky", 0.01, callback)
        task.start()
        await asyncio.sleep(0.045)
        assert task.running
        await task.stop()
        assert len(calls) >= 2

    async def test_start_is_idempotent_and_stop_is_safe(self):
        calls = []
        task = PeriodicTask("once", 10, lambda: calls.append(1))
        await task.stop()
        task.start()
        task.start()
        await asyncio.sleep(0.01)
        await task.stop()
        await task.stop()
        assert calls == [1]
