"""
Dashboard Clock

Everything time-related in the dashboard is projected into one named
timezone: the clock face, "today", and the calendar day a ledger entry
belongs to. The zone comes from DashboardSettings.timezone.

Also home of PeriodicTask, the asyncio timer behind the clock tick and
the weather poll.
"""

import asyncio
import inspect
from datetime import date, datetime, time, timezone, tzinfo
from typing import Awaitable, Callable, Optional, Union

import structlog


logger = structlog.get_logger(__name__)

KOREAN_WEEKDAYS = ("월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일")

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class DashboardClock:
    """
    Wall clock pinned to a fixed timezone.

    `now_fn` returns the current instant as an aware datetime and
    exists so tests can freeze time.
    """

    def __init__(
        self,
        zone: tzinfo,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        self._zone = zone
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))
        self._current = self.now()

    @property
    def zone(self) -> tzinfo:
        return self._zone

    @property
    def current(self) -> datetime:
        """The instant captured by the last tick."""
        return self._current

    def now(self) -> datetime:
        """The current instant projected into the dashboard zone."""
        return self._now_fn().astimezone(self._zone)

    def today(self) -> date:
        return self.now().date()

    def tick(self) -> datetime:
        """Recompute "now"; called once per clock interval."""
        self._current = self.now()
        return self._current

    def local_day(self, moment: datetime) -> date:
        """Calendar day of an instant in the dashboard zone."""
        return moment.astimezone(self._zone).date()

    def at_current_time(self, day: date) -> datetime:
        """
        Combine a calendar day with the current time of day.

        Milliseconds are kept so entries made within the same second
        still sort by entry time.
        """
        now = self.now()
        time_of_day = time(
            now.hour,
            now.minute,
            now.second,
            now.microsecond // 1000 * 1000,
        )
        return datetime.combine(day, time_of_day, tzinfo=self._zone)


# =============================================================================
# FORMATTING
# =============================================================================

def format_day_header(moment: datetime) -> tuple[str, str]:
    """("18일", "일요일") for the page header."""
    return f"{moment.day}일", KOREAN_WEEKDAYS[moment.weekday()]


def format_clock(moment: datetime) -> str:
    """12-hour clock face, zero padded: "09:05"."""
    return moment.strftime("%I:%M")


def format_entry_time(moment: datetime) -> str:
    """Korean am/pm time for a ledger row: "오후 3:07"."""
    meridiem = "오전" if moment.hour < 12 else "오후"
    hour = moment.hour % 12 or 12
    return f"{meridiem} {hour}:{moment.minute:02d}"


def format_month_day(day: date) -> str:
    """Korean short date: "10월 18일"."""
    return f"{day.month}월 {day.day}일"


# =============================================================================
# TIMERS
# =============================================================================

class PeriodicTask:
    """
    Runs a callback on a fixed interval inside the running event loop.

    The first run happens immediately when `run_immediately` is set.
    A failing callback is logged and the schedule continues.
    `stop()` cancels the timer and waits for it to finish.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: TickCallback,
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._name = name
        self._interval = interval_seconds
        self._callback = callback
        self._run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"periodic:{self._name}"
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _invoke(self) -> None:
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("periodic_task_failed", task=self._name)

    async def _run(self) -> None:
        if self._run_immediately:
            await self._invoke()
        while True:
            await asyncio.sleep(self._interval)
            await self._invoke()
