"""
Commentary Trigger

Keeps the "Gemini's Comment" line in step with the selected day's total.

DESIGN DECISION: Every change produces a new scheduled task tagged with
a monotonically increasing sequence number. Scheduling cancels the
previous task, and a finishing task only applies its result when its
number is still the latest issued. A slow reply for an old total can
therefore never overwrite the comment for a newer one.

Timeline of one request:
1. notify(day, total, categories) -> sequence n, previous task cancelled
2. quiet period (800 ms by default); another notify restarts from 1
3. total == 0 -> fixed celebratory line, no service call
4. otherwise loading=True, ask the service, fall back to an apology
5. apply only if n is still the latest sequence
"""

import asyncio
from datetime import date
from typing import Awaitable, Callable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from daybook.audit import ActivityLogger, create_correlation_id


NO_SPENDING_COMMENT = "오늘도 무지출 챌린지 성공? 멋져요! 👍"
FALLBACK_COMMENT = "소비 요정의 컨디션이 좋지 않네요."

CommentFn = Callable[[int, list[str]], Awaitable[str]]


class CommentaryState(BaseModel):
    """What the comment box currently shows."""
    model_config = ConfigDict(frozen=True)

    comment: str = ""
    loading: bool = False
    day: Optional[date] = None
    total: Optional[int] = None
    sequence: int = 0


StateListener = Callable[[CommentaryState], None]


class CommentaryTrigger:
    """
    Debounced, last-request-wins spending commentary.

    Must be driven from a single event loop; `notify` schedules work on
    the running loop.
    """

    def __init__(
        self,
        comment_fn: CommentFn,
        debounce_seconds: float = 0.8,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._comment_fn = comment_fn
        self._debounce = debounce_seconds
        self._activity = activity_logger or ActivityLogger()
        self._state = CommentaryState()
        self._sequence = 0
        self._watched: Optional[tuple[date, int]] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> CommentaryState:
        return self._state

    @property
    def sequence(self) -> int:
        """Latest sequence number issued."""
        return self._sequence

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._state)

    def notify(
        self,
        day: date,
        total: int,
        categories: list[str],
        force: bool = False,
    ) -> bool:
        """
        Report the selected day and its total.

        Schedules a new request when either value differs from the last
        report (or when `force` is set). Returns True if scheduled.
        """
        watched = (day, total)
        if watched == self._watched and not force:
            return False
        self._watched = watched

        self._sequence += 1
        sequence = self._sequence
        if self._task is not None and not self._task.done():
            self._task.cancel()

        self._task = asyncio.get_running_loop().create_task(
            self._run(sequence, day, total, list(categories)),
            name=f"commentary:{sequence}",
        )
        return True

    def _is_latest(self, sequence: int) -> bool:
        return sequence == self._sequence

    async def _run(
        self,
        sequence: int,
        day: date,
        total: int,
        categories: list[str],
    ) -> None:
        await asyncio.sleep(self._debounce)
        if not self._is_latest(sequence):
            return

        if total == 0:
            self._set_state(
                comment=NO_SPENDING_COMMENT,
                loading=False,
                day=day,
                total=total,
                sequence=sequence,
            )
            return

        correlation_id = create_correlation_id()
        self._activity.log_commentary_requested(sequence, total, categories, correlation_id)
        self._set_state(loading=True)

        try:
            comment = await self._comment_fn(total, categories)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._activity.log_external_service_error("spending_comment", str(e), correlation_id)
            comment = FALLBACK_COMMENT

        self._apply(sequence, day, total, comment, correlation_id)

    def _apply(
        self,
        sequence: int,
        day: date,
        total: int,
        comment: str,
        correlation_id: UUID,
    ) -> None:
        if not self._is_latest(sequence):
            self._activity.log_commentary_discarded(sequence, self._sequence, correlation_id)
            return
        self._set_state(
            comment=comment,
            loading=False,
            day=day,
            total=total,
            sequence=sequence,
        )
        self._activity.log_commentary_applied(sequence, comment, correlation_id)

    async def wait_settled(self) -> None:
        """Wait until the latest scheduled request has finished."""
        while self._task is not None and not self._task.done():
            task = self._task
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if task is self._task:
                    raise

    async def close(self) -> None:
        """Cancel any pending request (view teardown)."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
