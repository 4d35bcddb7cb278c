"""
Main Orchestrator for Daybook

This module ties together all the components and defines the
long-lived pieces of the dashboard:
1. WeatherBoard (fetch weather -> publish text -> draw image, every 30 min)
2. SpendingTracker (selected day -> ledger view -> debounced comment)
3. Dashboard (owns the clock tick and both of the above)

DESIGN DECISION: Everything here runs on one asyncio event loop.
Timers are PeriodicTasks owned by the component that started them,
and `Dashboard.stop()` cancels every one of them.
"""

from datetime import date, datetime
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from daybook.agents import ImageAgent, SpendingAgent, WeatherAgent
from daybook.audit import ActivityLogger, create_correlation_id
from daybook.clock import DashboardClock, PeriodicTask
from daybook.config import DashboardSettings, get_settings
from daybook.ledger import CommentaryState, CommentaryTrigger, LedgerStore
from daybook.models.ledger import Category, Transaction
from daybook.models.weather import FALLBACK_WEATHER, LoadingState, WeatherSnapshot
from daybook.services.storage import JsonFileStore, KeyValueStore, StorageError


class WeatherState(BaseModel):
    """What the weather card currently shows."""
    model_config = ConfigDict(frozen=True)

    status: LoadingState = LoadingState.IDLE
    snapshot: Optional[WeatherSnapshot] = None
    image_url: Optional[str] = None
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None


class WeatherBoard:
    """
    Polls the weather agent and keeps the latest snapshot and image.

    Status machine: idle -> loading -> {success, error}; a new cycle
    always goes back through loading. A failed cycle never clears what
    an earlier successful one published.
    """

    def __init__(
        self,
        weather_agent: WeatherAgent,
        image_agent: ImageAgent,
        clock: DashboardClock,
        poll_seconds: float = 30 * 60,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._weather_agent = weather_agent
        self._image_agent = image_agent
        self._clock = clock
        self._activity = activity_logger or ActivityLogger()
        self._state = WeatherState()
        self._poller = PeriodicTask("weather", poll_seconds, self.refresh)

    @property
    def state(self) -> WeatherState:
        return self._state

    @property
    def running(self) -> bool:
        return self._poller.running

    def _set_state(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)

    async def refresh(self) -> WeatherState:
        """Run one fetch cycle and return the resulting state."""
        correlation_id = create_correlation_id()
        self._set_state(status=LoadingState.LOADING)

        try:
            snapshot = await self._weather_agent.fetch_weather()
        except Exception as e:
            self._activity.log_weather_failed(str(e), correlation_id)
            self._set_state(
                status=LoadingState.ERROR,
                last_error=str(e),
                snapshot=self._state.snapshot or FALLBACK_WEATHER,
            )
            return self._state

        # Text goes out before the (slow) image request
        self._set_state(snapshot=snapshot, last_error=None, updated_at=self._clock.now())
        self._activity.log_weather_fetched(snapshot.location, snapshot.condition, correlation_id)

        if snapshot.image_prompt:
            try:
                image_url = await self._image_agent.generate_image(snapshot.image_prompt)
            except Exception as e:
                self._activity.log_external_service_error("gemini_image", str(e), correlation_id)
                image_url = None
            self._activity.log_image_generated(image_url is not None, correlation_id)
            self._set_state(image_url=image_url)

        self._set_state(status=LoadingState.SUCCESS)
        return self._state

    def start(self) -> None:
        """Fetch now and then on every poll interval."""
        self._poller.start()

    async def stop(self) -> None:
        await self._poller.stop()


class SpendingView(BaseModel):
    """Everything the ledger panel renders for the selected day."""
    model_config = ConfigDict(frozen=True)

    day: date
    transactions: list[Transaction]
    total: int
    commentary: CommentaryState
    save_error: Optional[str] = None


class SpendingTracker:
    """
    Ledger panel controller.

    Keeps the selected day and feeds (day, total, categories) to the
    commentary trigger whenever either the day or the ledger changes.
    Methods are coroutines so they always run on the dashboard loop.

    A failed write is reported through `save_error` instead of raising;
    the entry itself stays in the in-memory ledger.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        commentary: CommentaryTrigger,
        clock: DashboardClock,
    ):
        self._ledger = ledger
        self._commentary = commentary
        self._clock = clock
        self._selected_day = clock.today()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._save_error: Optional[str] = None

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    @property
    def commentary(self) -> CommentaryTrigger:
        return self._commentary

    @property
    def selected_day(self) -> date:
        return self._selected_day

    @property
    def save_error(self) -> Optional[str]:
        """Message of the last failed write; cleared by the next good one."""
        return self._save_error

    def _sync(self) -> None:
        day = self._selected_day
        self._commentary.notify(
            day,
            self._ledger.total_for(day),
            self._ledger.categories_for(day),
        )

    async def start(self) -> None:
        """Begin watching the ledger and request the first comment."""
        if self._unsubscribe is None:
            self._unsubscribe = self._ledger.subscribe(self._sync)
        self._sync()

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._commentary.close()

    async def select_day(self, day: date) -> None:
        self._selected_day = day
        self._sync()

    async def reset_to_today(self) -> None:
        """Select the current day; called whenever the ledger panel opens."""
        await self.select_day(self._clock.today())

    async def add(
        self,
        amount: Union[str, int, None],
        category: Union[Category, str, None],
    ) -> Optional[Transaction]:
        """Record spending on the selected day; None if the input was incomplete."""
        try:
            transaction = self._ledger.add(amount, category, self._selected_day)
        except StorageError as e:
            self._save_error = str(e)
            # add() prepends before it persists
            return self._ledger.transactions[0]
        if transaction is not None:
            self._save_error = None
        return transaction

    async def remove(self, transaction_id: str) -> bool:
        try:
            removed = self._ledger.remove(transaction_id)
        except StorageError as e:
            self._save_error = str(e)
            return True
        if removed:
            self._save_error = None
        return removed

    def view(self) -> SpendingView:
        """Build the panel state from one pass over the ledger."""
        day = self._selected_day
        transactions = list(self._ledger.transactions_for(day))
        return SpendingView(
            day=day,
            transactions=transactions,
            total=sum(t.amount for t in transactions),
            commentary=self._commentary.state,
            save_error=self._save_error,
        )

    async def current_view(self) -> SpendingView:
        """`view()` evaluated on the dashboard loop, for callers on other threads."""
        return self.view()


class Dashboard:
    """
    The whole widget: clock, weather card and ledger panel.

    `start()` must be awaited on the loop that will own every timer;
    `stop()` cancels them all.
    """

    def __init__(
        self,
        clock: DashboardClock,
        weather: WeatherBoard,
        spending: SpendingTracker,
        tick_seconds: float = 1.0,
    ):
        self.clock = clock
        self.weather = weather
        self.spending = spending
        self._ticker = PeriodicTask("clock", tick_seconds, clock.tick)
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._ticker.start()
        self.weather.start()
        await self.spending.start()

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        await self._ticker.stop()
        await self.weather.stop()
        await self.spending.stop()


def create_app_components(
    settings: Optional[DashboardSettings] = None,
    storage: Optional[KeyValueStore] = None,
    weather_agent: Optional[WeatherAgent] = None,
    image_agent: Optional[ImageAgent] = None,
    spending_agent: Optional[SpendingAgent] = None,
    clock: Optional[DashboardClock] = None,
) -> Dashboard:
    """
    Factory function to create all application components.

    Args:
        settings: Dashboard settings; loaded from the environment if None.
        storage: Key-value backend; a JsonFileStore at settings.data_path if None.
        weather_agent, image_agent, spending_agent: Gemini agents
            (replace with fakes for testing).
        clock: Clock pinned to settings.timezone if None.

    Returns:
        A Dashboard that has not been started yet
    """
    settings = settings or get_settings().dashboard
    activity_logger = ActivityLogger()

    clock = clock or DashboardClock(settings.zone)
    storage = storage or JsonFileStore(settings.data_path)

    weather_agent = weather_agent or WeatherAgent(activity_logger=activity_logger)
    image_agent = image_agent or ImageAgent(activity_logger=activity_logger)
    spending_agent = spending_agent or SpendingAgent(activity_logger=activity_logger)

    ledger = LedgerStore(
        storage=storage,
        clock=clock,
        key=settings.ledger_key,
        max_amount=settings.max_amount,
        activity_logger=activity_logger,
    )
    commentary = CommentaryTrigger(
        comment_fn=spending_agent.spending_comment,
        debounce_seconds=settings.commentary_debounce_seconds,
        activity_logger=activity_logger,
    )

    weather = WeatherBoard(
        weather_agent=weather_agent,
        image_agent=image_agent,
        clock=clock,
        poll_seconds=settings.weather_poll_seconds,
        activity_logger=activity_logger,
    )
    spending = SpendingTracker(ledger=ledger, commentary=commentary, clock=clock)

    return Dashboard(
        clock=clock,
        weather=weather,
        spending=spending,
        tick_seconds=settings.clock_tick_seconds,
    )
