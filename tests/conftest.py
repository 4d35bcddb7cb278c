"""
Shared fixtures for Daybook tests.

No real API calls in tests: the Gemini agents are replaced with fakes
and storage is in memory unless a test is about the JSON file itself.
"""

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from daybook.clock import DashboardClock
from daybook.ledger import LedgerStore
from daybook.models.weather import WeatherSnapshot
from daybook.services.storage import InMemoryStore


SEOUL = ZoneInfo("Asia/Seoul")


class FrozenTime:
    """Callable returning a settable instant."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FakeWeatherAgent:
    """Returns (or raises) queued results, one per call."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def fetch_weather(self) -> WeatherSnapshot:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeImageAgent:
    def __init__(self, url="data:image/png;base64,iVBORw0KGgo=", on_call=None):
        self.url = url
        self.prompts = []
        self.on_call = on_call

    async def generate_image(self, prompt):
        self.prompts.append(prompt)
        if self.on_call is not None:
            self.on_call()
        return self.url


class FakeSpendingAgent:
    def __init__(self, reply="지갑이 울고 있어요", error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []

    async def spending_comment(self, total_amount, categories):
        self.calls.append((total_amount, list(categories)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeModels:
    """Stands in for client.aio.models."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(response=None, error=None):
    models = FakeModels(response=response, error=error)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def make_snapshot(**overrides) -> WeatherSnapshot:
    data = {
        "location": "Busan",
        "currentTemp": 18,
        "lowTemp": 12,
        "highTemp": 21,
        "condition": "Rain",
        "comment": "비가 오니 우산을 챙기세요",
        "imagePrompt": "A chibi character under heavy rain",
        "newsLink": "https://news.naver.com/article/1",
    }
    data.update(overrides)
    return WeatherSnapshot.model_validate(data)


@pytest.fixture
def frozen_time():
    # 2024-12-15 12:04:05.123456 in Seoul
    return FrozenTime(datetime(2024, 12, 15, 3, 4, 5, 123456, tzinfo=timezone.utc))


@pytest.fixture
def clock(frozen_time):
    return DashboardClock(SEOUL, now_fn=frozen_time)


@pytest.fixture
def storage():
    return InMemoryStore()


@pytest.fixture
def ledger(storage, clock):
    return LedgerStore(storage=storage, clock=clock)
