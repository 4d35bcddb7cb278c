"""
Tests for the Gemini agents.

The genai client is replaced with a fake exposing `aio.models`, so no
request ever leaves the process.
"""

import base64
from io import BytesIO
from types import SimpleNamespace

import pytest
from google.genai import types
from PIL import Image

from daybook.agents import (
    AgentError,
    ImageAgent,
    SpendingAgent,
    WeatherAgent,
    WeatherParseError,
    extract_json_object,
)
from daybook.agents.ai_agents import EMPTY_COMMENT, IMAGE_STYLE_KEYWORDS
from daybook.config import GeminiSettings

from tests.conftest import fake_client


WEATHER_JSON = """{
  "location": "Busan",
  "currentTemp": 17,
  "lowTemp": 12,
  "highTemp": 21,
  "condition": "Light rain",
  "comment": "비가 오니 우산을 챙기세요",
  "imagePrompt": "A chibi character under heavy rain",
  "newsLink": "https://news.naver.com/article/1"
}"""


@pytest.fixture
def settings():
    return GeminiSettings(api_key="test-key", _env_file=None)


def png_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (2, 2), color="skyblue").save(buffer, format="PNG")
    return buffer.getvalue()


def text_response(text, chunks=None):
    metadata = SimpleNamespace(grounding_chunks=chunks or [])
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(grounding_metadata=metadata, content=None)],
    )


def image_response(data, mime_type="image/png"):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(
        text=None,
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
    )


class TestExtractJsonObject:

    def test_fenced_block(self):
        text = f"Here you go:\n```json\n{WEATHER_JSON}\n```\nEnjoy!"
        assert extract_json_object(text)["currentTemp"] == 17

    def test_fence_without_language(self):
        assert extract_json_object('```\n{"a": 1}\n```') == {"a": 1}

    def test_bare_object_with_prose(self):
        assert extract_json_object('Sure! {"a": {"b": 2}} hope it helps') == {"a": {"b": 2}}

    def test_skips_unbalanced_braces(self):
        assert extract_json_object('temps {low} then {"a": 1}') == {"a": 1}

    def test_broken_fence_falls_back_to_full_text(self):
        text = '```json\n{oops}\n```\n{"a": 1}'
        assert extract_json_object(text) == {"a": 1}

    @pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "{broken"])
    def test_no_object_raises(self, text):
        with pytest.raises(WeatherParseError):
            extract_json_object(text)


class TestWeatherAgent:

    def test_prompt_names_the_location(self, settings):
        prompt = WeatherAgent(settings=settings).build_prompt()
        assert "Busan, South Korea (부산)" in prompt
        assert '"Busan"' in prompt
        assert "news.naver.com" in prompt

    async def test_fetch_weather_parses_snapshot_and_sources(self, settings):
        chunks = [
            SimpleNamespace(web=SimpleNamespace(title="KMA", uri="https://www.weather.go.kr")),
            SimpleNamespace(web=None),
        ]
        client, models = fake_client(text_response(f"```json\n{WEATHER_JSON}\n```", chunks))
        agent = WeatherAgent(settings=settings, client=client)

        snapshot = await agent.fetch_weather()

        assert snapshot.current_temp == 17
        assert snapshot.image_prompt == "A chibi character under heavy rain"
        assert [s.uri for s in snapshot.sources] == ["https://www.weather.go.kr"]
        call = models.calls[0]
        assert call.model == "gemini-2.5-flash"
        assert call.config.tools[0].google_search is not None

    async def test_missing_field_raises_parse_error(self, settings):
        client, _ = fake_client(text_response('{"location": "Busan"}'))
        with pytest.raises(WeatherParseError):
            await WeatherAgent(settings=settings, client=client).fetch_weather()

    async def test_unparseable_reply_raises_parse_error(self, settings):
        client, _ = fake_client(text_response("It is sunny today."))
        with pytest.raises(WeatherParseError):
            await WeatherAgent(settings=settings, client=client).fetch_weather()

    async def test_service_failure_raises_agent_error(self, settings):
        client, _ = fake_client(error=RuntimeError("network down"))
        with pytest.raises(AgentError, match="network down"):
            await WeatherAgent(settings=settings, client=client).fetch_weather()


class TestImageAgent:

    def test_prompt_adds_style_keywords(self):
        prompt = ImageAgent.build_prompt("sun rays over the harbour")
        assert prompt.startswith("An image where the weather condition is the main focus.")
        assert "sun rays over the harbour" in prompt
        assert prompt.endswith(IMAGE_STYLE_KEYWORDS)

    async def test_returns_data_uri(self, settings):
        data = png_bytes()
        client, models = fake_client(image_response(data))
        url = await ImageAgent(settings=settings, client=client).generate_image("rain")
        assert url == "data:image/png;base64," + base64.b64encode(data).decode("ascii")
        call = models.calls[0]
        assert call.model == "gemini-2.5-flash-image"
        assert call.config.response_modalities == [types.Modality.IMAGE]

    async def test_accepts_base64_string_payload(self, settings):
        data = png_bytes()
        client, _ = fake_client(image_response(base64.b64encode(data).decode("ascii")))
        url = await ImageAgent(settings=settings, client=client).generate_image("rain")
        assert url.endswith(base64.b64encode(data).decode("ascii"))

    async def test_undecodable_payload_gives_none(self, settings):
        client, _ = fake_client(image_response(b"definitely not an image"))
        assert await ImageAgent(settings=settings, client=client).generate_image("rain") is None

    async def test_no_image_part_gives_none(self, settings):
        client, _ = fake_client(text_response("I cannot draw that"))
        assert await ImageAgent(settings=settings, client=client).generate_image("rain") is None

    async def test_service_failure_gives_none(self, settings):
        client, _ = fake_client(error=RuntimeError("quota"))
        assert await ImageAgent(settings=settings, client=client).generate_image("rain") is None


class TestSpendingAgent:

    def test_prompt_lists_total_and_categories(self):
        prompt = SpendingAgent.build_prompt(60000, ["shopping", "food"])
        assert "Total Amount: 60000 KRW" in prompt
        assert "Categories: shopping, food" in prompt

    async def test_returns_stripped_text(self, settings):
        client, models = fake_client(SimpleNamespace(text="  지갑이 울고 있어요 \n"))
        comment = await SpendingAgent(settings=settings, client=client).spending_comment(
            60000, ["shopping"]
        )
        assert comment == "지갑이 울고 있어요"
        assert "Total Amount: 60000 KRW" in models.calls[0].contents

    async def test_empty_reply_gives_placeholder(self, settings):
        client, _ = fake_client(SimpleNamespace(text=None))
        comment = await SpendingAgent(settings=settings, client=client).spending_comment(
            1000, ["food"]
        )
        assert comment == EMPTY_COMMENT

    async def test_service_failure_raises_agent_error(self, settings):
        client, _ = fake_client(error=RuntimeError("quota"))
        with pytest.raises(AgentError):
            await SpendingAgent(settings=settings, client=client).spending_comment(1000, ["food"])
