"""
AI Agents for Daybook

DESIGN DECISION: Every call to Gemini goes through one of three small
agents: weather lookup, weather illustration, spending comment.
Each agent owns its prompt and its parsing, and nothing else.

BOUNDARIES:

1. WEATHER AGENT:
   - CAN: Search the web and summarize today's weather as JSON
   - MUST: Survive free-form replies and fenced code blocks
   - RAISES: AgentError when no usable snapshot comes back

2. IMAGE AGENT:
   - CAN: Draw the scene described by the weather's image prompt
   - NEVER raises; returns None when no image is produced

3. SPENDING AGENT:
   - CAN: Write one short line about the day's spending
   - RAISES: AgentError on service failure, so the caller picks the
     fallback wording

The dashboard never shows an exception to the user; the callers of
these agents turn every failure into fixed fallback text.
"""

import base64
import json
import re
from io import BytesIO
from typing import Any, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from daybook.audit import ActivityLogger
from daybook.config import GeminiSettings, get_settings
from daybook.models.weather import WeatherSnapshot, WeatherSource


_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

IMAGE_STYLE_KEYWORDS = (
    "3D render, cute chibi character, Pixar style, high quality, soft studio lighting, "
    "intense weather atmosphere, immersive environment, particle effects, "
    "rain drops or sun rays visible, cinematic composition"
)

EMPTY_COMMENT = "지출 내역을 분석 중입니다..."


class AgentError(Exception):
    """Base exception for AI agent failures."""
    pass


class WeatherParseError(AgentError):
    """The weather reply held no usable JSON object."""
    pass


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Find the first well-formed JSON object in a model reply.

    The body of a fenced code block is preferred when present;
    otherwise the whole text is scanned from each opening brace.

    Raises:
        WeatherParseError: If no JSON object can be decoded
    """
    candidates = []
    fenced = _FENCED_BLOCK.search(text or "")
    if fenced:
        candidates.append(fenced.group(1))
    candidates.append(text or "")

    decoder = json.JSONDecoder()
    for candidate in candidates:
        start = candidate.find("{")
        while start >= 0:
            try:
                obj, _ = decoder.raw_decode(candidate, start)
            except json.JSONDecodeError:
                pass
            else:
                if isinstance(obj, dict):
                    return obj
            start = candidate.find("{", start + 1)

    raise WeatherParseError("Failed to parse weather JSON from model output")


def grounding_sources(response: Any) -> list[WeatherSource]:
    """Collect the web pages a grounded response cited."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if web is not None and uri:
            sources.append(WeatherSource(title=getattr(web, "title", None), uri=uri))
    return sources


def first_inline_image(response: Any) -> Optional[tuple[str, bytes]]:
    """Return (mime_type, bytes) of the first inline-data part, if any."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return inline.mime_type or "image/png", data
    return None


class GeminiAgent:
    """
    Shared plumbing for the Gemini-backed agents.

    The client is created on first use, so a missing API key only
    fails the individual request instead of the whole dashboard.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        client: Optional[genai.Client] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._settings = settings
        self._client = client
        self._activity = activity_logger or ActivityLogger()

    @property
    def settings(self) -> GeminiSettings:
        if self._settings is None:
            self._settings = get_settings().gemini
        return self._settings

    def _get_client(self) -> genai.Client:
        """Get or create the Gemini client."""
        if self._client is None:
            self._client = genai.Client(
                api_key=self.settings.api_key,
                http_options=types.HttpOptions(
                    timeout=int(self.settings.request_timeout_seconds * 1000),
                ),
            )
        return self._client

    @retry(
        retry=retry_if_exception_type(genai_errors.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(
        self,
        model: str,
        contents: Any,
        config: Optional[types.GenerateContentConfig] = None,
    ) -> types.GenerateContentResponse:
        """Run one generate_content call on the async client."""
        return await self._get_client().aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )


class WeatherAgent(GeminiAgent):
    """
    Looks up today's weather with Google Search grounding.

    The model is asked for a JSON object; the reply is still treated
    as free text because search-grounded calls cannot enforce a schema.
    """

    def build_prompt(self) -> str:
        settings = self.settings
        return f"""
Find the current weather report for {settings.location_query}.
Search for the current temperature, today's low/high temperature, and weather condition.
Also, search for a specific URL of a trending or interesting news article on Naver News (news.naver.com).

Based on the search results, generate a JSON object with the following fields:
- location: (string) "{settings.location}"
- currentTemp: (number) Current temperature in Celsius.
- lowTemp: (number) Today's low temperature.
- highTemp: (number) Today's high temperature.
- condition: (string) Short weather condition in English (e.g., Rain, Sunny, Cloudy, Snow).
- comment: (string) A friendly, helpful one-line weather advice in Korean (e.g., '비가 오니 우산을 챙기세요').
- imagePrompt: (string) A description of a character experiencing this weather. IMPORTANT: The weather must be the MOST DOMINANT visual feature. If rain, describe heavy rain pouring, wet surfaces, and splashes. If sunny, describe blinding sun rays and clear blue skies. If cloudy, describe dramatic thick clouds filling the sky. The character should be interacting with this intense weather.
- newsLink: (string) The specific URL of the trending Naver News article found.

Output ONLY the JSON string inside a code block.
"""

    async def fetch_weather(self) -> WeatherSnapshot:
        """
        Fetch and parse a weather snapshot.

        Raises:
            AgentError: If the service fails or the reply is unusable
        """
        try:
            response = await self._generate(
                model=self.settings.text_model,
                contents=self.build_prompt(),
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                    thinking_config=types.ThinkingConfig(thinking_budget=0),
                ),
            )
        except Exception as e:
            self._activity.log_external_service_error("gemini_weather", str(e))
            raise AgentError(f"Weather request failed: {e}") from e

        data = extract_json_object(response.text or "")
        data["sources"] = [s.model_dump() for s in grounding_sources(response)]
        try:
            return WeatherSnapshot.model_validate(data)
        except ValidationError as e:
            raise WeatherParseError(f"Weather JSON did not match the snapshot shape: {e}") from e


class ImageAgent(GeminiAgent):
    """Draws the weather illustration."""

    @staticmethod
    def build_prompt(prompt: str) -> str:
        return (
            f"An image where the weather condition is the main focus. "
            f"{prompt}. {IMAGE_STYLE_KEYWORDS}"
        )

    @staticmethod
    def _is_decodable(data: bytes) -> bool:
        try:
            with Image.open(BytesIO(data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            return False
        return True

    async def generate_image(self, prompt: str) -> Optional[str]:
        """
        Generate an image for the prompt.

        Returns:
            A data URI ("data:<mime>;base64,<payload>") or None
        """
        try:
            response = await self._generate(
                model=self.settings.image_model,
                contents=self.build_prompt(prompt),
                config=types.GenerateContentConfig(
                    response_modalities=[types.Modality.IMAGE],
                ),
            )
        except Exception as e:
            self._activity.log_external_service_error("gemini_image", str(e))
            return None

        image = first_inline_image(response)
        if image is None:
            return None
        mime_type, data = image
        if not self._is_decodable(data):
            self._activity.log_external_service_error(
                "gemini_image", f"Undecodable {mime_type} payload ({len(data)} bytes)"
            )
            return None
        return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class SpendingAgent(GeminiAgent):
    """Writes the one-line spending comment."""

    @staticmethod
    def build_prompt(total_amount: int, categories: list[str]) -> str:
        return f"""
You are a witty, slightly sarcastic, but helpful financial assistant.
Analyze today's spending.
Total Amount: {total_amount} KRW
Categories: {', '.join(categories)}

Write a ONE-LINE comment in Korean about this spending.
- If the amount is high (> 50,000 KRW), be sarcastic or warning (e.g., "Are you rich?", "Wallet is crying").
- If the amount is low or zero, be encouraging.
- If mostly food, mention diet or hunger.
- Keep it under 30 characters.
- Do NOT use markdown. Just the text.
"""

    async def spending_comment(self, total_amount: int, categories: list[str]) -> str:
        """
        Ask for a comment on the day's spending.

        Raises:
            AgentError: If the service call fails
        """
        try:
            response = await self._generate(
                model=self.settings.text_model,
                contents=self.build_prompt(total_amount, categories),
            )
        except Exception as e:
            self._activity.log_external_service_error("gemini_comment", str(e))
            raise AgentError(f"Spending comment request failed: {e}") from e

        text = (response.text or "").strip()
        return text or EMPTY_COMMENT
