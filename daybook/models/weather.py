"""
Weather Data Models for Daybook

A WeatherSnapshot is whatever the weather agent last managed to read.
It is replaced wholesale on every successful fetch and never persisted.

Field aliases follow the camelCase keys the model is asked to emit,
so a parsed JSON object validates directly.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LoadingState(str, Enum):
    """Status of the weather card."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class WeatherIcon(str, Enum):
    SUN = "☀️"
    CLOUD = "☁️"
    RAIN = "🌧️"
    SNOW = "❄️"


# First match wins; anything unmatched is drawn as sun.
_ICON_KEYWORDS: tuple[tuple[tuple[str, ...], WeatherIcon], ...] = (
    (("rain", "shower"), WeatherIcon.RAIN),
    (("snow",), WeatherIcon.SNOW),
    (("cloud", "overcast"), WeatherIcon.CLOUD),
)


def weather_icon_for(condition: Optional[str]) -> WeatherIcon:
    """Pick an icon for a free-text condition such as "Light rain"."""
    text = (condition or "").lower()
    for keywords, icon in _ICON_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return icon
    return WeatherIcon.SUN


class WeatherSource(BaseModel):
    """A web page the weather answer was grounded on."""
    title: Optional[str] = None
    uri: str


class WeatherSnapshot(BaseModel):
    """
    One weather report.

    Temperatures are Celsius. `image_prompt` drives the illustration
    request; without it no image is generated.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    location: str = Field(..., min_length=1)
    current_temp: Union[int, float] = Field(..., alias="currentTemp")
    low_temp: Union[int, float] = Field(..., alias="lowTemp")
    high_temp: Union[int, float] = Field(..., alias="highTemp")
    condition: str = Field(default="")
    comment: str = Field(default="")
    image_prompt: Optional[str] = Field(default=None, alias="imagePrompt")
    news_link: Optional[str] = Field(default=None, alias="newsLink")
    sources: list[WeatherSource] = Field(default_factory=list)

    @property
    def icon(self) -> WeatherIcon:
        return weather_icon_for(self.condition)


FALLBACK_WEATHER = WeatherSnapshot(
    location="Busan",
    current_temp=0,
    low_temp=0,
    high_temp=0,
    condition="Cloudy",
    comment="날씨 정보를 불러올 수 없습니다.",
    image_prompt=None,
    sources=[],
)
