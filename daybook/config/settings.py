"""
Configuration Management for Daybook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Timers, storage location and model names are read once, validated,
and handed to the components that need them.
"""

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    text_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for weather lookups and spending comments"
    )
    image_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Model used to draw the weather illustration"
    )
    location: str = Field(
        default="Busan",
        description="City the weather card reports on"
    )
    location_query: str = Field(
        default="Busan, South Korea (부산)",
        description="How the city is named in the search prompt"
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Upper bound for a single Gemini request"
    )


class DashboardSettings(BaseSettings):
    """
    Dashboard behaviour settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DAYBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Clock
    timezone: str = Field(
        default="Asia/Seoul",
        description="Named timezone for the clock and for ledger day boundaries"
    )
    clock_tick_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Clock refresh interval"
    )

    # Weather
    weather_poll_minutes: float = Field(
        default=30.0,
        gt=0,
        description="Interval between weather fetches"
    )

    # Ledger
    data_path: Path = Field(
        default=Path.home() / ".daybook" / "storage.json",
        description="JSON file backing the local key-value store"
    )
    ledger_key: str = Field(
        default="gemini_weather_ledger",
        min_length=1,
        description="Key under which the ledger is stored"
    )
    max_amount: int = Field(
        default=1_000_000_000,
        gt=0,
        description="Largest amount accepted for a single transaction"
    )
    commentary_debounce_ms: int = Field(
        default=800,
        ge=0,
        description="Quiet period before a spending comment is requested"
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def zone(self) -> ZoneInfo:
        """Get the configured timezone as a tzinfo."""
        return ZoneInfo(self.timezone)

    @property
    def weather_poll_seconds(self) -> float:
        """Get the weather poll interval in seconds."""
        return self.weather_poll_minutes * 60

    @property
    def commentary_debounce_seconds(self) -> float:
        """Get the commentary quiet period in seconds."""
        return self.commentary_debounce_ms / 1000


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily so the dashboard can start
    # without a Gemini key and show its fallbacks instead.

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def dashboard(self) -> DashboardSettings:
        return DashboardSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name_error: message} for every section that failed.
    Useful for startup checks.
    """
    results: dict[str, bool | str] = {}

    settings = get_settings()

    try:
        _ = settings.gemini
        results["gemini"] = True
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.dashboard
        results["dashboard"] = True
    except Exception as e:
        results["dashboard"] = False
        results["dashboard_error"] = str(e)

    return results
