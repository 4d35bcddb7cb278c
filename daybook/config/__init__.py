"""Configuration package."""

from daybook.config.settings import (
    DashboardSettings,
    GeminiSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DashboardSettings",
    "GeminiSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
