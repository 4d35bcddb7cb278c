"""
Data Models Package

This package contains all Pydantic models used in Daybook.
All data flowing through the dashboard must conform to these schemas.
"""

from daybook.models.ledger import (
    CATEGORY_INFO,
    LEDGER_ADAPTER,
    Category,
    CategoryInfo,
    Transaction,
    TransactionRecord,
    format_amount,
    normalize_amount_input,
    parse_amount,
)
from daybook.models.weather import (
    FALLBACK_WEATHER,
    LoadingState,
    WeatherIcon,
    WeatherSnapshot,
    WeatherSource,
    weather_icon_for,
)
from daybook.models.audit import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "CATEGORY_INFO",
    "LEDGER_ADAPTER",
    "Category",
    "CategoryInfo",
    "Transaction",
    "TransactionRecord",
    "format_amount",
    "normalize_amount_input",
    "parse_amount",
    # Weather models
    "FALLBACK_WEATHER",
    "LoadingState",
    "WeatherIcon",
    "WeatherSnapshot",
    "WeatherSource",
    "weather_icon_for",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
