"""AI Agents package."""

from daybook.agents.ai_agents import (
    AgentError,
    ImageAgent,
    SpendingAgent,
    WeatherAgent,
    WeatherParseError,
    extract_json_object,
)

__all__ = [
    "AgentError",
    "ImageAgent",
    "SpendingAgent",
    "WeatherAgent",
    "WeatherParseError",
    "extract_json_object",
]
