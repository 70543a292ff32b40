"""Tools available to the travel agent."""

from typing import TYPE_CHECKING

import httpx

from .attractions import AttractionClient
from .hotels import HotelClient
from .registry import Tool, ToolRegistry
from .weather import WeatherClient

if TYPE_CHECKING:
    from ..config import AppSettings


def build_travel_tools(settings: "AppSettings", client: httpx.AsyncClient | None = None) -> ToolRegistry:
    """Registry with ``get_weather`` and ``get_attraction``."""
    timeout = settings.agent.tool_timeout
    weather = WeatherClient(timeout=timeout, client=client)
    attractions = AttractionClient(settings.search, timeout=timeout, client=client)

    registry = ToolRegistry()
    registry.register(
        "get_weather",
        weather.get_weather,
        signature="city: str, date?: str",
        description=(
            "Weather for a city. `date` is optional, formatted YYYY-MM-DD; "
            "omit it for current conditions, pass it for a forecast up to 3 days ahead."
        ),
    )
    registry.register(
        "get_attraction",
        attractions.get_attraction,
        signature="city: str, weather: str",
        description="Recommended tourist attractions for a city under the given weather.",
    )
    return registry


__all__ = [
    "AttractionClient",
    "HotelClient",
    "Tool",
    "ToolRegistry",
    "WeatherClient",
    "build_travel_tools",
]
