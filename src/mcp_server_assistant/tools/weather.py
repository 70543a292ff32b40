"""Weather lookups through wttr.in."""

import logging
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

WTTR_URL = "https://wttr.in/{city}?format=j1"


def _description(entry: dict) -> str:
    descriptions = entry.get("weatherDesc") or [{}]
    return descriptions[0].get("value") or "unknown"


class WeatherClient:
    """Current conditions or a dated forecast (up to three days ahead) for a city.

    Failures come back as ``Error: ...`` text instead of exceptions.
    """

    def __init__(self, timeout: float = 15.0, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self._client = client

    async def _fetch(self, city: str) -> dict:
        url = WTTR_URL.format(city=quote(city))
        if self._client is not None:
            response = await self._client.get(url, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response.json()

    async def get_weather(self, city: str = "", date: str | None = None) -> str:
        if not city.strip():
            return "Error: a city name is required"

        try:
            data = await self._fetch(city)
        except httpx.HTTPError as e:
            logger.warning(f"Weather request for {city} failed: {e}")
            return f"Error: network problem while querying the weather - {e}"
        except ValueError as e:
            return f"Error: could not parse weather data, the city name may be invalid - {e}"

        try:
            if not date:
                current = data["current_condition"][0]
                return f"Current weather in {city}: {_description(current)}, {current['temp_C']}°C"

            forecasts = data.get("weather") or []
            forecast = next((day for day in forecasts if day.get("date") == date), None)
            if forecast is None:
                available = ", ".join(day.get("date", "") for day in forecasts) or "none"
                return f"Error: no forecast for {date}, available dates: {available}"

            hourly = forecast.get("hourly") or []
            noon = next((h for h in hourly if h.get("time") == "1200"), hourly[0] if hourly else {})
            return (
                f"Weather forecast for {city} on {date}: {_description(noon)}, "
                f"average {forecast['avgtempC']}°C, high {forecast['maxtempC']}°C, low {forecast['mintempC']}°C"
            )
        except (KeyError, IndexError, TypeError) as e:
            return f"Error: unexpected weather data format - {e}"

    async def daily_forecast(self, city: str) -> list[dict]:
        """Forecast days as ``{date, description, maxTemp, minTemp}``.

        Unlike ``get_weather`` this raises on failure: ``httpx.HTTPError``
        for network problems, ``ValueError``/``KeyError`` for bad data.
        """
        data = await self._fetch(city)
        days = []
        for day in data.get("weather") or []:
            hourly = day.get("hourly") or []
            noon = next((h for h in hourly if h.get("time") == "1200"), hourly[0] if hourly else {})
            days.append(
                {
                    "date": day["date"],
                    "description": _description(noon),
                    "maxTemp": int(day["maxtempC"]),
                    "minTemp": int(day["mintempC"]),
                }
            )
        return days
