"""Trip planner: gathers attractions, weather and hotels concurrently, then writes an itinerary."""

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

from ..events import round_half_up
from ..exceptions import CompletionError
from ..react.parser import extract_json_object
from .models import BudgetBreakdown, ItineraryDay, ItineraryItem, TravelPlan, TravelRequest
from .prompts import ITINERARY_SYSTEM_PROMPT, get_itinerary_prompt

if TYPE_CHECKING:
    from ..llm import CompletionClient
    from ..tools import AttractionClient, HotelClient, WeatherClient

logger = logging.getLogger(__name__)

MEAL_COST = 80
HOTEL_NIGHT_COST = 300
TRANSPORT_DAY_COST = 100
ATTRACTIONS_PER_DAY = 3


def _new_id() -> str:
    return uuid.uuid4().hex


def calculate_budget(itinerary: list[ItineraryDay], hotels: list[dict[str, Any]], travelers: int) -> BudgetBreakdown:
    """Sum item costs by kind and estimate lodging, transport and a 10% margin.

    Nights are one fewer than the number of days.
    """
    attractions = sum(item.cost for day in itinerary for item in day.items if item.type == "attraction")
    meals = sum(item.cost for day in itinerary for item in day.items if item.type == "restaurant")
    nights = max(0, len(itinerary) - 1)
    hotel_cost = nights * (hotels[0]["pricePerNight"] if hotels else HOTEL_NIGHT_COST)
    transport = len(itinerary) * TRANSPORT_DAY_COST * travelers
    others = round_half_up((attractions + meals + hotel_cost + transport) * 0.1)
    return BudgetBreakdown(attractions=attractions, hotels=hotel_cost, meals=meals, transport=transport, others=others)


def _weather_for(day: str, weather: list[dict[str, Any]]) -> dict[str, Any] | None:
    return next((w for w in weather if w.get("date") == day), None)


def _lunch(travelers: int, name: str = "Local restaurant", cost: float = MEAL_COST) -> ItineraryItem:
    return ItineraryItem(id=_new_id(), type="restaurant", start_time="12:00", end_time="13:00", name=name, cost=cost * travelers)


def default_itinerary(
    request: TravelRequest,
    attractions: list[dict[str, Any]],
    weather: list[dict[str, Any]],
) -> list[ItineraryDay]:
    """Up to three attractions a day in list order, plus lunch."""
    days = []
    remaining = iter(attractions)
    for current in request.dates:
        day = current.isoformat()
        items = []
        for slot in range(ATTRACTIONS_PER_DAY):
            attraction = next(remaining, None)
            if attraction is None:
                break
            start = 9 + slot * 3
            items.append(
                ItineraryItem(
                    id=_new_id(),
                    type="attraction",
                    start_time=f"{start:02d}:00",
                    end_time=f"{start + 2:02d}:00",
                    name=attraction["name"],
                    attraction=attraction,
                )
            )
        items.append(_lunch(request.travelers))
        days.append(ItineraryDay(date=day, items=items, weather=_weather_for(day, weather)))
    return days


def itinerary_from_reply(
    parsed: dict[str, Any],
    request: TravelRequest,
    attractions: list[dict[str, Any]],
    weather: list[dict[str, Any]],
) -> list[ItineraryDay]:
    """Build itinerary days from the model's JSON.

    Days outside the trip and items of unknown type are dropped. Costs in
    the reply are per person. Raises ``ValueError`` when nothing usable is left.
    """
    trip_days = {d.isoformat() for d in request.dates}
    days = []
    for raw_day in parsed.get("days") or []:
        if not isinstance(raw_day, dict) or raw_day.get("date") not in trip_days:
            continue
        items = []
        for raw in raw_day.get("items") or []:
            if not isinstance(raw, dict) or raw.get("type") not in ("attraction", "hotel", "restaurant", "transport"):
                continue
            cost = raw.get("cost")
            cost = cost if isinstance(cost, (int, float)) and not isinstance(cost, bool) else None
            item = ItineraryItem(
                id=_new_id(),
                type=raw["type"],
                start_time=str(raw.get("startTime", "")),
                end_time=str(raw.get("endTime", "")),
                name=str(raw.get("name") or ""),
                note=raw.get("note") if isinstance(raw.get("note"), str) else None,
                cost=cost or 0,
            )
            if item.type == "attraction":
                index = raw.get("attractionIndex")
                if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(attractions):
                    item.attraction = attractions[index]
                    item.name = item.name or attractions[index]["name"]
                item.cost = (cost or 0) * request.travelers
            elif item.type == "restaurant":
                item.name = item.name or "Local restaurant"
                item.cost = (cost if cost is not None else MEAL_COST) * request.travelers
            items.append(item)
        days.append(ItineraryDay(date=raw_day["date"], items=items, weather=_weather_for(raw_day["date"], weather)))

    if not days:
        raise ValueError("no itinerary days within the trip dates")
    return sorted(days, key=lambda d: d.date)


class TravelPlanner:
    """Plans a trip in one pass.

    Usage:
        planner = TravelPlanner(client, WeatherClient(), AttractionClient(settings.search), HotelClient(settings.search))
        plan = await planner.plan(parse_travel_request(body))

    The three lookups run concurrently and a failed lookup contributes
    nothing. The model is called once; when the call fails or its reply
    cannot be used, a default itinerary is built from the attractions.
    """

    def __init__(
        self,
        client: "CompletionClient",
        weather: "WeatherClient",
        attractions: "AttractionClient",
        hotels: "HotelClient",
        attraction_limit: int = 15,
        hotel_limit: int = 5,
    ):
        self.client = client
        self.weather = weather
        self.attractions = attractions
        self.hotels = hotels
        self.attraction_limit = attraction_limit
        self.hotel_limit = hotel_limit

    async def _lookup(self, name: str, call: Awaitable[list[dict[str, Any]]]) -> list[dict[str, Any]]:
        try:
            return await call
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"{name} lookup failed, planning without it: {e!r}")
            return []

    async def plan(self, request: TravelRequest) -> TravelPlan:
        logger.info(f"Planning a {len(request.dates)}-day trip to {request.destination}")
        attractions, weather, hotels = await asyncio.gather(
            self._lookup(
                "Attraction",
                self.attractions.search_attractions(request.destination, request.preferences, self.attraction_limit),
            ),
            self._lookup("Weather", self.weather.daily_forecast(request.destination)),
            self._lookup("Hotel", self.hotels.search_hotels(request.destination, request.budget_level, self.hotel_limit)),
        )
        logger.info(f"Found {len(attractions)} attractions, {len(weather)} forecast days, {len(hotels)} hotels")

        used_fallback = False
        try:
            reply = await self.client.generate(get_itinerary_prompt(request, attractions, weather, hotels), ITINERARY_SYSTEM_PROMPT)
            parsed = extract_json_object(reply)
            if parsed is None:
                raise ValueError("reply holds no JSON object")
            itinerary = itinerary_from_reply(parsed, request, attractions, weather)
        except (CompletionError, ValueError) as e:
            logger.warning(f"Itinerary generation failed, using default itinerary: {e}")
            itinerary = default_itinerary(request, attractions, weather)
            used_fallback = True

        return TravelPlan(
            id=_new_id(),
            request=request,
            itinerary=itinerary,
            hotels=hotels,
            budget=calculate_budget(itinerary, hotels, request.travelers),
            created_at=int(time.time() * 1000),
            used_fallback=used_fallback,
        )
