"""Tests for trip request validation, itinerary synthesis and the concurrent lookups."""

import asyncio
import json

import pytest

from mcp_server_assistant.exceptions import CompletionError
from mcp_server_assistant.travel import TravelPlanner, calculate_budget, default_itinerary, parse_travel_request
from mcp_server_assistant.travel.models import ItineraryDay, ItineraryItem, day_of_week
from mcp_server_assistant.travel.planner import itinerary_from_reply
from mcp_server_assistant.travel.prompts import ITINERARY_SYSTEM_PROMPT

BODY = {
    "destination": "Lisbon",
    "startDate": "2026-10-20",
    "endDate": "2026-10-22",
    "preferences": ["history", "food"],
    "budgetLevel": "moderate",
    "travelers": 2,
}

ATTRACTIONS = [{"name": f"Sight {i}", "description": f"about {i}", "url": f"https://example.com/{i}"} for i in range(5)]
WEATHER = [{"date": "2026-10-20", "description": "Sunny", "maxTemp": 24, "minTemp": 15}]
HOTELS = [{"name": "Hotel Alfama", "description": "central", "url": "https://example.com/h", "pricePerNight": 550}]


class FakeLookups:
    """Stands in for the weather, attraction and hotel clients."""

    def __init__(self, attractions=ATTRACTIONS, weather=WEATHER, hotels=HOTELS, failing=()):
        self.results = {"attractions": attractions, "weather": weather, "hotels": hotels}
        self.failing = failing
        self.calls = {}

    async def _result(self, name, *args):
        self.calls[name] = args
        if name in self.failing:
            raise RuntimeError(f"{name} service down")
        return self.results[name]

    async def search_attractions(self, city, preferences, limit):
        return await self._result("attractions", city, preferences, limit)

    async def daily_forecast(self, city):
        return await self._result("weather", city)

    async def search_hotels(self, city, budget_level, limit):
        return await self._result("hotels", city, budget_level, limit)


def planner_for(client, lookups=None):
    lookups = lookups or FakeLookups()
    return TravelPlanner(client, lookups, lookups, lookups, attraction_limit=10, hotel_limit=3)


def reply(days):
    return json.dumps({"days": days})


class TestParseTravelRequest:
    def test_valid_request(self):
        request = parse_travel_request(BODY)

        assert request.destination == "Lisbon"
        assert request.budget_level == "moderate"
        assert [d.isoformat() for d in request.dates] == ["2026-10-20", "2026-10-21", "2026-10-22"]

    def test_field_names_accepted(self):
        request = parse_travel_request({"destination": "Oslo", "start_date": "2026-01-01", "end_date": "2026-01-01", "travelers": 1})
        assert request.budget_level == "moderate"
        assert request.preferences == []

    @pytest.mark.parametrize(
        "changes",
        [
            {"startDate": "20-10-2026"},
            {"endDate": "2026-02-30"},
            {"startDate": "2026-10-23"},
            {"travelers": "2"},
            {"travelers": 2.5},
            {"travelers": True},
            {"travelers": 0},
            {"budgetLevel": "platinum"},
            {"preferences": "history"},
            {"destination": "  "},
            {"destination": 42},
        ],
    )
    def test_invalid_requests(self, changes):
        with pytest.raises(ValueError, match="Invalid request parameters"):
            parse_travel_request({**BODY, **changes})

    @pytest.mark.parametrize("body", [None, [], "Lisbon", {}])
    def test_not_a_request(self, body):
        with pytest.raises(ValueError):
            parse_travel_request(body)

    def test_trip_length_limit(self):
        with pytest.raises(ValueError, match="limited to 2 days"):
            parse_travel_request(BODY, max_days=2)
        assert parse_travel_request(BODY, max_days=3).travelers == 2

    def test_day_of_week(self):
        assert day_of_week("2026-10-19") == "Monday"


class TestItinerary:
    def test_default_itinerary(self):
        request = parse_travel_request(BODY)
        days = default_itinerary(request, ATTRACTIONS, WEATHER)

        assert [d.date for d in days] == ["2026-10-20", "2026-10-21", "2026-10-22"]
        assert [i.name for i in days[0].items] == ["Sight 0", "Sight 1", "Sight 2", "Local restaurant"]
        assert [i.start_time for i in days[0].items[:3]] == ["09:00", "12:00", "15:00"]
        assert [i.name for i in days[1].items] == ["Sight 3", "Sight 4", "Local restaurant"]
        assert [i.type for i in days[2].items] == ["restaurant"]
        assert days[0].weather == WEATHER[0]
        assert days[1].weather is None
        assert days[2].daily_cost == 160

    def test_reply_costs_are_per_person(self):
        request = parse_travel_request(BODY)
        parsed = {
            "days": [
                {
                    "date": "2026-10-20",
                    "items": [
                        {"type": "attraction", "attractionIndex": 1, "startTime": "09:00", "endTime": "11:00", "cost": 15, "note": "go early"},
                        {"type": "restaurant", "name": "Taberna", "startTime": "12:00", "endTime": "13:00", "cost": 30},
                        {"type": "restaurant", "startTime": "19:00", "endTime": "20:00"},
                    ],
                }
            ]
        }
        (day,) = itinerary_from_reply(parsed, request, ATTRACTIONS, WEATHER)

        sight, lunch, dinner = day.items
        assert sight.attraction == ATTRACTIONS[1]
        assert sight.name == "Sight 1"
        assert sight.cost == 30
        assert sight.note == "go early"
        assert lunch.cost == 60
        assert dinner.name == "Local restaurant"
        assert dinner.cost == 160
        assert day.to_dict()["dayOfWeek"] == "Tuesday"

    def test_reply_drops_unknown_items_and_days(self):
        request = parse_travel_request(BODY)
        parsed = {
            "days": [
                {"date": "2026-10-22", "items": [{"type": "spa", "startTime": "10:00"}, {"type": "attraction", "attractionIndex": 99}]},
                {"date": "2030-01-01", "items": []},
                "not a day",
            ]
        }
        (day,) = itinerary_from_reply(parsed, request, ATTRACTIONS, WEATHER)

        assert day.date == "2026-10-22"
        assert len(day.items) == 1
        assert day.items[0].attraction is None

    def test_reply_without_trip_days(self):
        with pytest.raises(ValueError):
            itinerary_from_reply({"days": []}, parse_travel_request(BODY), ATTRACTIONS, WEATHER)


class TestBudget:
    def test_breakdown(self):
        itinerary = [
            ItineraryDay("2026-10-20", [ItineraryItem("a", "attraction", "09:00", "11:00", cost=40), ItineraryItem("b", "restaurant", "12:00", "13:00", cost=160)]),
            ItineraryDay("2026-10-21", [ItineraryItem("c", "restaurant", "12:00", "13:00", cost=160)]),
        ]
        budget = calculate_budget(itinerary, HOTELS, travelers=2)

        assert budget.attractions == 40
        assert budget.meals == 320
        assert budget.hotels == 550
        assert budget.transport == 400
        assert budget.others == 131
        assert budget.to_dict()["total"] == 1441

    def test_default_nightly_price_without_hotels(self):
        itinerary = [ItineraryDay("2026-10-20"), ItineraryDay("2026-10-21"), ItineraryDay("2026-10-22")]
        assert calculate_budget(itinerary, [], travelers=1).hotels == 600

    def test_single_day_has_no_nights(self):
        assert calculate_budget([ItineraryDay("2026-10-20")], HOTELS, travelers=1).hotels == 0


class TestTravelPlanner:
    @pytest.mark.anyio
    async def test_plan_from_model_reply(self, scripted_client):
        client = scripted_client(
            [
                "Here you go:\n"
                + reply(
                    [
                        {"date": "2026-10-21", "items": [{"type": "attraction", "attractionIndex": 0, "startTime": "10:00", "endTime": "12:00"}]},
                        {"date": "2026-10-20", "items": [{"type": "restaurant", "name": "Taberna", "startTime": "12:00", "endTime": "13:00", "cost": 25}]},
                    ]
                )
            ]
        )
        lookups = FakeLookups()
        plan = await planner_for(client, lookups).plan(parse_travel_request(BODY))

        assert not plan.used_fallback
        assert [d.date for d in plan.itinerary] == ["2026-10-20", "2026-10-21"]
        assert plan.hotels == HOTELS

        prompt, system_prompt = client.calls[0]
        assert system_prompt == ITINERARY_SYSTEM_PROMPT
        assert "0. Sight 0 - about 0" in prompt
        assert "2026-10-20: Sunny, 15~24°C" in prompt
        assert "Suggested hotel: Hotel Alfama, 550 per night" in prompt
        assert lookups.calls == {
            "attractions": ("Lisbon", ["history", "food"], 10),
            "weather": ("Lisbon",),
            "hotels": ("Lisbon", "moderate", 3),
        }

        data = plan.to_dict()
        assert data["destination"] == "Lisbon"
        assert data["travelers"] == 2
        assert data["budget"]["meals"] == 50
        assert len(client.calls) == 1

    @pytest.mark.anyio
    async def test_lookups_run_concurrently(self, scripted_client):
        started = []
        all_started = asyncio.Event()

        class GatedLookups(FakeLookups):
            async def _result(self, name, *args):
                started.append(name)
                if len(started) == 3:
                    all_started.set()
                await all_started.wait()
                return await super()._result(name, *args)

        planner = planner_for(scripted_client([reply([])]), GatedLookups())
        plan = await asyncio.wait_for(planner.plan(parse_travel_request(BODY)), timeout=2)

        assert sorted(started) == ["attractions", "hotels", "weather"]
        assert plan.used_fallback

    @pytest.mark.anyio
    async def test_completion_error_uses_default_itinerary(self, scripted_client):
        client = scripted_client([CompletionError("model offline")])
        plan = await planner_for(client).plan(parse_travel_request(BODY))

        assert plan.used_fallback
        assert len(plan.itinerary) == 3
        assert plan.itinerary[0].items[0].name == "Sight 0"

    @pytest.mark.anyio
    async def test_unparseable_reply_uses_default_itinerary(self, scripted_client):
        plan = await planner_for(scripted_client(["I'd love to help with your trip!"])).plan(parse_travel_request(BODY))
        assert plan.used_fallback

    @pytest.mark.anyio
    async def test_failed_lookups_plan_without_them(self, scripted_client):
        lookups = FakeLookups(failing=("attractions", "hotels"))
        plan = await planner_for(scripted_client([CompletionError("down")]), lookups).plan(parse_travel_request(BODY))

        assert plan.hotels == []
        assert [[i.type for i in d.items] for d in plan.itinerary] == [["restaurant"]] * 3
        assert plan.itinerary[0].weather == WEATHER[0]
        assert plan.budget.hotels == 600


def test_build_travel_planner_uses_settings(scripted_client):
    from mcp_server_assistant.config import AppSettings
    from mcp_server_assistant.pipelines import build_travel_planner

    settings = AppSettings()
    settings.travel.attraction_limit = 8
    planner = build_travel_planner(settings, client=scripted_client([]))

    assert planner.attraction_limit == 8
    assert planner.hotel_limit == settings.travel.hotel_limit
    assert planner.weather.timeout == settings.travel.timeout
