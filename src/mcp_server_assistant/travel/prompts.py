"""Prompt templates for the itinerary writer."""

from typing import Any

from .models import TravelRequest

ITINERARY_SYSTEM_PROMPT = """You are an experienced travel planner. Using the traveler's request, the candidate attractions, the weather forecast and the hotel options, write a detailed day-by-day itinerary.

Reply with JSON only, in exactly this shape:
{
  "days": [
    {
      "date": "YYYY-MM-DD",
      "items": [
        {"type": "attraction", "attractionIndex": 0, "startTime": "09:00", "endTime": "11:00", "cost": 20, "note": "tips for the visit"},
        {"type": "restaurant", "name": "Restaurant name", "startTime": "12:00", "endTime": "13:00", "cost": 100}
      ]
    }
  ]
}

Rules:
1. attractionIndex is the position of the attraction in the numbered list, starting at 0
2. cost is per person; plan 2-3 attractions a day with sensible meal times
3. Take the weather into account: prefer indoor sights on rainy days
4. Leave time for travel and rest between items
5. Output the JSON object and nothing else"""


def get_itinerary_prompt(
    request: TravelRequest,
    attractions: list[dict[str, Any]],
    weather: list[dict[str, Any]],
    hotels: list[dict[str, Any]],
) -> str:
    attraction_list = "\n".join(f"{i}. {a['name']} - {a['description']}" for i, a in enumerate(attractions)) or "No attraction data available"
    weather_list = "\n".join(f"{w['date']}: {w['description']}, {w['minTemp']}~{w['maxTemp']}°C" for w in weather) or "No forecast available"
    hotel_info = f"Suggested hotel: {hotels[0]['name']}, {hotels[0]['pricePerNight']} per night" if hotels else "No hotel suggestion"

    return f"""Plan a detailed itinerary for this trip:

## Trip
- Destination: {request.destination}
- Dates: {request.start_date} to {request.end_date}
- Travelers: {request.travelers}
- Interests: {', '.join(request.preferences) or 'general sightseeing'}
- Budget level: {request.budget_level}

## Candidate attractions
{attraction_list}

## Weather forecast
{weather_list}

## Accommodation
{hotel_info}

Write the daily itinerary as JSON:"""
