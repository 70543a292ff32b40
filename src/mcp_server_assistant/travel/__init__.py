"""Trip planning: concurrent attraction, weather and hotel lookups synthesized into an itinerary."""

from .models import BudgetBreakdown, ItineraryDay, ItineraryItem, TravelPlan, TravelRequest, parse_travel_request
from .planner import TravelPlanner, calculate_budget, default_itinerary

__all__ = [
    "BudgetBreakdown",
    "ItineraryDay",
    "ItineraryItem",
    "TravelPlan",
    "TravelPlanner",
    "TravelRequest",
    "calculate_budget",
    "default_itinerary",
    "parse_travel_request",
]
