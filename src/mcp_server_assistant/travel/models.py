"""Trip requests and the plans built from them."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError, ValidationInfo, field_validator, model_validator

BudgetLevel = Literal["budget", "moderate", "luxury"]
ItemType = Literal["attraction", "hotel", "restaurant", "transport"]

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class TravelRequest(BaseModel):
    """A validated trip request.

    Accepts the camelCase wire names (``startDate``, ``budgetLevel``...) as
    well as the field names. Pass ``context={"max_days": n}`` to
    ``model_validate`` to cap the trip length.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    destination: str
    start_date: str = Field(alias="startDate", pattern=DATE_PATTERN)
    end_date: str = Field(alias="endDate", pattern=DATE_PATTERN)
    preferences: list[str] = Field(default_factory=list)
    budget_level: BudgetLevel = Field(default="moderate", alias="budgetLevel")
    budget_amount: Optional[StrictInt | StrictFloat] = Field(default=None, alias="budgetAmount")
    travelers: StrictInt = Field(ge=1)

    @field_validator("destination")
    @classmethod
    def _destination_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("destination must not be empty")
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def _real_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value

    @model_validator(mode="after")
    def _ordered_and_bounded(self, info: ValidationInfo) -> "TravelRequest":
        if self.start > self.end:
            raise ValueError("startDate must not be after endDate")
        max_days = (info.context or {}).get("max_days")
        if max_days and len(self.dates) > max_days:
            raise ValueError(f"trips are limited to {max_days} days")
        return self

    @property
    def start(self) -> date:
        return date.fromisoformat(self.start_date)

    @property
    def end(self) -> date:
        return date.fromisoformat(self.end_date)

    @property
    def dates(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]


def parse_travel_request(body: Any, max_days: int | None = None) -> TravelRequest:
    """Raises ``ValueError`` with a readable summary when ``body`` is not a valid request."""
    try:
        return TravelRequest.model_validate(body, context={"max_days": max_days})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}" for error in e.errors()
        )
        raise ValueError(f"Invalid request parameters - {problems}") from e


def day_of_week(day: str) -> str:
    return WEEKDAYS[date.fromisoformat(day).weekday()]


@dataclass
class ItineraryItem:
    id: str
    type: ItemType
    start_time: str
    end_time: str
    cost: float = 0
    name: str = ""
    note: str | None = None
    attraction: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "name": self.name,
            "cost": self.cost,
        }
        if self.note:
            data["note"] = self.note
        if self.attraction is not None:
            data["attraction"] = self.attraction
        return data


@dataclass
class ItineraryDay:
    date: str
    items: list[ItineraryItem] = field(default_factory=list)
    weather: dict[str, Any] | None = None

    @property
    def daily_cost(self) -> float:
        return sum(item.cost for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "dayOfWeek": day_of_week(self.date),
            "weather": self.weather,
            "items": [item.to_dict() for item in self.items],
            "dailyCost": self.daily_cost,
        }


@dataclass(frozen=True)
class BudgetBreakdown:
    attractions: float
    hotels: float
    meals: float
    transport: float
    others: float

    @property
    def total(self) -> float:
        return self.attractions + self.hotels + self.meals + self.transport + self.others

    def to_dict(self) -> dict[str, float]:
        return {
            "attractions": self.attractions,
            "hotels": self.hotels,
            "meals": self.meals,
            "transport": self.transport,
            "others": self.others,
            "total": self.total,
        }


@dataclass
class TravelPlan:
    id: str
    request: TravelRequest
    itinerary: list[ItineraryDay]
    hotels: list[dict[str, Any]]
    budget: BudgetBreakdown
    created_at: int
    used_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "destination": self.request.destination,
            "startDate": self.request.start_date,
            "endDate": self.request.end_date,
            "travelers": self.request.travelers,
            "itinerary": [day.to_dict() for day in self.itinerary],
            "hotels": self.hotels,
            "budget": self.budget.to_dict(),
            "createdAt": self.created_at,
        }
