"""Input models for trip planning requests."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from roadtrip.errors import InputError


class WaypointPolicy(str, Enum):
    """What happens to the day when a user waypoint is reached."""
    NEW_DAY = "new_day"
    CONTINUE = "continue"


class PlanningRequest(BaseModel):
    """Request model for planning a multi-day road trip."""

    origin: str = Field(..., min_length=1, description="Starting place")
    destination: str = Field(..., min_length=1, description="Final destination")
    waypoints: list[str] = Field(
        default_factory=list,
        description="Intermediate stops, visited in the given order"
    )
    max_daily_distance_km: float = Field(
        default=400.0,
        gt=0,
        description="Maximum distance driven in a single day"
    )
    start_date: date = Field(..., description="Date of the first driving day")
    return_date: date = Field(..., description="Requested return date")
    fuel_consumption_per_100km: float = Field(
        default=9.0,
        gt=0,
        description="Vehicle consumption in liters per 100 km"
    )
    fuel_price_per_liter: float = Field(
        default=1.75,
        gt=0,
        description="Fuel price per liter"
    )
    waypoint_policy: WaypointPolicy = Field(
        default=WaypointPolicy.NEW_DAY,
        description="Whether reaching a user waypoint ends the driving day"
    )

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "origin": "Madrid",
                "destination": "Lisboa",
                "waypoints": ["Salamanca"],
                "max_daily_distance_km": 400.0,
                "start_date": "2024-06-01",
                "return_date": "2024-06-06",
                "fuel_consumption_per_100km": 9.0,
                "fuel_price_per_liter": 1.75,
                "waypoint_policy": "new_day",
            }
        }

    @field_validator("origin", "destination")
    @classmethod
    def _strip_place(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("waypoints")
    @classmethod
    def _drop_blank_waypoints(cls, value: list[str]) -> list[str]:
        return [w.strip() for w in value if w and w.strip()]

    @model_validator(mode="after")
    def _check_dates(self) -> "PlanningRequest":
        if self.return_date < self.start_date:
            raise ValueError("return_date must not be before start_date")
        return self

    @property
    def stops(self) -> list[str]:
        """Origin, waypoints and destination in travel order."""
        return [self.origin, *self.waypoints, self.destination]


def build_request(**fields) -> PlanningRequest:
    """
    Build a PlanningRequest, reporting validation problems as InputError.

    The error message lists every invalid field so it can be shown to the
    user verbatim.
    """
    try:
        return PlanningRequest(**fields)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "request"
            problems.append(f"{location}: {err['msg']}")
        raise InputError("Invalid planning request: " + "; ".join(problems)) from e
