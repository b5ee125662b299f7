"""Output models for trip planning responses."""

import datetime

from pydantic import BaseModel, Field

from .route import Point


class DailyPlanEntry(BaseModel):
    """A single day (or part of a day) of the itinerary."""

    day: int = Field(..., ge=1)
    date: datetime.date
    from_label: str = Field(..., alias="from")
    to_label: str = Field(..., alias="to")
    distance_km: float = Field(..., ge=0)
    is_driving: bool
    warning: str | None = None

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "day": 1,
                "date": "2024-06-01",
                "from": "Madrid",
                "to": "Tactical stop: Mérida",
                "distance_km": 400.0,
                "is_driving": True,
                "warning": None,
            }
        }


class TacticalStop(BaseModel):
    """An overnight stop inserted because the daily cap was reached."""

    day: int = Field(..., ge=1, description="Day that ends at this stop")
    label: str
    point: Point
    resolved: bool = Field(
        default=True,
        description="False when the place name fell back to the generic label"
    )

    class Config:
        frozen = True


class TripSummary(BaseModel):
    """Complete trip planning output."""

    total_days: int | None = Field(default=None, ge=0)
    distance_km: float | None = Field(default=None, ge=0)
    fuel_liters: float | None = Field(default=None, ge=0)
    total_cost: float | None = Field(default=None, ge=0)
    daily_itinerary: list[DailyPlanEntry] = Field(default_factory=list)
    tactical_stops: list[TacticalStop] = Field(default_factory=list)
    map_url: str | None = None
    error: str | None = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "total_days": 6,
                "distance_km": 950.0,
                "fuel_liters": 85.5,
                "total_cost": 149.625,
                "daily_itinerary": [],
                "tactical_stops": [],
                "map_url": None,
                "error": None,
            }
        }

    @classmethod
    def failed(cls, message: str) -> "TripSummary":
        """A terminal result: only the error is populated."""
        return cls(error=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def driving_days(self) -> list[DailyPlanEntry]:
        return [entry for entry in self.daily_itinerary if entry.is_driving]

    @property
    def stay_days(self) -> list[DailyPlanEntry]:
        return [entry for entry in self.daily_itinerary if not entry.is_driving]
