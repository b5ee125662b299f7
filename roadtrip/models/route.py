"""Route geometry as supplied by the routing provider."""

from pydantic import BaseModel, Field


class Point(BaseModel):
    """GPS coordinates."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    class Config:
        frozen = True

    @classmethod
    def from_tuple(cls, coords: tuple[float, float]) -> "Point":
        return cls(latitude=coords[0], longitude=coords[1])


class Segment(BaseModel):
    """An atomic, distance-bearing piece of a leg."""

    start: Point
    end: Point
    distance_m: float = Field(..., description="Segment length in meters")

    class Config:
        frozen = True


class Leg(BaseModel):
    """The part of a route between two consecutive user-specified stops."""

    segments: tuple[Segment, ...] = ()
    end_address: str = Field(
        default="",
        description="Provider-formatted address of the leg's end"
    )

    class Config:
        frozen = True

    @property
    def distance_m(self) -> float:
        return sum(s.distance_m for s in self.segments)


class Route(BaseModel):
    """Origin -> waypoints -> destination, one leg per hop."""

    legs: tuple[Leg, ...] = ()

    class Config:
        frozen = True

    @property
    def distance_m(self) -> float:
        return sum(leg.distance_m for leg in self.legs)
