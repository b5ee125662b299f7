"""Data models for trip planning."""

from .request import PlanningRequest, WaypointPolicy, build_request
from .route import Leg, Point, Route, Segment
from .response import DailyPlanEntry, TacticalStop, TripSummary

__all__ = [
    "PlanningRequest",
    "WaypointPolicy",
    "build_request",
    "Leg",
    "Point",
    "Route",
    "Segment",
    "DailyPlanEntry",
    "TacticalStop",
    "TripSummary",
]
