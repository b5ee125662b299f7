"""GPX file generation utilities."""

from datetime import datetime, timezone
from pathlib import Path

import gpxpy
import gpxpy.gpx

from roadtrip.models import TripSummary


def create_gpx_from_trip(summary: TripSummary, name: str | None = None) -> str:
    """
    Create a GPX file marking the overnight stops of a planned trip.

    Each tactical stop becomes a waypoint named after its label, with the
    day it ends and that day's date in the description.

    Args:
        summary: A successful trip summary
        name: Optional name for the GPX document

    Returns:
        GPX XML string
    """
    gpx = gpxpy.gpx.GPX()
    gpx.name = name or "Road trip"
    gpx.description = (
        f"Total distance: {summary.distance_km or 0:.0f} km over {summary.total_days or 0} days"
    )
    gpx.creator = "Road Trip Itinerary Planner"
    gpx.time = datetime.now(timezone.utc)

    dates = {entry.day: entry.date for entry in summary.daily_itinerary}

    for stop in summary.tactical_stops:
        waypoint = gpxpy.gpx.GPXWaypoint(
            latitude=stop.point.latitude,
            longitude=stop.point.longitude,
        )
        waypoint.name = stop.label
        day_date = dates.get(stop.day)
        waypoint.description = f"End of day {stop.day}" + (
            f" ({day_date.isoformat()})" if day_date else ""
        )
        waypoint.symbol = "Lodging"
        waypoint.type = "Tactical stop"
        gpx.waypoints.append(waypoint)

    return gpx.to_xml()


def save_gpx_file(gpx_content: str, filepath: str | Path) -> None:
    """Save GPX content to a file."""
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(gpx_content)
