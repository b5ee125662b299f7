"""Map links for visualizing a planned trip."""

from urllib.parse import urlencode

from roadtrip.models import TripSummary

GOOGLE_EMBED_DIRECTIONS_URL = "https://www.google.com/maps/embed/v1/directions"


def map_waypoints(summary: TripSummary, origin: str, destination: str) -> list[str]:
    """
    Intermediate stops in itinerary order: user waypoints and tactical stops.

    The origin and destination are passed separately to the map, so they
    are left out. Every tactical stop is kept, even when two share a
    fallback label; a user waypoint reached twice in a row is listed once.
    """
    tactical = {stop.label for stop in summary.tactical_stops}
    waypoints: list[str] = []
    for entry in summary.driving_days:
        stop = entry.to_label
        if stop in (origin, destination):
            continue
        if stop not in tactical and waypoints and waypoints[-1] == stop:
            continue
        waypoints.append(stop)
    return waypoints


def generate_map_url(
    api_key: str,
    origin: str,
    destination: str,
    waypoints: list[str],
) -> str:
    """Build a Google Maps embed URL showing the route through every stop."""
    params = {
        "key": api_key,
        "origin": origin,
        "destination": destination,
        "mode": "driving",
    }
    if waypoints:
        params["waypoints"] = "|".join(waypoints)
    return f"{GOOGLE_EMBED_DIRECTIONS_URL}?{urlencode(params)}"
