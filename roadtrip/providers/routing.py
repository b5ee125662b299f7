"""Routing provider: driving directions from the Google Directions API."""

import logging
from typing import Any, Protocol, Sequence

import httpx

from roadtrip.errors import ProviderError
from roadtrip.models import Leg, Point, Route, Segment
from roadtrip.utils.geo import decode_polyline, haversine_distance

logger = logging.getLogger(__name__)

GOOGLE_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"


class RoutingProvider(Protocol):
    """Anything that can turn an ordered list of stops into a Route."""

    async def get_route(
        self,
        origin: str,
        destination: str,
        waypoints: Sequence[str] = (),
    ) -> Route:
        ...


def _location(raw: dict[str, Any]) -> Point:
    return Point(latitude=float(raw["lat"]), longitude=float(raw["lng"]))


def _step_segments(step: dict[str, Any], use_step_geometry: bool) -> list[Segment]:
    """Turn one Directions step into one or more segments."""
    start = _location(step["start_location"])
    end = _location(step["end_location"])
    encoded = (step.get("polyline") or {}).get("points")

    if not use_step_geometry or not encoded:
        return [Segment(start=start, end=end, distance_m=float(step["distance"]["value"]))]

    points = [Point.from_tuple(p) for p in decode_polyline(encoded)]
    segments = []
    for a, b in zip(points, points[1:]):
        meters = haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude) * 1000
        # Repeated vertices carry no distance
        if meters > 0:
            segments.append(Segment(start=a, end=b, distance_m=meters))
    return segments


def parse_directions(payload: dict[str, Any], use_step_geometry: bool = False) -> Route:
    """
    Convert a Directions API response into a Route.

    Args:
        payload: Decoded JSON body of the Directions response
        use_step_geometry: Split each step along its polyline instead of
            treating the whole step as one segment

    Raises:
        ProviderError: If the response status is not OK, it has no routes,
            or it is not shaped like a Directions response
    """
    if not isinstance(payload, dict):
        raise ProviderError("Routing provider returned an unexpected response")

    status = payload.get("status", "UNKNOWN_ERROR")
    if status != "OK":
        detail = payload.get("error_message") or status
        raise ProviderError(
            f"Routing provider error: {detail}. Check that every place name is correct."
        )

    routes = payload.get("routes") or []
    if not routes:
        raise ProviderError("Routing provider returned no route")

    legs = []
    try:
        for raw_leg in routes[0].get("legs", []):
            segments: list[Segment] = []
            for step in raw_leg.get("steps", []):
                segments.extend(_step_segments(step, use_step_geometry))
            legs.append(Leg(segments=tuple(segments), end_address=raw_leg.get("end_address", "")))
    except (AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
        raise ProviderError(f"Routing provider returned an unexpected response: {e}") from e

    return Route(legs=tuple(legs))


class GoogleDirectionsProvider:
    """Fetch driving routes from the Google Directions API."""

    def __init__(
        self,
        api_key: str | None,
        timeout: float = 30.0,
        use_step_geometry: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.use_step_geometry = use_step_geometry
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GoogleDirectionsProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def get_route(
        self,
        origin: str,
        destination: str,
        waypoints: Sequence[str] = (),
    ) -> Route:
        """
        Calculate a driving route through the given stops.

        Waypoints are visited in the given order; the provider is never
        asked to optimize them.
        """
        if not self.api_key:
            raise ProviderError("Google Maps API key is not configured (GOOGLE_MAPS_API_KEY)")

        params = {
            "origin": origin,
            "destination": destination,
            "mode": "driving",
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(waypoints)

        logger.info("Requesting route %s -> %s via %d waypoint(s)", origin, destination, len(waypoints))
        try:
            response = await self._client.get(GOOGLE_DIRECTIONS_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Routing provider request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("Routing provider returned invalid JSON") from e

        route = parse_directions(payload, self.use_step_geometry)
        logger.debug("Route has %d leg(s), %.1f km", len(route.legs), route.distance_m / 1000)
        return route
