"""Reverse-geocoding providers used to name tactical stops."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from roadtrip.config import Settings
from roadtrip.errors import ProviderError
from roadtrip.models import Point

logger = logging.getLogger(__name__)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# Nominatim address keys, most specific first, mapped to Google-style types
NOMINATIM_TYPES = {
    "city": "locality",
    "town": "locality",
    "village": "locality",
    "hamlet": "locality",
    "suburb": "sublocality",
    "county": "administrative_area_level_2",
    "state": "administrative_area_level_1",
}


@dataclass(frozen=True)
class AddressComponent:
    """One named piece of an address, tagged by granularity."""
    name: str
    types: tuple[str, ...]


class NameResolver(Protocol):
    """Reverse geocoder: coordinate -> ordered address components."""

    async def reverse(self, point: Point) -> list[AddressComponent]:
        ...


class _HttpResolver:
    """Shared client handling for the HTTP-backed resolvers."""

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get_json(self, url: str, params: dict[str, Any], headers: dict[str, str] | None = None) -> Any:
        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Reverse geocoding request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("Reverse geocoding returned invalid JSON") from e


class GoogleReverseGeocoder(_HttpResolver):
    """Reverse geocoding through the Google Geocoding API."""

    def __init__(self, api_key: str | None, timeout: float = 30.0, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(timeout, client)
        self.api_key = api_key

    async def reverse(self, point: Point) -> list[AddressComponent]:
        if not self.api_key:
            raise ProviderError("Google Maps API key is not configured (GOOGLE_MAPS_API_KEY)")

        data = await self._get_json(
            GOOGLE_GEOCODE_URL,
            {"latlng": f"{point.latitude},{point.longitude}", "key": self.api_key},
        )
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise ProviderError(f"Reverse geocoding error: {data.get('error_message') or status}")

        results = data.get("results") or []
        if not results:
            return []

        return [
            AddressComponent(name=c.get("long_name", ""), types=tuple(c.get("types", [])))
            for c in results[0].get("address_components", [])
        ]


class NominatimReverseGeocoder(_HttpResolver):
    """
    Reverse geocoding through Nominatim (OpenStreetMap).

    No API key required, but the public instance asks for a descriptive
    User-Agent and at most one request per second.
    """

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout, client)
        self.base_url = base_url.rstrip("/")

    async def reverse(self, point: Point) -> list[AddressComponent]:
        data = await self._get_json(
            f"{self.base_url}/reverse",
            {
                "lat": point.latitude,
                "lon": point.longitude,
                "format": "json",
                "zoom": 10,
            },
            headers={"User-Agent": "RoadTrip-Itinerary-Planner/1.0"},
        )
        if "error" in data:
            return []

        address = data.get("address", {})
        return [
            AddressComponent(name=address[key], types=(kind,))
            for key, kind in NOMINATIM_TYPES.items()
            if address.get(key)
        ]


def create_name_resolver(config: Settings) -> NameResolver:
    """Pick the reverse geocoder named in the settings."""
    if config.geocoder == "nominatim":
        return NominatimReverseGeocoder(config.nominatim_url, timeout=config.http_timeout_s)
    return GoogleReverseGeocoder(config.google_maps_api_key, timeout=config.http_timeout_s)
