"""Stop naming: turn coordinates and raw addresses into readable labels."""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Sequence

from roadtrip.models import Point
from roadtrip.providers.geocoding import AddressComponent, NameResolver

logger = logging.getLogger(__name__)

FALLBACK_LABEL = "Stop along the route"
TACTICAL_PREFIX = "Tactical stop: "

LOCALITY_TYPES = ("locality", "postal_town", "sublocality")
AREA_TYPES = ("administrative_area_level_2", "administrative_area_level_1")

_DIGITS = re.compile(r"\d+")
_POSTAL_CODE = re.compile(r"\b[A-Z]{0,2}-?\d{4,6}(?:-\d{3,4})?\b")
_SPACES = re.compile(r"\s{2,}")


@dataclass(frozen=True)
class NamedStop:
    """Result of a naming lookup."""
    label: str
    resolved: bool


def tactical_label(name: str) -> str:
    return f"{TACTICAL_PREFIX}{name}"


def _clean(name: str) -> str:
    return _SPACES.sub(" ", _DIGITS.sub("", name)).strip(" -")


def _pick(components: Sequence[AddressComponent], wanted: Sequence[str]) -> str | None:
    for kind in wanted:
        for component in components:
            if kind in component.types:
                name = _clean(component.name)
                if name:
                    return name
    return None


def name_from_address(address: str) -> str | None:
    """
    Extract the most specific readable place from a formatted address.

    "Calle Mayor 5, 28013 Madrid, Spain" -> "Madrid"
    """
    parts = [p.strip() for p in address.split(",") if p.strip()]
    if len(parts) > 1:
        # Last component is the country
        parts = parts[:-1]

    for part in reversed(parts):
        candidate = _SPACES.sub(" ", _POSTAL_CODE.sub("", part)).strip(" -")
        if len(candidate) > 2 and any(ch.isalpha() for ch in candidate):
            return candidate
    return None


class StopNamer:
    """Resolve place labels with a deterministic fallback; never raises."""

    def __init__(self, resolver: NameResolver, concurrency: int = 1) -> None:
        self.resolver = resolver
        self.concurrency = max(1, concurrency)

    async def lookup(self, point: Point) -> NamedStop:
        """Name a coordinate, reporting whether the fallback was used."""
        try:
            components = await self.resolver.reverse(point)
        except Exception as e:
            logger.warning(
                "Reverse geocoding failed for (%.5f, %.5f): %s",
                point.latitude, point.longitude, e,
            )
            return NamedStop(FALLBACK_LABEL, resolved=False)

        name = _pick(components, LOCALITY_TYPES) or _pick(components, AREA_TYPES)
        if not name:
            logger.warning(
                "No locality found for (%.5f, %.5f); using fallback label",
                point.latitude, point.longitude,
            )
            return NamedStop(FALLBACK_LABEL, resolved=False)
        return NamedStop(name, resolved=True)

    async def resolve(self, target: Point | str) -> str:
        """Return a non-empty label for a coordinate or an address string."""
        if isinstance(target, Point):
            return (await self.lookup(target)).label
        return name_from_address(target or "") or FALLBACK_LABEL

    async def resolve_cuts(self, points: Sequence[Point]) -> list[NamedStop]:
        """
        Name many points with bounded concurrency.

        Results are returned in the order of ``points`` regardless of the
        order in which the lookups complete.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(point: Point) -> NamedStop:
            async with semaphore:
                return await self.lookup(point)

        return list(await asyncio.gather(*(bounded(p) for p in points)))
