"""Route ingestion: flatten a provider route into ordered segments."""

from dataclasses import dataclass

from roadtrip.errors import MalformedRouteError
from roadtrip.models import Route, Segment


@dataclass(frozen=True)
class IngestedSegment:
    """A segment tagged with the index of the leg it belongs to."""
    leg_index: int
    segment: Segment


def ingest(route: Route) -> list[IngestedSegment]:
    """
    Flatten every leg's segments, keeping leg and segment order.

    Raises:
        MalformedRouteError: If the route has no legs, a leg has no
            segments, or a segment has a non-positive distance.
    """
    if not route.legs:
        raise MalformedRouteError("Route has no legs")

    flattened = []
    for leg_index, leg in enumerate(route.legs):
        if not leg.segments:
            raise MalformedRouteError(f"Leg {leg_index + 1} has no segments")
        for position, segment in enumerate(leg.segments):
            if not segment.distance_m > 0:
                raise MalformedRouteError(
                    f"Leg {leg_index + 1}, segment {position + 1} has non-positive "
                    f"distance ({segment.distance_m} m)"
                )
            flattened.append(IngestedSegment(leg_index, segment))
    return flattened
