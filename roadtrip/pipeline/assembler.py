"""Itinerary assembly: route -> dated daily plan -> trip summary.

Pipeline steps:
1. Fetch the route from the routing provider
2. Ingest it into ordered segments
3. Split it into day stages (pure, no I/O)
4. Name the tactical stops (I/O-bound, order preserving)
5. Bind names and dates, append stay days
6. Estimate fuel and cost
"""

import asyncio
import logging
from datetime import timedelta

from roadtrip.config import Settings, settings
from roadtrip.errors import MalformedRouteError, PlanningError
from roadtrip.models import DailyPlanEntry, PlanningRequest, Route, TacticalStop, TripSummary
from roadtrip.providers.geocoding import create_name_resolver
from roadtrip.providers.routing import GoogleDirectionsProvider, RoutingProvider
from roadtrip.utils.maps import generate_map_url, map_waypoints

from .costs import estimate
from .ingest import ingest
from .naming import NamedStop, StopNamer, name_from_address, tactical_label
from .scheduling import assign_dates, compute_stay_days, stay_entries
from .segmentation import CutPoint, SegmentationEngine, Stage, StopRef

logger = logging.getLogger(__name__)

UNRESOLVED_WARNING = "Could not resolve a place name for this tactical stop"


class ItineraryAssembler:
    """
    Plan a trip end to end.

    Each call builds its own state, so one assembler can serve several
    requests concurrently.
    """

    def __init__(
        self,
        routing: RoutingProvider,
        namer: StopNamer,
        map_api_key: str | None = None,
    ):
        self.routing = routing
        self.namer = namer
        self.map_api_key = map_api_key

    async def plan(self, request: PlanningRequest, timeout: float | None = None) -> TripSummary:
        """
        Fetch the route and assemble the trip.

        Args:
            request: A validated planning request
            timeout: Optional deadline in seconds for the whole assembly

        Returns:
            TripSummary with either the itinerary or a terminal error
        """
        try:
            if timeout is None:
                return await self._plan(request)
            return await asyncio.wait_for(self._plan(request), timeout)
        except asyncio.TimeoutError:
            logger.warning("Planning %s -> %s timed out after %ss", request.origin, request.destination, timeout)
            return TripSummary.failed(f"Trip planning timed out after {timeout:g} seconds")

    async def _plan(self, request: PlanningRequest) -> TripSummary:
        try:
            route = await self.routing.get_route(request.origin, request.destination, request.waypoints)
        except PlanningError as e:
            logger.warning("Routing failed: %s", e)
            return TripSummary.failed(str(e))
        return await self.assemble(request, route)

    async def assemble(self, request: PlanningRequest, route: Route) -> TripSummary:
        """Assemble the trip for an already fetched route."""
        try:
            return await self._assemble(request, route)
        except PlanningError as e:
            logger.warning("Trip assembly failed: %s", e)
            return TripSummary.failed(str(e))

    async def _assemble(self, request: PlanningRequest, route: Route) -> TripSummary:
        segments = ingest(route)
        if len(route.legs) != len(request.waypoints) + 1:
            raise MalformedRouteError(
                f"Route has {len(route.legs)} leg(s) but the request has "
                f"{len(request.waypoints)} waypoint(s)"
            )

        labels = self._stop_labels(request, route)
        engine = SegmentationEngine(request.max_daily_distance_km, request.waypoint_policy)
        plan = engine.split(segments, labels)

        names = await self.namer.resolve_cuts([cut.point for cut in plan.cuts])
        dates = assign_dates(plan.day_count, request.start_date)

        itinerary = [self._driving_entry(stage, names, dates) for stage in plan.stages]
        tactical_stops = [
            TacticalStop(
                day=stage.day,
                label=tactical_label(names[stage.target.index].label),
                point=stage.target.point,
                resolved=names[stage.target.index].resolved,
            )
            for stage in plan.stages
            if isinstance(stage.target, CutPoint)
        ]

        arrival = dates[-1]
        stays = compute_stay_days(arrival, request.return_date)
        itinerary.extend(
            stay_entries(request.destination, plan.day_count + 1, arrival + timedelta(days=1), stays)
        )

        distance_km = route.distance_m / 1000
        fuel = estimate(distance_km, request.fuel_consumption_per_100km, request.fuel_price_per_liter)

        summary = TripSummary(
            total_days=plan.day_count + stays,
            distance_km=distance_km,
            fuel_liters=fuel.fuel_liters,
            total_cost=fuel.total_cost,
            daily_itinerary=itinerary,
            tactical_stops=tactical_stops,
        )
        if self.map_api_key:
            url = generate_map_url(
                self.map_api_key,
                request.origin,
                request.destination,
                map_waypoints(summary, request.origin, request.destination),
            )
            summary = summary.model_copy(update={"map_url": url})

        logger.info(
            "Planned %s -> %s: %.0f km, %d driving day(s), %d stay day(s), %d tactical stop(s)",
            request.origin, request.destination, distance_km, plan.day_count, stays, len(tactical_stops),
        )
        return summary

    @staticmethod
    def _stop_labels(request: PlanningRequest, route: Route) -> list[str]:
        """Origin, the end label of each intermediate leg, then the destination."""
        labels = [request.origin]
        for waypoint, leg in zip(request.waypoints, route.legs[:-1]):
            labels.append(name_from_address(leg.end_address) or waypoint)
        labels.append(request.destination)
        return labels

    @staticmethod
    def _driving_entry(stage: Stage, names: list[NamedStop], dates: list) -> DailyPlanEntry:
        def label(ref: StopRef) -> str:
            if isinstance(ref, CutPoint):
                return tactical_label(names[ref.index].label)
            return ref

        warning = None
        if isinstance(stage.target, CutPoint) and not names[stage.target.index].resolved:
            warning = UNRESOLVED_WARNING

        return DailyPlanEntry(
            day=stage.day,
            date=dates[stage.day - 1],
            from_label=label(stage.origin),
            to_label=label(stage.target),
            distance_km=stage.distance_m / 1000,
            is_driving=True,
            warning=warning,
        )


def create_assembler(config: Settings = settings) -> ItineraryAssembler:
    """Wire the assembler to the providers named in the settings."""
    routing = GoogleDirectionsProvider(
        config.google_maps_api_key,
        timeout=config.http_timeout_s,
        use_step_geometry=config.use_step_geometry,
    )
    namer = StopNamer(create_name_resolver(config), concurrency=config.geocoding_concurrency)
    return ItineraryAssembler(routing, namer, map_api_key=config.google_maps_api_key)


async def plan_trip(request: PlanningRequest, config: Settings = settings) -> TripSummary:
    """Plan one trip with fresh provider clients, closing them afterwards."""
    assembler = create_assembler(config)
    try:
        return await assembler.plan(request, timeout=config.planning_timeout_s)
    finally:
        await assembler.routing.aclose()
        await assembler.namer.resolver.aclose()
