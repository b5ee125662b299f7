"""Tests for the itinerary planning pipeline.

Everything here runs offline: routes are built in memory and place names
come from a stub resolver.
"""

import asyncio
import random
from datetime import date, timedelta

import pytest

from roadtrip.errors import InputError, MalformedRouteError, ProviderError
from roadtrip.models import (
    Leg,
    PlanningRequest,
    Point,
    Route,
    Segment,
    WaypointPolicy,
    build_request,
)
from roadtrip.pipeline import (
    FALLBACK_LABEL,
    CutPoint,
    ItineraryAssembler,
    SegmentationEngine,
    StopNamer,
    assign_dates,
    compute_stay_days,
    estimate,
    ingest,
    stay_entries,
)
from roadtrip.providers import AddressComponent


# ═══════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════


def make_leg(distances_km, end_address="", start_lat=40.0):
    """A leg heading north, one segment per distance (geometry is nominal)."""
    segments = []
    lat = start_lat
    for km in distances_km:
        nxt = lat + 0.01
        segments.append(Segment(
            start=Point(latitude=round(lat, 6), longitude=-3.7),
            end=Point(latitude=round(nxt, 6), longitude=-3.7),
            distance_m=km * 1000,
        ))
        lat = nxt
    return Leg(segments=tuple(segments), end_address=end_address)


def make_route(*legs_km):
    legs = []
    lat = 36.0
    for distances in legs_km:
        leg = make_leg(distances, start_lat=lat)
        legs.append(leg)
        lat = leg.segments[-1].end.latitude
    return Route(legs=tuple(legs))


def make_request(**overrides):
    fields = dict(
        origin="Madrid",
        destination="Lisboa",
        start_date=date(2024, 6, 1),
        return_date=date(2024, 6, 1),
        max_daily_distance_km=400,
    )
    fields.update(overrides)
    return PlanningRequest(**fields)


class StubResolver:
    """Names every point "Town A", "Town B", ... in the order it is first asked about."""

    def __init__(self, delay=0.0):
        self.calls = []
        self.delay = delay

    async def reverse(self, point):
        self.calls.append(point)
        if self.delay:
            await asyncio.sleep(self.delay)
        return [
            AddressComponent(name="Extremadura", types=("administrative_area_level_1",)),
            AddressComponent(name=f"Town {chr(ord('A') + len(self.calls) - 1)}", types=("locality", "political")),
        ]


class FailingResolver:
    async def reverse(self, point):
        raise ProviderError("geocoder down")


class EmptyResolver:
    async def reverse(self, point):
        return []


class StubRouting:
    def __init__(self, route=None, error=None):
        self.route = route
        self.error = error
        self.calls = []

    async def get_route(self, origin, destination, waypoints=()):
        self.calls.append((origin, destination, list(waypoints)))
        if self.error:
            raise self.error
        return self.route


def make_assembler(route, resolver=None, **kwargs):
    namer = StopNamer(resolver or StubResolver(), concurrency=kwargs.pop("concurrency", 1))
    return ItineraryAssembler(StubRouting(route), namer, **kwargs)


def driving_km(plan):
    return [round(stage.distance_m / 1000, 6) for stage in plan.stages]


# ═══════════════════════════════════════════════════════════════════════
# RouteIngestor
# ═══════════════════════════════════════════════════════════════════════


class TestIngest:
    """Test route flattening and contract checks."""

    def test_preserves_leg_and_segment_order(self):
        route = make_route([10, 20], [30])
        flattened = ingest(route)
        assert [item.leg_index for item in flattened] == [0, 0, 1]
        assert [item.segment.distance_m for item in flattened] == [10_000, 20_000, 30_000]

    def test_route_without_legs(self):
        with pytest.raises(MalformedRouteError):
            ingest(Route(legs=()))

    def test_leg_without_segments(self):
        route = Route(legs=(make_leg([10]), Leg(segments=())))
        with pytest.raises(MalformedRouteError, match="Leg 2 has no segments"):
            ingest(route)

    @pytest.mark.parametrize("distance", [0.0, -5.0])
    def test_non_positive_distance(self, distance):
        p = Point(latitude=40.0, longitude=-3.7)
        route = Route(legs=(Leg(segments=(Segment(start=p, end=p, distance_m=distance),)),))
        with pytest.raises(MalformedRouteError, match="non-positive"):
            ingest(route)


# ═══════════════════════════════════════════════════════════════════════
# SegmentationEngine
# ═══════════════════════════════════════════════════════════════════════


class TestSegmentation:
    """Test the geometric day split."""

    def test_950_km_single_leg(self):
        route = make_route([95] * 10)
        plan = SegmentationEngine(400).split(ingest(route), ["Madrid", "Lisboa"])

        assert driving_km(plan) == [400, 400, 150]
        assert [stage.day for stage in plan.stages] == [1, 2, 3]
        assert plan.stages[0].origin == "Madrid"
        assert plan.stages[-1].target == "Lisboa"
        # Cuts sit at the start of the segment that reached the cap
        assert [cut.point for cut in plan.cuts] == [
            route.legs[0].segments[4].start,
            route.legs[0].segments[8].start,
        ]
        assert plan.stages[1].origin == plan.cuts[0]

    def test_short_trip_is_one_day(self):
        plan = SegmentationEngine(400).split(ingest(make_route([50, 60])), ["A", "B"])
        assert driving_km(plan) == [110]
        assert plan.cuts == []
        assert plan.day_count == 1

    def test_reaching_the_cap_exactly_cuts(self):
        plan = SegmentationEngine(400).split(ingest(make_route([200, 200, 100])), ["A", "B"])
        assert driving_km(plan) == [400, 100]
        assert len(plan.cuts) == 1

    def test_cap_landing_on_leg_end_uses_the_user_stop(self):
        plan = SegmentationEngine(400).split(ingest(make_route([200, 200], [150])), ["A", "W", "B"])
        assert plan.cuts == []
        assert [(s.day, s.origin, s.target) for s in plan.stages] == [(1, "A", "W"), (2, "W", "B")]
        assert driving_km(plan) == [400, 150]

    def test_oversized_segment_is_not_split(self):
        plan = SegmentationEngine(100).split(ingest(make_route([250])), ["A", "B"])
        assert driving_km(plan) == [100, 150]
        assert plan.distance_m == pytest.approx(250_000)

    def test_waypoint_starts_new_day_by_default(self):
        plan = SegmentationEngine(400).split(ingest(make_route([100], [100])), ["A", "W", "B"])
        assert [stage.day for stage in plan.stages] == [1, 2]

    def test_continue_policy_keeps_driving_after_waypoint(self):
        engine = SegmentationEngine(400, WaypointPolicy.CONTINUE)
        plan = engine.split(ingest(make_route([100], [100])), ["A", "W", "B"])
        assert [stage.day for stage in plan.stages] == [1, 1]
        assert plan.day_count == 1

    def test_continue_policy_counts_earlier_legs_against_the_cap(self):
        engine = SegmentationEngine(400, WaypointPolicy.CONTINUE)
        plan = engine.split(ingest(make_route([300], [100, 100, 100])), ["A", "W", "B"])

        assert [(s.day, round(s.distance_m / 1000)) for s in plan.stages] == [
            (1, 300), (1, 100), (2, 200),
        ]
        assert plan.stages[1].origin == "W"
        assert isinstance(plan.stages[1].target, CutPoint)

    def test_label_count_must_match_legs(self):
        with pytest.raises(ValueError):
            SegmentationEngine(400).split(ingest(make_route([10], [10])), ["A", "B"])

    def test_rejects_non_positive_cap(self):
        with pytest.raises(ValueError):
            SegmentationEngine(0)


class TestSegmentationProperties:
    """Invariants that must hold for any route."""

    @pytest.mark.parametrize("seed", range(8))
    @pytest.mark.parametrize("policy", list(WaypointPolicy))
    def test_invariants(self, seed, policy):
        rng = random.Random(seed)
        legs = [
            [rng.uniform(0.5, 180) for _ in range(rng.randint(1, 25))]
            for _ in range(rng.randint(1, 4))
        ]
        route = make_route(*legs)
        cap_km = rng.choice([150, 300, 400, 650])
        labels = ["O"] + [f"W{i}" for i in range(1, len(legs))] + ["D"]

        plan = SegmentationEngine(cap_km, policy).split(ingest(route), labels)

        # Distance conservation
        assert plan.distance_m == pytest.approx(route.distance_m, rel=1e-6)

        # Driving entries are positive and respect the cap up to one segment
        longest = max(s.distance_m for leg in route.legs for s in leg.segments)
        for stage in plan.stages:
            assert stage.distance_m > 0
            assert stage.distance_m <= cap_km * 1000 + longest + 1e-6

        # Days are 1..N without gaps
        days = [stage.day for stage in plan.stages]
        assert days[0] == 1
        assert all(b - a in (0, 1) for a, b in zip(days, days[1:]))
        if policy is WaypointPolicy.NEW_DAY:
            assert days == list(range(1, len(days) + 1))

        # Each calendar day stays within the cap up to one segment
        per_day = {}
        for stage in plan.stages:
            per_day[stage.day] = per_day.get(stage.day, 0) + stage.distance_m
        assert all(total <= cap_km * 1000 + longest + 1e-6 for total in per_day.values())


# ═══════════════════════════════════════════════════════════════════════
# StopNamer
# ═══════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
class TestStopNamer:
    """Test place naming and its fallbacks."""

    async def test_prefers_locality(self):
        namer = StopNamer(StubResolver())
        assert await namer.resolve(Point(latitude=39.0, longitude=-6.0)) == "Town A"

    async def test_falls_back_to_administrative_area(self):
        class AreaOnly:
            async def reverse(self, point):
                return [
                    AddressComponent(name="Spain", types=("country",)),
                    AddressComponent(name="Badajoz", types=("administrative_area_level_2",)),
                ]

        result = await StopNamer(AreaOnly()).lookup(Point(latitude=39.0, longitude=-6.0))
        assert result.label == "Badajoz"
        assert result.resolved

    async def test_strips_digits_from_names(self):
        class Numbered:
            async def reverse(self, point):
                return [AddressComponent(name="06800 Mérida", types=("locality",))]

        assert await StopNamer(Numbered()).resolve(Point(latitude=38.9, longitude=-6.3)) == "Mérida"

    @pytest.mark.parametrize("resolver", [FailingResolver(), EmptyResolver()])
    async def test_generic_label_when_unresolved(self, resolver):
        result = await StopNamer(resolver).lookup(Point(latitude=0.0, longitude=0.0))
        assert result.label == FALLBACK_LABEL
        assert not result.resolved

    @pytest.mark.parametrize("address,expected", [
        ("Calle Mayor 5, 28013 Madrid, Spain", "Madrid"),
        ("Av. da Liberdade, 1250-096 Lisboa, Portugal", "Lisboa"),
        ("37001 Salamanca, Spain", "Salamanca"),
        ("Sevilla", "Sevilla"),
        ("", FALLBACK_LABEL),
        ("12345, Spain", FALLBACK_LABEL),
    ])
    async def test_address_strings(self, address, expected):
        assert await StopNamer(EmptyResolver()).resolve(address) == expected

    async def test_batch_keeps_discovery_order(self):
        towns = {46: "Orense", 47: "Lugo", 48: "Gijón", 49: "Oviedo"}

        class Staggered:
            """Later points answer first."""
            async def reverse(self, point):
                await asyncio.sleep((50 - point.latitude) * 0.01)
                return [AddressComponent(name=towns[round(point.latitude)], types=("locality",))]

        points = [Point(latitude=lat, longitude=0.0) for lat in (46, 47, 48, 49)]
        names = await StopNamer(Staggered(), concurrency=4).resolve_cuts(points)
        assert [n.label for n in names] == ["Orense", "Lugo", "Gijón", "Oviedo"]


# ═══════════════════════════════════════════════════════════════════════
# DateScheduler and CostEstimator
# ═══════════════════════════════════════════════════════════════════════


class TestScheduling:
    def test_consecutive_dates(self):
        assert assign_dates(3, date(2024, 6, 1)) == [
            date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3),
        ]

    def test_month_boundary(self):
        assert assign_dates(2, date(2024, 2, 29))[-1] == date(2024, 3, 1)

    @pytest.mark.parametrize("arrival,return_date,expected", [
        (date(2024, 6, 3), date(2024, 6, 6), 3),
        (date(2024, 6, 3), date(2024, 6, 4), 1),
        (date(2024, 6, 3), date(2024, 6, 3), 0),
        (date(2024, 6, 3), date(2024, 6, 1), 0),
    ])
    def test_stay_days(self, arrival, return_date, expected):
        assert compute_stay_days(arrival, return_date) == expected

    def test_stay_entries(self):
        entries = stay_entries("Lisboa", 4, date(2024, 6, 4), 3)
        assert [e.day for e in entries] == [4, 5, 6]
        assert [e.date for e in entries] == [date(2024, 6, 4), date(2024, 6, 5), date(2024, 6, 6)]
        assert all(e.from_label == e.to_label == "Lisboa" for e in entries)
        assert all(e.distance_km == 0 and not e.is_driving for e in entries)


class TestCosts:
    def test_known_estimate(self):
        result = estimate(950, 9.0, 1.75)
        assert result.fuel_liters == pytest.approx(85.5)
        assert result.total_cost == pytest.approx(149.625)

    @pytest.mark.parametrize("consumption,price", [(0, 1.75), (9.0, 0), (-1, 1.75)])
    def test_rejects_non_positive_parameters(self, consumption, price):
        with pytest.raises(InputError):
            estimate(100, consumption, price)


# ═══════════════════════════════════════════════════════════════════════
# Request validation
# ═══════════════════════════════════════════════════════════════════════


class TestRequest:
    def test_blank_waypoints_dropped(self):
        request = make_request(waypoints=["Salamanca", " ", "", " Porto "])
        assert request.waypoints == ["Salamanca", "Porto"]
        assert request.stops == ["Madrid", "Salamanca", "Porto", "Lisboa"]

    def test_defaults(self):
        request = make_request()
        assert request.fuel_consumption_per_100km == 9.0
        assert request.fuel_price_per_liter == 1.75
        assert request.waypoint_policy is WaypointPolicy.NEW_DAY

    @pytest.mark.parametrize("overrides,field", [
        ({"origin": "   "}, "origin"),
        ({"max_daily_distance_km": 0}, "max_daily_distance_km"),
        ({"fuel_price_per_liter": -1}, "fuel_price_per_liter"),
        ({"start_date": "not a date"}, "start_date"),
    ])
    def test_build_request_reports_input_errors(self, overrides, field):
        fields = dict(origin="Madrid", destination="Lisboa", start_date="2024-06-01", return_date="2024-06-03")
        fields.update(overrides)
        with pytest.raises(InputError, match=field):
            build_request(**fields)

    def test_return_before_start(self):
        with pytest.raises(InputError, match="return_date"):
            build_request(origin="A", destination="B", start_date="2024-06-05", return_date="2024-06-01")


# ═══════════════════════════════════════════════════════════════════════
# ItineraryAssembler
# ═══════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
class TestAssembler:
    """End-to-end assembly with stubbed providers."""

    async def test_950_km_scenario(self):
        summary = await make_assembler(make_route([95] * 10)).plan(make_request())

        assert summary.ok
        driving = summary.driving_days
        assert [round(e.distance_km, 6) for e in driving] == [400, 400, 150]
        assert [e.date for e in driving] == [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)]
        assert [(e.from_label, e.to_label) for e in driving] == [
            ("Madrid", "Tactical stop: Town A"),
            ("Tactical stop: Town A", "Tactical stop: Town B"),
            ("Tactical stop: Town B", "Lisboa"),
        ]
        assert summary.total_days == 3
        assert summary.distance_km == pytest.approx(950)
        assert summary.fuel_liters == pytest.approx(85.5)
        assert summary.total_cost == pytest.approx(149.625)
        assert [stop.day for stop in summary.tactical_stops] == [1, 2]

    async def test_stay_days_after_arrival(self):
        request = make_request(return_date=date(2024, 6, 6))
        summary = await make_assembler(make_route([95] * 10)).plan(request)

        stays = summary.stay_days
        assert [e.date for e in stays] == [date(2024, 6, 4), date(2024, 6, 5), date(2024, 6, 6)]
        assert [e.day for e in stays] == [4, 5, 6]
        assert all(e.from_label == e.to_label == "Lisboa" and e.distance_km == 0 for e in stays)
        assert summary.total_days == 6

    async def test_days_and_dates_are_monotonic(self):
        request = make_request(waypoints=["Salamanca"], return_date=date(2024, 6, 10))
        summary = await make_assembler(make_route([120] * 5, [90] * 7)).plan(request)

        days = [e.day for e in summary.daily_itinerary]
        assert days == list(range(1, len(days) + 1))
        for a, b in zip(summary.daily_itinerary, summary.daily_itinerary[1:]):
            assert b.date - a.date == timedelta(days=1)

    async def test_waypoint_label_from_provider_address(self):
        route = make_route([100], [100])
        route = Route(legs=(
            route.legs[0].model_copy(update={"end_address": "Plaza Mayor, 37002 Salamanca, Spain"}),
            route.legs[1],
        ))
        summary = await make_assembler(route).plan(make_request(waypoints=["salamanca"]))
        assert [(e.from_label, e.to_label) for e in summary.daily_itinerary] == [
            ("Madrid", "Salamanca"), ("Salamanca", "Lisboa"),
        ]

    async def test_waypoint_label_falls_back_to_request(self):
        summary = await make_assembler(make_route([100], [100])).plan(make_request(waypoints=["Salamanca"]))
        assert summary.daily_itinerary[0].to_label == "Salamanca"

    async def test_unreadable_address_falls_back_to_request(self):
        route = make_route([100], [100])
        route = Route(legs=(route.legs[0].model_copy(update={"end_address": "12345, Spain"}), route.legs[1]))
        summary = await make_assembler(route).plan(make_request(waypoints=["Salamanca"]))
        assert [(e.from_label, e.to_label) for e in summary.daily_itinerary] == [
            ("Madrid", "Salamanca"), ("Salamanca", "Lisboa"),
        ]

    async def test_continue_policy_shares_the_date(self):
        request = make_request(waypoints=["Salamanca"], waypoint_policy=WaypointPolicy.CONTINUE)
        summary = await make_assembler(make_route([100], [100])).plan(request)
        assert [(e.day, e.date) for e in summary.daily_itinerary] == [
            (1, date(2024, 6, 1)), (1, date(2024, 6, 1)),
        ]
        assert summary.total_days == 1

    async def test_naming_failure_degrades_to_warning(self):
        summary = await make_assembler(make_route([95] * 10), FailingResolver()).plan(make_request())

        assert summary.ok
        first = summary.daily_itinerary[0]
        assert first.to_label == f"Tactical stop: {FALLBACK_LABEL}"
        assert first.warning
        assert summary.daily_itinerary[-1].warning is None
        assert not any(stop.resolved for stop in summary.tactical_stops)

    async def test_provider_error_short_circuits(self):
        namer = StopNamer(StubResolver())
        routing = StubRouting(error=ProviderError("Routing provider error: NOT_FOUND"))
        summary = await ItineraryAssembler(routing, namer).plan(make_request())

        assert summary.error == "Routing provider error: NOT_FOUND"
        assert summary.daily_itinerary == []
        assert summary.total_days is None
        assert summary.distance_km is None
        assert summary.total_cost is None

    async def test_malformed_route_short_circuits(self):
        route = Route(legs=(Leg(segments=()),))
        summary = await make_assembler(route).plan(make_request())
        assert "no segments" in summary.error
        assert summary.daily_itinerary == []

    async def test_leg_count_mismatch_is_malformed(self):
        summary = await make_assembler(make_route([100])).plan(make_request(waypoints=["Salamanca"]))
        assert summary.error
        assert summary.tactical_stops == []

    async def test_timeout_returns_terminal_error(self):
        assembler = make_assembler(make_route([95] * 10), StubResolver(delay=1.0))
        summary = await assembler.plan(make_request(), timeout=0.05)
        assert "timed out" in summary.error
        assert summary.daily_itinerary == []

    async def test_idempotent(self):
        route = make_route([95] * 10, [60] * 9)
        request = make_request(waypoints=["Salamanca"], return_date=date(2024, 6, 9))
        first = await make_assembler(route).plan(request)
        second = await make_assembler(route).plan(request)
        assert first == second

    async def test_routing_called_with_ordered_stops(self):
        assembler = make_assembler(make_route([10], [10], [10]))
        await assembler.plan(make_request(waypoints=["Salamanca", "Porto"]))
        assert assembler.routing.calls == [("Madrid", "Lisboa", ["Salamanca", "Porto"])]

    async def test_map_url_lists_stops_in_order(self):
        from urllib.parse import parse_qs, urlparse

        summary = await make_assembler(make_route([95] * 10), map_api_key="k").plan(make_request())
        query = parse_qs(urlparse(summary.map_url).query)
        assert query["origin"] == ["Madrid"]
        assert query["destination"] == ["Lisboa"]
        assert query["waypoints"] == ["Tactical stop: Town A|Tactical stop: Town B"]

    async def test_map_url_keeps_every_fallback_stop(self):
        from urllib.parse import parse_qs, urlparse

        assembler = make_assembler(make_route([95] * 10), FailingResolver(), map_api_key="k")
        summary = await assembler.plan(make_request())
        query = parse_qs(urlparse(summary.map_url).query)
        fallback = f"Tactical stop: {FALLBACK_LABEL}"
        assert query["waypoints"] == [f"{fallback}|{fallback}"]

    async def test_no_map_url_without_key(self):
        summary = await make_assembler(make_route([10])).plan(make_request())
        assert summary.map_url is None

    async def test_serialises_from_and_to_aliases(self):
        summary = await make_assembler(make_route([10])).plan(make_request())
        entry = summary.model_dump(by_alias=True)["daily_itinerary"][0]
        assert entry["from"] == "Madrid"
        assert entry["to"] == "Lisboa"
