"""Itinerary segmentation: split a route into daily driving stages.

The split is purely geometric. Cut points are returned unnamed so that
the (I/O-bound) naming pass can run afterwards, and the stages reference
them by index. Segments are atomic: a cut is placed at the start of the
segment that makes the day reach the cap, and the part of that segment
beyond the cap is carried into the next day.
"""

import logging
from dataclasses import dataclass, field
from itertools import groupby
from typing import Sequence, Union

from roadtrip.models import Point, WaypointPolicy

from .ingest import IngestedSegment

logger = logging.getLogger(__name__)

# Floating-point slack when comparing meter sums against the cap
EPSILON_M = 1e-6


@dataclass(frozen=True)
class CutPoint:
    """An engine-inserted overnight stop, not yet named."""
    index: int
    point: Point
    leg_index: int


StopRef = Union[str, CutPoint]


@dataclass(frozen=True)
class Stage:
    """One driving entry of the itinerary before names and dates are bound."""
    day: int
    origin: StopRef
    target: StopRef
    distance_m: float


@dataclass
class SegmentationPlan:
    stages: list[Stage] = field(default_factory=list)
    cuts: list[CutPoint] = field(default_factory=list)

    @property
    def day_count(self) -> int:
        return self.stages[-1].day if self.stages else 0

    @property
    def distance_m(self) -> float:
        return sum(stage.distance_m for stage in self.stages)


class SegmentationEngine:
    """
    Partition ingested segments into stages bounded by a daily maximum.

    Args:
        max_daily_distance_km: Daily driving cap
        waypoint_policy: NEW_DAY ends the day at every user waypoint;
            CONTINUE keeps driving on the same day after a waypoint, with
            the distance already driven counting against that day's cap.
    """

    def __init__(
        self,
        max_daily_distance_km: float,
        waypoint_policy: WaypointPolicy = WaypointPolicy.NEW_DAY,
    ) -> None:
        if max_daily_distance_km <= 0:
            raise ValueError("max_daily_distance_km must be positive")
        self.target_m = max_daily_distance_km * 1000
        self.waypoint_policy = waypoint_policy

    def split(
        self,
        segments: Sequence[IngestedSegment],
        stop_labels: Sequence[str],
    ) -> SegmentationPlan:
        """
        Split the route into day stages.

        Args:
            segments: Output of ``ingest``; leg indices must be contiguous
                and start at 0
            stop_labels: One label per user stop: origin, then the end
                label of every leg (waypoints..., destination)
        """
        legs = [
            (leg_index, [item.segment for item in group])
            for leg_index, group in groupby(segments, key=lambda item: item.leg_index)
        ]
        if len(stop_labels) != len(legs) + 1:
            raise ValueError(
                f"Expected {len(legs) + 1} stop labels for {len(legs)} leg(s), got {len(stop_labels)}"
            )

        plan = SegmentationPlan()
        day = 1
        day_m = 0.0  # driven today on earlier legs (CONTINUE policy only)
        target = self.target_m

        for leg_index, leg_segments in legs:
            cursor: StopRef = stop_labels[leg_index]
            end_label = stop_labels[leg_index + 1]
            accumulated = 0.0
            landed_on_leg_end = False
            last = len(leg_segments) - 1

            for position, segment in enumerate(leg_segments):
                projected = day_m + accumulated + segment.distance_m
                if projected < target - EPSILON_M:
                    accumulated += segment.distance_m
                    continue

                overflow = max(0.0, projected - target)
                if position == last and overflow <= EPSILON_M:
                    # The cap is reached exactly at the user's stop: that
                    # stop is the overnight stop, no tactical stop needed.
                    accumulated += segment.distance_m
                    landed_on_leg_end = True
                    break

                cut = CutPoint(len(plan.cuts), segment.start, leg_index)
                plan.cuts.append(cut)
                plan.stages.append(Stage(day, cursor, cut, target - day_m))
                day += 1
                day_m = 0.0
                accumulated = overflow
                cursor = cut

            if accumulated > 0 or cursor != end_label:
                plan.stages.append(Stage(day, cursor, end_label, accumulated))

            is_last_leg = leg_index == len(legs) - 1
            day_is_full = day_m + accumulated >= target - EPSILON_M
            if (
                is_last_leg
                or landed_on_leg_end
                or day_is_full
                or self.waypoint_policy is WaypointPolicy.NEW_DAY
            ):
                day += 1
                day_m = 0.0
            else:
                day_m += accumulated

        logger.debug(
            "Split %d segment(s) into %d stage(s) over %d day(s) with %d tactical stop(s)",
            len(segments), len(plan.stages), plan.day_count, len(plan.cuts),
        )
        return plan
