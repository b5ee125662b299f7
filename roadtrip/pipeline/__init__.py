"""Itinerary planning pipeline."""

from .assembler import ItineraryAssembler, create_assembler, plan_trip
from .costs import FuelEstimate, estimate
from .ingest import IngestedSegment, ingest
from .naming import FALLBACK_LABEL, NamedStop, StopNamer
from .scheduling import assign_dates, compute_stay_days, stay_entries
from .segmentation import CutPoint, SegmentationEngine, SegmentationPlan, Stage

__all__ = [
    "ItineraryAssembler",
    "create_assembler",
    "plan_trip",
    "FuelEstimate",
    "estimate",
    "IngestedSegment",
    "ingest",
    "FALLBACK_LABEL",
    "NamedStop",
    "StopNamer",
    "assign_dates",
    "compute_stay_days",
    "stay_entries",
    "CutPoint",
    "SegmentationEngine",
    "SegmentationPlan",
    "Stage",
]
