"""Utility functions for trip planning."""

from .gpx import create_gpx_from_trip, save_gpx_file
from .geo import decode_polyline, haversine_distance
from .maps import generate_map_url, map_waypoints

__all__ = [
    "create_gpx_from_trip",
    "save_gpx_file",
    "decode_polyline",
    "haversine_distance",
    "generate_map_url",
    "map_waypoints",
]
