"""Geospatial utility functions."""

from math import radians, sin, cos, sqrt, atan2


EARTH_RADIUS_KM = 6371


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float,
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in kilometers
    """
    lat1_rad, lon1_rad = radians(lat1), radians(lon1)
    lat2_rad, lon2_rad = radians(lat2), radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = sin(dlat/2)**2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon/2)**2
    c = 2 * atan2(sqrt(a), sqrt(1-a))

    return EARTH_RADIUS_KM * c


def decode_polyline(encoded: str, precision: int = 5) -> list[tuple[float, float]]:
    """
    Decode a Google-style encoded polyline string.

    Args:
        encoded: The encoded polyline string
        precision: Coordinate precision (5 for Google, 6 for OSRM)

    Returns:
        List of (lat, lon) tuples
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    def next_delta() -> int:
        nonlocal index
        shift = 0
        result = 0
        while True:
            b = ord(encoded[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        return ~(result >> 1) if result & 1 else result >> 1

    while index < len(encoded):
        lat += next_delta()
        lon += next_delta()
        coordinates.append((lat / 10**precision, lon / 10**precision))

    return coordinates
