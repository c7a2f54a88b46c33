"""
Geographic utility functions
"""

import math
from typing import Sequence, Tuple

from .models import Coordinate

EARTH_RADIUS_M = 6371000.0
MIN_SPAN_DEGREES = 0.01


class EmptyInputError(ValueError):
    """Raised when a geometry function receives no points"""
    pass


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in meters (haversine)"""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    delta_phi = math.radians(b.latitude - a.latitude)
    delta_lambda = math.radians(b.longitude - a.longitude)

    h = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_M * c


def centroid(coords: Sequence[Coordinate]) -> Coordinate:
    """
    Arithmetic mean of latitudes and longitudes

    Good enough at city scale; not valid across the antimeridian.

    Raises:
        EmptyInputError: If coords is empty
    """
    if not coords:
        raise EmptyInputError("centroid() requires at least one coordinate")

    lat = sum(c.latitude for c in coords) / len(coords)
    lon = sum(c.longitude for c in coords) / len(coords)
    return Coordinate(latitude=lat, longitude=lon)


def bounding_span(
    coords: Sequence[Coordinate],
    minimum: float = MIN_SPAN_DEGREES
) -> Tuple[float, float]:
    """
    Latitude/longitude deltas covering all points

    Each delta is floored to `minimum` so single-point sets still give a usable region.

    Raises:
        EmptyInputError: If coords is empty
    """
    if not coords:
        raise EmptyInputError("bounding_span() requires at least one coordinate")

    lats = [c.latitude for c in coords]
    lons = [c.longitude for c in coords]
    lat_delta = max(max(lats) - min(lats), minimum)
    lon_delta = max(max(lons) - min(lons), minimum)
    return lat_delta, lon_delta


def bearing_degrees(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from a to b in degrees (0-360, 0=North)"""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    delta_lambda = math.radians(b.longitude - a.longitude)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = (math.cos(phi1) * math.sin(phi2) -
         math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda))

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def _project(origin: Coordinate, point: Coordinate) -> Tuple[float, float]:
    """Equirectangular projection of point around origin, in meters"""
    lat0 = math.radians(origin.latitude)
    x = math.radians(point.longitude - origin.longitude) * math.cos(lat0) * EARTH_RADIUS_M
    y = math.radians(point.latitude - origin.latitude) * EARTH_RADIUS_M
    return x, y


def _segment_projection(point: Coordinate, start: Coordinate, end: Coordinate) -> Tuple[float, float]:
    """Fraction along start-end of the closest point, and the distance to it in meters"""
    px, py = _project(point, point)
    ax, ay = _project(point, start)
    bx, by = _project(point, end)

    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return 0.0, math.hypot(px - ax, py - ay)

    t = ((px - ax) * dx + (py - ay) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return t, math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def distance_to_segment(point: Coordinate, start: Coordinate, end: Coordinate) -> float:
    """Distance in meters from point to the segment start-end"""
    return _segment_projection(point, start, end)[1]


def distance_to_polyline(point: Coordinate, polyline: Sequence[Coordinate]) -> float:
    """
    Minimum distance in meters from point to a polyline

    Raises:
        EmptyInputError: If polyline is empty
    """
    if not polyline:
        raise EmptyInputError("distance_to_polyline() requires at least one coordinate")

    if len(polyline) == 1:
        return distance_meters(point, polyline[0])

    return min(
        distance_to_segment(point, polyline[i], polyline[i + 1])
        for i in range(len(polyline) - 1)
    )


def polyline_length(polyline: Sequence[Coordinate]) -> float:
    """Total length of a polyline in meters"""
    return sum(distance_meters(polyline[i], polyline[i + 1]) for i in range(len(polyline) - 1))


def progress_along_polyline(point: Coordinate, polyline: Sequence[Coordinate]) -> float:
    """
    Distance in meters from the start of a polyline to the position closest to point

    Raises:
        EmptyInputError: If polyline is empty
    """
    if not polyline:
        raise EmptyInputError("progress_along_polyline() requires at least one coordinate")

    best_offset = float("inf")
    best_progress = 0.0
    travelled = 0.0
    for i in range(len(polyline) - 1):
        start, end = polyline[i], polyline[i + 1]
        length = distance_meters(start, end)
        fraction, offset = _segment_projection(point, start, end)
        if offset < best_offset:
            best_offset = offset
            best_progress = travelled + fraction * length
        travelled += length

    return best_progress
