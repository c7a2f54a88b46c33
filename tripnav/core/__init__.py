"""
Core models and geometry for TripNav
"""

from .geo import (
    EmptyInputError,
    bearing_degrees,
    bounding_span,
    centroid,
    distance_meters,
    distance_to_polyline,
)
from .models import (
    Coordinate,
    LocationFix,
    NavigationStatus,
    OrderedStop,
    RouteLeg,
    Step,
    Stop,
    TransportMode,
    Trip,
)
from .travel import MODE_SPEEDS_KMH, estimate_travel_time

__all__ = [
    "Coordinate",
    "LocationFix",
    "NavigationStatus",
    "OrderedStop",
    "RouteLeg",
    "Step",
    "Stop",
    "TransportMode",
    "Trip",
    "EmptyInputError",
    "bearing_degrees",
    "bounding_span",
    "centroid",
    "distance_meters",
    "distance_to_polyline",
    "MODE_SPEEDS_KMH",
    "estimate_travel_time",
]
