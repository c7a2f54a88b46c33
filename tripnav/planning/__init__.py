"""
Trip planning: stop ordering and full-route previews
"""

from tripnav.core.travel import MODE_SPEEDS_KMH, estimate_travel_time

from .optimizer import RouteOptimizer
from .preview import CompleteRouteCalculator, PartialRouteError, RouteLegs

__all__ = [
    "MODE_SPEEDS_KMH",
    "RouteOptimizer",
    "estimate_travel_time",
    "CompleteRouteCalculator",
    "PartialRouteError",
    "RouteLegs",
]
