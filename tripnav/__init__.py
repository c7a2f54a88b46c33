"""
TripNav: Trip Route Optimization & Turn-by-Turn Navigation Engine

Orders trip stops with a nearest-neighbor heuristic, resolves full multi-leg
routes through a directions provider, and drives live navigation sessions
from a geolocation stream.
"""

__version__ = "0.1.0"
__author__ = "TripNav Team"

from .core.models import Coordinate, RouteLeg, Stop, TransportMode, Trip
from .navigation.session import NavigationSession
from .planning.optimizer import RouteOptimizer
from .planning.preview import CompleteRouteCalculator

__all__ = [
    "Coordinate",
    "RouteLeg",
    "Stop",
    "TransportMode",
    "Trip",
    "NavigationSession",
    "RouteOptimizer",
    "CompleteRouteCalculator",
]
