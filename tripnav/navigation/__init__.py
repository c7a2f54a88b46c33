"""
Live navigation over an optimized trip
"""

from .location import GeolocationSource, ReplayGeolocationSource, TraceError
from .session import LegRequest, NavigationSession, StaleResultDiscarded
from .state import NavigationState

__all__ = [
    "GeolocationSource",
    "ReplayGeolocationSource",
    "TraceError",
    "LegRequest",
    "NavigationSession",
    "StaleResultDiscarded",
    "NavigationState",
]
