"""
Heuristic travel speeds per transport mode
"""

from typing import Dict

from .models import TransportMode

# Average speeds used for heuristic travel times, km/h
MODE_SPEEDS_KMH: Dict[TransportMode, float] = {
    TransportMode.WALKING: 5.0,
    TransportMode.CYCLING: 15.0,
    TransportMode.DRIVING: 40.0,
    TransportMode.PUBLIC_TRANSPORT: 20.0,
}


def estimate_travel_time(distance: float, mode: TransportMode) -> float:
    """Heuristic travel time in seconds for a distance in meters"""
    speed_ms = MODE_SPEEDS_KMH[mode] * 1000 / 3600
    return distance / speed_ms
