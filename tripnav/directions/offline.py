"""
Offline straight-line directions gateway
"""

from tripnav.core.geo import bearing_degrees, distance_meters
from tripnav.core.models import Coordinate, RouteLeg, Step, TransportMode
from tripnav.core.travel import estimate_travel_time

from .client import COMPASS_POINTS
from .gateway import DirectionsGateway


class StraightLineGateway(DirectionsGateway):
    """
    Routes every leg as a straight line

    Used when no directions provider is reachable (and by the CLI's --offline flag).
    Durations come from the optimizer's mode speed table.
    """

    async def route(
        self,
        source: Coordinate,
        destination: Coordinate,
        mode: TransportMode
    ) -> RouteLeg:
        distance = distance_meters(source, destination)
        duration = estimate_travel_time(distance, mode)
        direction = COMPASS_POINTS[int(((bearing_degrees(source, destination) % 360) + 22.5) // 45) % 8]

        steps = [
            Step(
                instruction=f"Head {direction}",
                distance=distance,
                duration=duration,
                location=source,
            ),
            Step(instruction="Arrive at destination", location=destination),
        ]

        return RouteLeg(
            source=source,
            destination=destination,
            polyline=[source, destination],
            steps=steps,
        )
