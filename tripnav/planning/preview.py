"""
Complete multi-leg route calculation for trip previews
"""

import asyncio
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tripnav.config.models import PreviewSettings
from tripnav.core.models import Coordinate, RouteLeg, Step, Trip
from tripnav.directions.gateway import DirectionsGateway, GatewayError, request_leg


class PartialRouteError(Exception):
    """Some legs of a full route could not be resolved"""

    def __init__(self, failed_legs: Dict[int, str], legs: List[Optional[RouteLeg]]):
        self.failed_legs = dict(failed_legs)
        self.legs = list(legs)
        indices = ", ".join(str(i) for i in sorted(self.failed_legs))
        super().__init__(f"{len(self.failed_legs)} of {len(self.legs)} legs failed (indices: {indices})")

    @property
    def failed_indices(self) -> List[int]:
        return sorted(self.failed_legs)


class RouteLegs(BaseModel):
    """Result of resolving every leg of a trip"""

    model_config = ConfigDict(frozen=True)

    legs: List[Optional[RouteLeg]] = Field(
        default_factory=list,
        description="One slot per leg in trip order, None where the leg failed"
    )
    failed_legs: Dict[int, str] = Field(
        default_factory=dict,
        description="Error message per failed leg index"
    )

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_legs)

    @property
    def resolved_legs(self) -> List[RouteLeg]:
        return [leg for leg in self.legs if leg is not None]

    @property
    def total_distance(self) -> float:
        return sum(leg.distance for leg in self.resolved_legs)

    @property
    def total_duration(self) -> float:
        return sum(leg.duration for leg in self.resolved_legs)

    @property
    def polyline(self) -> List[Coordinate]:
        """Concatenated polyline of the resolved legs"""
        points: List[Coordinate] = []
        for leg in self.resolved_legs:
            points.extend(leg.polyline)
        return points

    @property
    def steps(self) -> List[Step]:
        """Concatenated steps of the resolved legs"""
        return [step for leg in self.resolved_legs for step in leg.steps]

    @property
    def error(self) -> Optional[PartialRouteError]:
        if not self.is_partial:
            return None
        return PartialRouteError(self.failed_legs, self.legs)

    def raise_for_partial(self) -> None:
        """Raise PartialRouteError if any leg failed"""
        error = self.error
        if error is not None:
            raise error


class CompleteRouteCalculator:
    """
    Resolves all legs of a trip up front
    Legs are requested concurrently and joined by leg index
    """

    def __init__(self, gateway: DirectionsGateway, settings: Optional[PreviewSettings] = None):
        self.gateway = gateway
        self.settings = settings or PreviewSettings()
        self.logger = logging.getLogger(__name__)

    async def calculate_full_route(self, trip: Trip) -> RouteLegs:
        """
        Resolve origin -> stop 1 -> ... -> stop N

        Args:
            trip: Trip to resolve

        Returns:
            RouteLegs with failed legs reported by index
        """
        points = trip.coordinates
        leg_count = len(points) - 1
        if leg_count == 0:
            return RouteLegs()

        if len(set(points)) < 2:
            self.logger.warning("All trip points share the same coordinate; legs will be degenerate")

        semaphore = asyncio.Semaphore(self.settings.max_concurrent)
        results: List[Optional[RouteLeg]] = [None] * leg_count
        failures: Dict[int, str] = {}

        async def resolve(index: int) -> None:
            async with semaphore:
                try:
                    results[index] = await request_leg(
                        self.gateway,
                        points[index],
                        points[index + 1],
                        trip.mode,
                        timeout=self.settings.gateway_timeout_s,
                    )
                except GatewayError as e:
                    self.logger.warning(f"Leg {index} failed: {e}")
                    failures[index] = str(e) or e.__class__.__name__

        await asyncio.gather(*(resolve(index) for index in range(leg_count)))

        route_legs = RouteLegs(legs=results, failed_legs=failures)
        if route_legs.is_partial:
            self.logger.warning(
                f"Resolved {leg_count - len(failures)} of {leg_count} legs; "
                f"failed: {sorted(failures)}"
            )
        else:
            self.logger.info(f"Resolved all {leg_count} legs")

        return route_legs
