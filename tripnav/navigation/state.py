"""
Observable navigation state
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tripnav.core.models import Coordinate, NavigationStatus, RouteLeg, Stop

# Distance bands (meters) in which a spoken prompt for the next step is due
ANNOUNCEMENT_BANDS = ((150.0, 200.0), (80.0, 100.0), (30.0, 50.0))


class NavigationState(BaseModel):
    """
    Immutable snapshot of a navigation session
    Published to subscribers after every transition or progress update
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: NavigationStatus = NavigationStatus.IDLE
    generation: int = 0
    current_destination_index: int = 0
    stop_count: int = 0
    destination: Optional[Stop] = None
    active_leg: Optional[RouteLeg] = None
    last_known_location: Optional[Coordinate] = None

    current_instruction: Optional[str] = None
    next_instruction: Optional[str] = None
    distance_to_next_step: Optional[float] = Field(None, description="Meters to the upcoming maneuver")
    distance_to_destination: Optional[float] = Field(None, description="Remaining meters on the leg")
    eta_seconds: Optional[float] = Field(None, description="Estimated seconds to the current destination")

    error: Optional[Exception] = None

    @property
    def is_active(self) -> bool:
        return self.status not in (NavigationStatus.IDLE, NavigationStatus.COMPLETED)

    @property
    def can_retry(self) -> bool:
        return self.status == NavigationStatus.ROUTING_FAILED

    @property
    def announcement_due(self) -> bool:
        """True when the distance to the next step falls in a prompt band"""
        if self.status != NavigationStatus.NAVIGATING or self.distance_to_next_step is None:
            return False
        return any(low < self.distance_to_next_step <= high for low, high in ANNOUNCEMENT_BANDS)
