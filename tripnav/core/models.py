"""
Core data models for TripNav route planning and navigation
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class TransportMode(str, Enum):
    """Supported transport modes"""

    WALKING = "walking"
    CYCLING = "cycling"
    DRIVING = "driving"
    PUBLIC_TRANSPORT = "public_transport"


class Coordinate(BaseModel):
    """WGS84 coordinate in degrees"""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")

    def __str__(self) -> str:
        return f"{self.latitude:.6f},{self.longitude:.6f}"


class Stop(BaseModel):
    """A place to visit during a trip"""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., description="Unique stop identifier")
    name: str = Field(..., description="Display name")
    address: str = Field("", description="Postal address")
    coordinate: Coordinate = Field(..., description="Stop position")
    category: str = Field("other", description="Category tag (museum, cafe, ...)")
    recommended_visit_duration: Optional[float] = Field(
        None, ge=0, description="Recommended visit duration in seconds"
    )


class OrderedStop(BaseModel):
    """
    A stop placed in visiting order with timing estimates
    Distances in meters, times in seconds
    """

    model_config = ConfigDict(frozen=True)

    stop: Stop
    sequence_index: int = Field(..., ge=1, description="1-based position in visiting order")
    distance_from_previous: float = Field(0.0, ge=0, description="Distance from previous point")
    travel_time_from_previous: float = Field(0.0, ge=0, description="Travel time from previous point")
    visit_duration: float = Field(0.0, ge=0, description="Resolved visit duration")
    estimated_arrival_time: datetime
    estimated_departure_time: datetime

    @property
    def coordinate(self) -> Coordinate:
        return self.stop.coordinate

    @property
    def name(self) -> str:
        return self.stop.name


class Step(BaseModel):
    """One instruction-bearing segment of a route leg"""

    model_config = ConfigDict(frozen=True)

    instruction: str = Field("", description="Raw instruction text from the provider")
    distance: float = Field(0.0, ge=0, description="Step length in meters")
    duration: float = Field(0.0, ge=0, description="Step duration in seconds")
    street_name: str = Field("", description="Street the step follows")
    location: Optional[Coordinate] = Field(None, description="Maneuver point where the step starts")


class RouteLeg(BaseModel):
    """Routed path between two consecutive points"""

    model_config = ConfigDict(frozen=True)

    source: Coordinate
    destination: Coordinate
    polyline: List[Coordinate] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    reported_distance: Optional[float] = Field(None, ge=0, description="Provider total in meters")
    reported_duration: Optional[float] = Field(None, ge=0, description="Provider total in seconds")

    @property
    def distance(self) -> float:
        if self.reported_distance is not None:
            return self.reported_distance
        return sum(step.distance for step in self.steps)

    @property
    def duration(self) -> float:
        if self.reported_duration is not None:
            return self.reported_duration
        return sum(step.duration for step in self.steps)


class Trip(BaseModel):
    """
    Ordered trip produced by the route optimizer
    Aggregate figures are always derived from the ordered stops
    """

    model_config = ConfigDict(frozen=True)

    origin: Coordinate
    origin_address: str = ""
    stops: List[OrderedStop] = Field(default_factory=list)
    mode: TransportMode = TransportMode.WALKING
    departure_time: datetime

    @model_validator(mode="after")
    def check_sequence(self):
        """Sequence indices must be exactly 1..N in list order"""
        indices = [stop.sequence_index for stop in self.stops]
        if indices != list(range(1, len(indices) + 1)):
            raise ValueError(f"Stop sequence indices must be contiguous 1..N, got {indices}")
        return self

    @computed_field
    @property
    def total_distance(self) -> float:
        return sum(stop.distance_from_previous for stop in self.stops)

    @computed_field
    @property
    def total_travel_time(self) -> float:
        return sum(stop.travel_time_from_previous for stop in self.stops)

    @computed_field
    @property
    def estimated_duration(self) -> float:
        return sum(stop.travel_time_from_previous + stop.visit_duration for stop in self.stops)

    @property
    def coordinates(self) -> List[Coordinate]:
        """Origin followed by every stop in visiting order"""
        return [self.origin] + [stop.coordinate for stop in self.stops]

    @property
    def base_stops(self) -> List[Stop]:
        return [ordered.stop for ordered in self.stops]


class NavigationStatus(str, Enum):
    """Navigation session states"""

    IDLE = "idle"
    ROUTING_IN_PROGRESS = "routing_in_progress"
    NAVIGATING = "navigating"
    ARRIVED_AT_STOP = "arrived_at_stop"
    COMPLETED = "completed"
    ROUTING_FAILED = "routing_failed"


class LocationFix(BaseModel):
    """A single geolocation reading"""

    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    accuracy: Optional[float] = Field(None, ge=0, description="Horizontal accuracy in meters")
    timestamp: Optional[datetime] = None
