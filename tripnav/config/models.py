"""
Configuration models for TripNav
Supports YAML/JSON configuration files and trip request files
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tripnav.core.models import Coordinate, Stop, TransportMode
from tripnav.directions.translation import PHRASE_TABLES


class ConfigFormat(str, Enum):
    """Supported configuration file formats"""

    YAML = "yaml"
    JSON = "json"


class NavigationSettings(BaseModel):
    """Thresholds and timeouts for live navigation"""

    arrival_threshold_m: float = Field(
        50.0,
        description="Distance below which a stop counts as reached",
        gt=0
    )
    step_advance_threshold_m: float = Field(
        30.0,
        description="Distance below which a maneuver counts as passed",
        gt=0
    )
    gateway_timeout_s: float = Field(
        15.0,
        description="Deadline for a single directions request",
        gt=0
    )
    off_route_threshold_m: Optional[float] = Field(
        100.0,
        description="Distance from the route polyline that triggers re-routing (None disables)",
        gt=0
    )
    max_fix_accuracy_m: Optional[float] = Field(
        50.0,
        description="Ignore fixes with worse horizontal accuracy (None disables)",
        gt=0
    )
    max_fix_age_s: Optional[float] = Field(
        10.0,
        description="Ignore fixes older than this relative to the newest fix (None disables)",
        gt=0
    )
    auto_retries: int = Field(
        0,
        description="Automatic re-requests of a failed leg before reporting failure",
        ge=0,
        le=5
    )
    locale: str = Field(
        "en",
        description="Target locale for instruction text"
    )

    @field_validator('step_advance_threshold_m')
    def validate_step_threshold(cls, v, info):
        """Step threshold must not exceed the arrival threshold"""
        arrival = info.data.get('arrival_threshold_m')
        if arrival is not None and v > arrival:
            raise ValueError("step_advance_threshold_m must not exceed arrival_threshold_m")
        return v

    @field_validator('locale')
    def validate_locale(cls, v):
        """Validate locale against the known phrase tables"""
        if v not in PHRASE_TABLES:
            raise ValueError(f"Unsupported locale: {v}")
        return v


class OptimizerSettings(BaseModel):
    """Route optimizer options"""

    default_visit_minutes: float = Field(
        30.0,
        description="Visit duration used when a stop has none",
        ge=0
    )
    use_category_durations: bool = Field(
        False,
        description="Fall back to per-category visit durations before the default"
    )
    two_opt: bool = Field(
        False,
        description="Refine the greedy order with 2-opt"
    )
    two_opt_max_passes: int = Field(
        50,
        description="Upper bound on 2-opt improvement passes",
        ge=1
    )


class PreviewSettings(BaseModel):
    """Full-route preview options"""

    max_concurrent: int = Field(
        4,
        description="Maximum concurrent directions requests",
        ge=1,
        le=32
    )
    gateway_timeout_s: float = Field(
        15.0,
        description="Deadline for each leg request",
        gt=0
    )


class DirectionsSettings(BaseModel):
    """Directions provider configuration"""

    base_url: Optional[str] = Field(
        None,
        description="OSRM base URL (defaults to TRIPNAV_OSRM_URL or the public demo server)"
    )
    timeout: float = Field(
        15.0,
        description="HTTP timeout in seconds",
        gt=0
    )


class TripNavConfig(BaseModel):
    """Top-level TripNav configuration"""

    name: str = Field(
        "default",
        description="Configuration name"
    )
    navigation: NavigationSettings = Field(default_factory=NavigationSettings)
    optimizer: OptimizerSettings = Field(default_factory=OptimizerSettings)
    preview: PreviewSettings = Field(default_factory=PreviewSettings)
    directions: DirectionsSettings = Field(default_factory=DirectionsSettings)


class TripRequest(BaseModel):
    """A trip to plan: origin, transport mode and unordered stops"""

    origin: Coordinate = Field(
        ...,
        description="Starting point"
    )
    origin_address: str = Field(
        "",
        description="Starting address for display"
    )
    mode: TransportMode = Field(
        TransportMode.WALKING,
        description="Transport mode"
    )
    departure_time: Optional[datetime] = Field(
        None,
        description="Departure time (defaults to now)"
    )
    stops: List[Stop] = Field(
        default_factory=list,
        description="Stops to visit, in any order"
    )

    @field_validator('stops')
    def validate_unique_ids(cls, v):
        """Stop identifiers must be unique"""
        ids = [stop.id for stop in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate stop ids: {', '.join(duplicates)}")
        return v
