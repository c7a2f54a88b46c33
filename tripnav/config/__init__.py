"""
TripNav Configuration Module
Handles YAML/JSON configuration and trip request files
"""

from .models import (
    DirectionsSettings,
    NavigationSettings,
    OptimizerSettings,
    PreviewSettings,
    TripNavConfig,
    TripRequest,
)
from .parser import ConfigParser, ConfigParserError
from .manager import ConfigManager, ConfigManagerError

__all__ = [
    "DirectionsSettings",
    "NavigationSettings",
    "OptimizerSettings",
    "PreviewSettings",
    "TripNavConfig",
    "TripRequest",
    "ConfigParser",
    "ConfigParserError",
    "ConfigManager",
    "ConfigManagerError",
]
