"""
Directions providers for route legs
"""

from .gateway import (
    DirectionsGateway,
    GatewayError,
    GatewayRequestError,
    GatewayTimeoutError,
    request_leg,
)
from .client import OSRMDirectionsClient
from .translation import InstructionTranslator
from .offline import StraightLineGateway

__all__ = [
    "DirectionsGateway",
    "GatewayError",
    "GatewayRequestError",
    "GatewayTimeoutError",
    "request_leg",
    "OSRMDirectionsClient",
    "InstructionTranslator",
    "StraightLineGateway",
]
