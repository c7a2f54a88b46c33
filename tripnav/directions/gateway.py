"""
Directions gateway interface and request helpers
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from tripnav.core.models import Coordinate, RouteLeg, TransportMode

DEFAULT_GATEWAY_TIMEOUT = 15.0

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception for directions gateway failures"""

    def __init__(
        self,
        message: str,
        source: Optional[Coordinate] = None,
        destination: Optional[Coordinate] = None,
    ):
        super().__init__(message)
        self.source = source
        self.destination = destination


class GatewayRequestError(GatewayError):
    """The directions provider rejected or failed the request"""
    pass


class GatewayTimeoutError(GatewayError):
    """The directions provider did not answer within the deadline"""
    pass


class DirectionsGateway(ABC):
    """Source of routed legs between two coordinates"""

    @abstractmethod
    async def route(
        self,
        source: Coordinate,
        destination: Coordinate,
        mode: TransportMode
    ) -> RouteLeg:
        """
        Route between two coordinates

        Args:
            source: Leg start
            destination: Leg end
            mode: Transport mode

        Returns:
            RouteLeg with polyline and steps

        Raises:
            GatewayRequestError: If no route could be produced
        """
        pass


async def request_leg(
    gateway: DirectionsGateway,
    source: Coordinate,
    destination: Coordinate,
    mode: TransportMode,
    timeout: Optional[float] = DEFAULT_GATEWAY_TIMEOUT,
) -> RouteLeg:
    """
    Call the gateway with a deadline and normalise its failures

    Raises:
        GatewayTimeoutError: If the call exceeds `timeout` seconds
        GatewayRequestError: For any other gateway failure
    """
    try:
        return await asyncio.wait_for(gateway.route(source, destination, mode), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Directions request {source} -> {destination} timed out after {timeout}s")
        raise GatewayTimeoutError(
            f"Directions request timed out after {timeout}s",
            source=source,
            destination=destination,
        )
    except GatewayError:
        raise
    except Exception as e:
        logger.error(f"Directions request {source} -> {destination} failed: {e}")
        raise GatewayRequestError(str(e), source=source, destination=destination) from e
