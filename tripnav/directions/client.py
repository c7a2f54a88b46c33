"""
OSRM directions client
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from tripnav.core.models import Coordinate, RouteLeg, Step, TransportMode

from .gateway import DirectionsGateway, GatewayRequestError

DEFAULT_OSRM_URL = "https://router.project-osrm.org"

# OSRM has no transit profile; public transport falls back to the road network
OSRM_PROFILES: Dict[TransportMode, str] = {
    TransportMode.WALKING: "foot",
    TransportMode.CYCLING: "bike",
    TransportMode.DRIVING: "driving",
    TransportMode.PUBLIC_TRANSPORT: "driving",
}

COMPASS_POINTS = ["north", "northeast", "east", "southeast", "south", "southwest", "west", "northwest"]


class OSRMDirectionsClient(DirectionsGateway):
    """
    Async client for the OSRM route service
    Converts OSRM routes into RouteLeg objects with English instruction text
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 15,
        profiles: Optional[Dict[TransportMode, str]] = None,
    ):
        self.base_url = (base_url or os.getenv("TRIPNAV_OSRM_URL") or DEFAULT_OSRM_URL).rstrip("/")
        self.timeout = timeout
        self.profiles = dict(OSRM_PROFILES)
        if profiles:
            self.profiles.update(profiles)
        self.logger = logging.getLogger(__name__)

    def build_url(self, source: Coordinate, destination: Coordinate, mode: TransportMode) -> str:
        """OSRM route URL; OSRM expects lon,lat order"""
        profile = self.profiles[mode]
        coords = f"{source.longitude},{source.latitude};{destination.longitude},{destination.latitude}"
        return f"{self.base_url}/route/v1/{profile}/{coords}"

    async def route(
        self,
        source: Coordinate,
        destination: Coordinate,
        mode: TransportMode
    ) -> RouteLeg:
        """
        Request a route from OSRM

        Args:
            source: Leg start
            destination: Leg end
            mode: Transport mode

        Returns:
            RouteLeg built from the first OSRM route

        Raises:
            GatewayRequestError: On HTTP errors or unusable responses
        """
        url = self.build_url(source, destination, mode)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    url,
                    params={
                        "overview": "full",
                        "geometries": "geojson",
                        "steps": "true",
                    }
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPError as e:
            self.logger.error(f"HTTP error requesting route {source} -> {destination}: {e}")
            raise GatewayRequestError(f"HTTP error: {e}", source=source, destination=destination) from e
        except ValueError as e:
            self.logger.error(f"Invalid JSON in OSRM response {source} -> {destination}: {e}")
            raise GatewayRequestError(
                f"Invalid OSRM response: {e}", source=source, destination=destination
            ) from e

        if not isinstance(data, dict):
            self.logger.error(f"Unexpected OSRM response for {source} -> {destination}: {type(data).__name__}")
            raise GatewayRequestError(
                "Invalid OSRM response: expected a JSON object", source=source, destination=destination
            )

        if data.get("code") != "Ok":
            message = data.get("message", data.get("code", "Unknown error"))
            self.logger.warning(f"OSRM returned no route {source} -> {destination}: {message}")
            raise GatewayRequestError(f"OSRM error: {message}", source=source, destination=destination)

        try:
            return self._parse_route(data, source, destination)
        except (KeyError, IndexError, TypeError, ValidationError) as e:
            self.logger.error(f"Error parsing OSRM response for {source} -> {destination}: {e}")
            raise GatewayRequestError(
                f"Malformed OSRM response: {e}", source=source, destination=destination
            ) from e

    def _parse_route(self, data: Dict[str, Any], source: Coordinate, destination: Coordinate) -> RouteLeg:
        """Parse the first route of an OSRM response"""
        route = data["routes"][0]

        polyline = [
            Coordinate(latitude=lat, longitude=lon)
            for lon, lat in route.get("geometry", {}).get("coordinates", [])
        ]

        steps: List[Step] = []
        for leg in route.get("legs", []):
            for raw_step in leg.get("steps", []):
                steps.append(self._parse_step(raw_step))

        return RouteLeg(
            source=source,
            destination=destination,
            polyline=polyline,
            steps=steps,
            reported_distance=route.get("distance"),
            reported_duration=route.get("duration"),
        )

    def _parse_step(self, raw_step: Dict[str, Any]) -> Step:
        maneuver = raw_step["maneuver"]
        lon, lat = maneuver["location"]
        name = raw_step.get("name") or ""

        return Step(
            instruction=self.describe_maneuver(maneuver, name),
            distance=raw_step.get("distance", 0.0),
            duration=raw_step.get("duration", 0.0),
            street_name=name,
            location=Coordinate(latitude=lat, longitude=lon),
        )

    @staticmethod
    def describe_maneuver(maneuver: Dict[str, Any], street_name: str = "") -> str:
        """
        Build English instruction text for an OSRM maneuver

        OSRM only returns maneuver types and modifiers, so the text is composed here
        from the same phrases the instruction translator knows about.
        """
        maneuver_type = maneuver.get("type", "")
        modifier = maneuver.get("modifier", "")
        onto = f" onto {street_name}" if street_name else ""

        if maneuver_type == "depart":
            bearing = maneuver.get("bearing_after")
            if bearing is None:
                return f"Head toward {street_name}" if street_name else "Head out"
            direction = COMPASS_POINTS[int(((bearing % 360) + 22.5) // 45) % 8]
            on = f" on {street_name}" if street_name else ""
            return f"Head {direction}{on}"

        if maneuver_type == "arrive":
            if modifier in ("left", "sharp left", "slight left"):
                return "Arrive at destination, on the left"
            if modifier in ("right", "sharp right", "slight right"):
                return "Arrive at destination, on the right"
            return "Arrive at destination"

        if maneuver_type in ("roundabout", "rotary"):
            exit_number = maneuver.get("exit")
            if exit_number:
                return f"Enter the roundabout and take exit {exit_number}{onto}"
            return f"Enter the roundabout{onto}"

        if modifier == "straight" or (maneuver_type in ("continue", "new name") and not modifier):
            return f"Continue straight{onto}"

        if modifier == "uturn":
            return f"Make a U-turn{onto}"

        if modifier:
            return f"Turn {modifier}{onto}"

        return f"Continue straight{onto}"
