"""
Tests for the OSRM directions client
"""

import json
import os
from unittest.mock import Mock, patch

import httpx
import pytest

from tripnav.core.models import Coordinate, RouteLeg, TransportMode
from tripnav.directions.client import OSRMDirectionsClient
from tripnav.directions.gateway import GatewayRequestError

SOURCE = Coordinate(latitude=48.8606, longitude=2.3376)
DESTINATION = Coordinate(latitude=48.8530, longitude=2.3499)


@pytest.fixture
def osrm_response():
    """Minimal OSRM route response with three steps"""
    return {
        "code": "Ok",
        "routes": [{
            "distance": 1250.4,
            "duration": 900.2,
            "geometry": {
                "type": "LineString",
                "coordinates": [[2.3376, 48.8606], [2.3410, 48.8580], [2.3499, 48.8530]],
            },
            "legs": [{
                "steps": [
                    {
                        "name": "Rue de Rivoli",
                        "distance": 400.0,
                        "duration": 290.0,
                        "maneuver": {"type": "depart", "bearing_after": 92, "location": [2.3376, 48.8606]},
                    },
                    {
                        "name": "Pont Neuf",
                        "distance": 850.4,
                        "duration": 610.2,
                        "maneuver": {"type": "turn", "modifier": "right", "location": [2.3410, 48.8580]},
                    },
                    {
                        "name": "",
                        "distance": 0.0,
                        "duration": 0.0,
                        "maneuver": {"type": "arrive", "modifier": "left", "location": [2.3499, 48.8530]},
                    },
                ],
            }],
        }],
    }


def mock_get_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestOSRMDirectionsClient:
    """Test OSRM directions client"""

    def test_client_initialization(self):
        """Test default configuration"""
        with patch.dict(os.environ, {}, clear=True):
            client = OSRMDirectionsClient()
        assert client.base_url == "https://router.project-osrm.org"
        assert client.timeout == 15

    def test_client_initialization_from_env(self):
        """Test base URL from environment"""
        with patch.dict(os.environ, {"TRIPNAV_OSRM_URL": "http://localhost:5000/"}):
            client = OSRMDirectionsClient()
        assert client.base_url == "http://localhost:5000"

    def test_build_url(self):
        """Test URL uses lon,lat order and mode profile"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")
        url = client.build_url(SOURCE, DESTINATION, TransportMode.WALKING)
        assert url == "http://osrm.test/route/v1/foot/2.3376,48.8606;2.3499,48.853"

    @pytest.mark.parametrize("mode,profile", [
        (TransportMode.WALKING, "foot"),
        (TransportMode.CYCLING, "bike"),
        (TransportMode.DRIVING, "driving"),
        (TransportMode.PUBLIC_TRANSPORT, "driving"),
    ])
    def test_profiles(self, mode, profile):
        """Test profile mapping per transport mode"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")
        assert f"/route/v1/{profile}/" in client.build_url(SOURCE, DESTINATION, mode)

    def test_profile_override(self):
        """Test custom profile table entries"""
        client = OSRMDirectionsClient(base_url="http://osrm.test", profiles={TransportMode.CYCLING: "cycling"})
        assert "/route/v1/cycling/" in client.build_url(SOURCE, DESTINATION, TransportMode.CYCLING)

    @pytest.mark.asyncio
    async def test_route_success(self, osrm_response):
        """Test successful route parsing"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = mock_get_response(osrm_response)

            leg = await client.route(SOURCE, DESTINATION, TransportMode.WALKING)

            assert isinstance(leg, RouteLeg)
            assert leg.source == SOURCE
            assert leg.destination == DESTINATION
            assert leg.distance == 1250.4
            assert leg.duration == 900.2
            assert len(leg.polyline) == 3
            assert leg.polyline[0] == Coordinate(latitude=48.8606, longitude=2.3376)

            assert [step.instruction for step in leg.steps] == [
                "Head east on Rue de Rivoli",
                "Turn right onto Pont Neuf",
                "Arrive at destination, on the left",
            ]
            assert leg.steps[1].street_name == "Pont Neuf"
            assert leg.steps[1].location == Coordinate(latitude=48.8580, longitude=2.3410)

            params = mock_get.call_args.kwargs["params"]
            assert params["steps"] == "true"
            assert params["geometries"] == "geojson"

    @pytest.mark.asyncio
    async def test_route_no_route(self):
        """Test OSRM error code"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = mock_get_response({"code": "NoRoute", "message": "Impossible route"})

            with pytest.raises(GatewayRequestError, match="Impossible route") as exc_info:
                await client.route(SOURCE, DESTINATION, TransportMode.WALKING)

            assert exc_info.value.source == SOURCE
            assert exc_info.value.destination == DESTINATION

    @pytest.mark.asyncio
    async def test_route_http_error(self):
        """Test HTTP failure"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.side_effect = httpx.ConnectError("Connection refused")

            with pytest.raises(GatewayRequestError, match="HTTP error"):
                await client.route(SOURCE, DESTINATION, TransportMode.WALKING)

    @pytest.mark.asyncio
    async def test_route_malformed_response(self):
        """Test response without routes"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = mock_get_response({"code": "Ok", "routes": []})

            with pytest.raises(GatewayRequestError, match="Malformed OSRM response"):
                await client.route(SOURCE, DESTINATION, TransportMode.WALKING)

    @pytest.mark.asyncio
    async def test_route_invalid_json(self):
        """Test a body that is not JSON, such as a proxy error page"""
        client = OSRMDirectionsClient(base_url="http://osrm.test")

        with patch("httpx.AsyncClient.get") as mock_get:
            response = mock_get_response(None)
            response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
            mock_get.return_value = response

            with pytest.raises(GatewayRequestError, match="Invalid OSRM response") as exc_info:
                await client.route(SOURCE, DESTINATION, TransportMode.WALKING)

            assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_route_non_object_json(self):
        client = OSRMDirectionsClient(base_url="http://osrm.test")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = mock_get_response(["Ok"])

            with pytest.raises(GatewayRequestError, match="expected a JSON object"):
                await client.route(SOURCE, DESTINATION, TransportMode.WALKING)


class TestDescribeManeuver:
    """Test instruction text composed from OSRM maneuvers"""

    @pytest.mark.parametrize("maneuver,street,expected", [
        ({"type": "depart", "bearing_after": 0}, "", "Head north"),
        ({"type": "depart", "bearing_after": 225}, "Quai", "Head southwest on Quai"),
        ({"type": "depart"}, "", "Head out"),
        ({"type": "turn", "modifier": "left"}, "Rue X", "Turn left onto Rue X"),
        ({"type": "turn", "modifier": "slight right"}, "", "Turn slight right"),
        ({"type": "continue"}, "Avenue Y", "Continue straight onto Avenue Y"),
        ({"type": "new name", "modifier": "straight"}, "", "Continue straight"),
        ({"type": "turn", "modifier": "uturn"}, "", "Make a U-turn"),
        ({"type": "roundabout", "exit": 2}, "Rue Z", "Enter the roundabout and take exit 2 onto Rue Z"),
        ({"type": "rotary"}, "", "Enter the roundabout"),
        ({"type": "arrive"}, "", "Arrive at destination"),
        ({"type": "arrive", "modifier": "right"}, "", "Arrive at destination, on the right"),
    ])
    def test_describe(self, maneuver, street, expected):
        assert OSRMDirectionsClient.describe_maneuver(maneuver, street) == expected
