"""
Tests for complete multi-leg route calculation
"""

import asyncio
from datetime import datetime

import pytest

from tripnav.config.models import PreviewSettings
from tripnav.core.models import Coordinate, Stop, TransportMode
from tripnav.directions.gateway import DirectionsGateway, GatewayRequestError
from tripnav.directions.offline import StraightLineGateway
from tripnav.planning.optimizer import RouteOptimizer
from tripnav.planning.preview import CompleteRouteCalculator, PartialRouteError, RouteLegs

ORIGIN = Coordinate(latitude=0.0, longitude=0.0)


class FakeGateway(DirectionsGateway):
    """Straight-line legs with configurable failures, delays and concurrency tracking"""

    def __init__(self, fail_destinations=(), delays=None, hang_destinations=()):
        self.fail_destinations = set(fail_destinations)
        self.hang_destinations = set(hang_destinations)
        self.delays = delays or {}
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def route(self, source, destination, mode):
        self.calls.append((source, destination, mode))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if destination in self.hang_destinations:
                await asyncio.sleep(10)
            await asyncio.sleep(self.delays.get(destination, 0.01))
            if destination in self.fail_destinations:
                raise GatewayRequestError("No route found")
            return await StraightLineGateway().route(source, destination, mode)
        finally:
            self.active -= 1


def make_trip(count):
    stops = [
        Stop(id=f"s{i}", name=f"Stop {i}", coordinate=Coordinate(latitude=0.0, longitude=0.01 * i))
        for i in range(1, count + 1)
    ]
    return RouteOptimizer().optimize(ORIGIN, stops, TransportMode.WALKING, datetime(2024, 6, 1, 9, 0))


class TestCompleteRouteCalculator:
    """Test full-route resolution"""

    @pytest.mark.asyncio
    async def test_all_legs_resolved(self):
        """Test every leg is resolved in trip order"""
        trip = make_trip(3)
        gateway = FakeGateway()

        result = await CompleteRouteCalculator(gateway).calculate_full_route(trip)

        assert not result.is_partial
        assert result.error is None
        assert len(result.legs) == 3
        for index, leg in enumerate(result.legs):
            assert leg.source == trip.coordinates[index]
            assert leg.destination == trip.coordinates[index + 1]
        assert result.total_distance == pytest.approx(sum(leg.distance for leg in result.legs))
        assert len(result.steps) == 6
        result.raise_for_partial()

    @pytest.mark.asyncio
    async def test_middle_leg_failure(self):
        """Test a failed middle leg leaves a gap and a partial error"""
        trip = make_trip(3)
        gateway = FakeGateway(fail_destinations={trip.coordinates[2]})

        result = await CompleteRouteCalculator(gateway).calculate_full_route(trip)

        assert result.is_partial
        assert result.legs[0] is not None
        assert result.legs[1] is None
        assert result.legs[2] is not None
        assert result.failed_legs == {1: "No route found"}
        assert result.total_distance == pytest.approx(result.legs[0].distance + result.legs[2].distance)

        with pytest.raises(PartialRouteError) as exc_info:
            result.raise_for_partial()
        assert exc_info.value.failed_indices == [1]
        assert len(exc_info.value.legs) == 3

    @pytest.mark.asyncio
    async def test_order_independent_of_completion(self):
        """Test legs finishing out of order are still joined by index"""
        trip = make_trip(3)
        delays = {trip.coordinates[1]: 0.06, trip.coordinates[2]: 0.03, trip.coordinates[3]: 0.0}
        gateway = FakeGateway(delays=delays)

        result = await CompleteRouteCalculator(gateway).calculate_full_route(trip)

        assert [leg.destination for leg in result.legs] == trip.coordinates[1:]

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        """Test a hanging leg is reported after the deadline"""
        trip = make_trip(2)
        gateway = FakeGateway(hang_destinations={trip.coordinates[2]})
        settings = PreviewSettings(gateway_timeout_s=0.05)

        result = await CompleteRouteCalculator(gateway, settings).calculate_full_route(trip)

        assert result.legs[0] is not None
        assert result.legs[1] is None
        assert "timed out" in result.failed_legs[1]

    @pytest.mark.asyncio
    async def test_all_legs_fail(self):
        """Test total failure is still a partial result"""
        trip = make_trip(2)
        gateway = FakeGateway(fail_destinations=set(trip.coordinates[1:]))

        result = await CompleteRouteCalculator(gateway).calculate_full_route(trip)

        assert result.legs == [None, None]
        assert sorted(result.failed_legs) == [0, 1]
        assert result.total_distance == 0
        assert result.polyline == []

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        """Test no more than max_concurrent requests run at once"""
        trip = make_trip(6)
        gateway = FakeGateway()

        await CompleteRouteCalculator(gateway, PreviewSettings(max_concurrent=2)).calculate_full_route(trip)

        assert len(gateway.calls) == 6
        assert gateway.max_active <= 2

    @pytest.mark.asyncio
    async def test_empty_trip(self):
        """Test a trip without stops resolves to no legs"""
        gateway = FakeGateway()
        result = await CompleteRouteCalculator(gateway).calculate_full_route(make_trip(0))

        assert result == RouteLegs()
        assert gateway.calls == []
