"""
Greedy nearest-neighbor route optimizer
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from tripnav.config.models import OptimizerSettings
from tripnav.core.formatting import format_distance, format_duration
from tripnav.core.geo import distance_meters
from tripnav.core.models import Coordinate, OrderedStop, RouteLeg, Stop, TransportMode, Trip
from tripnav.core.travel import estimate_travel_time

# Visit durations in minutes, used when use_category_durations is enabled
CATEGORY_VISIT_MINUTES: Dict[str, float] = {
    "restaurant": 90,
    "cafe": 45,
    "bar": 120,
    "culture": 120,
    "museum": 120,
    "historical": 90,
    "shopping": 90,
    "entertainment": 120,
    "sport": 90,
    "nature": 120,
    "swimming_pool": 90,
    "climbing_gym": 120,
    "ice_rink": 90,
    "bowling": 90,
    "mini_golf": 60,
    "escape_room": 60,
    "laser_tag": 60,
    "paintball": 120,
    "karting": 60,
    "trampoline_park": 90,
    "water_park": 180,
    "adventure_park": 180,
    "zoo": 180,
    "aquarium": 120,
    "religious": 60,
}


class RouteOptimizer:
    """
    Orders stops from a fixed origin and estimates per-stop timing

    Ordering is greedy nearest-neighbor, O(N^2). It is not an optimal tour; the
    optional 2-opt pass shortens it but gives no optimality guarantee either.
    """

    def __init__(self, settings: Optional[OptimizerSettings] = None):
        self.settings = settings or OptimizerSettings()
        self.logger = logging.getLogger(__name__)

    def optimize(
        self,
        origin: Coordinate,
        stops: Sequence[Stop],
        mode: TransportMode,
        departure_time: Optional[datetime] = None,
        origin_address: str = "",
    ) -> Trip:
        """
        Build a trip visiting every stop once

        Args:
            origin: Fixed starting point
            stops: Stops in any order
            mode: Transport mode used for travel time estimates
            departure_time: Departure from the origin (defaults to now)
            origin_address: Display address of the origin

        Returns:
            Trip with stops in visiting order
        """
        if departure_time is None:
            departure_time = datetime.now()

        ordered = self.nearest_neighbor_order(origin, stops)
        if self.settings.two_opt and len(ordered) > 2:
            ordered = self.two_opt(origin, ordered)

        legs = self._estimate_legs(origin, ordered, mode)
        trip = self._build_trip(origin, origin_address, ordered, mode, departure_time, legs)

        if trip.stops:
            self.logger.info(
                f"Optimized {len(trip.stops)} stops by {mode.value}: "
                f"{format_distance(trip.total_distance)}, {format_duration(trip.estimated_duration)}"
            )
        return trip

    def reoptimize(
        self,
        trip: Trip,
        origin: Optional[Coordinate] = None,
        mode: Optional[TransportMode] = None,
        origin_address: Optional[str] = None,
        departure_time: Optional[datetime] = None,
    ) -> Trip:
        """Recompute a trip from its stops after the origin or mode changed"""
        return self.optimize(
            origin=origin or trip.origin,
            stops=trip.base_stops,
            mode=mode or trip.mode,
            departure_time=departure_time or trip.departure_time,
            origin_address=trip.origin_address if origin_address is None else origin_address,
        )

    def select_within_budget(
        self,
        origin: Coordinate,
        stops: Sequence[Stop],
        mode: TransportMode,
        max_duration: float,
    ) -> List[Stop]:
        """
        Choose stops that fit a time budget, favouring a mix of categories

        One stop per category is taken first (the one closest to the origin, categories
        in order of first appearance) while its travel and visit time still fit. Leftover
        time goes to the remaining stops, nearest first.

        Args:
            origin: Fixed starting point
            stops: Candidate stops
            mode: Transport mode used for travel time estimates
            max_duration: Budget in seconds for travel plus visits

        Returns:
            Selected stops in nearest-neighbor order
        """
        if max_duration < 0:
            raise ValueError(f"max_duration must not be negative, got {max_duration}")

        by_category: Dict[str, List[Stop]] = {}
        for stop in stops:
            by_category.setdefault(stop.category.lower(), []).append(stop)

        selected: List[Stop] = []
        elapsed = 0.0
        current = origin

        def cost(stop: Stop) -> float:
            travel = estimate_travel_time(distance_meters(current, stop.coordinate), mode)
            return travel + self.visit_duration(stop)

        for candidates in by_category.values():
            best = min(candidates, key=lambda stop: distance_meters(origin, stop.coordinate))
            needed = cost(best)
            if elapsed + needed <= max_duration:
                selected.append(best)
                elapsed += needed
                current = best.coordinate

        chosen_ids = {stop.id for stop in selected}
        leftovers = sorted(
            (stop for stop in stops if stop.id not in chosen_ids),
            key=lambda stop: distance_meters(current, stop.coordinate),
        )
        for stop in leftovers:
            needed = cost(stop)
            if elapsed + needed <= max_duration:
                selected.append(stop)
                elapsed += needed
                current = stop.coordinate

        ordered = self.nearest_neighbor_order(origin, selected)

        # Reordering changes the travel legs; drop the latest picks until the tour fits again
        while ordered and self._tour_duration(origin, ordered, mode) > max_duration:
            selected.pop()
            ordered = self.nearest_neighbor_order(origin, selected)

        self.logger.info(
            f"Selected {len(ordered)} of {len(stops)} stops within {format_duration(max_duration)} "
            f"({len({stop.category.lower() for stop in ordered})} categories)"
        )
        return ordered

    def optimize_within_budget(
        self,
        origin: Coordinate,
        stops: Sequence[Stop],
        mode: TransportMode,
        max_duration: float,
        departure_time: Optional[datetime] = None,
        origin_address: str = "",
    ) -> Trip:
        """Build a trip from the stops select_within_budget() keeps"""
        selected = self.select_within_budget(origin, stops, mode, max_duration)
        return self.optimize(
            origin=origin,
            stops=selected,
            mode=mode,
            departure_time=departure_time,
            origin_address=origin_address,
        )

    def apply_routed_legs(self, trip: Trip, legs: Sequence[Optional[RouteLeg]]) -> Trip:
        """
        Replace heuristic leg figures with routed ones

        Args:
            trip: Trip produced by optimize()
            legs: One entry per stop, None where the leg is unresolved

        Returns:
            New trip with the same order and refreshed timing
        """
        if len(legs) != len(trip.stops):
            raise ValueError(f"Expected {len(trip.stops)} legs, got {len(legs)}")

        ordered = trip.base_stops
        estimates = self._estimate_legs(trip.origin, ordered, trip.mode)
        figures = [
            (leg.distance, leg.duration) if leg is not None else estimate
            for leg, estimate in zip(legs, estimates)
        ]
        return self._build_trip(
            trip.origin, trip.origin_address, ordered, trip.mode, trip.departure_time, figures
        )

    @staticmethod
    def nearest_neighbor_order(origin: Coordinate, stops: Sequence[Stop]) -> List[Stop]:
        """Greedy order; ties go to the stop that came first in the input"""
        remaining = list(stops)
        ordered: List[Stop] = []
        current = origin

        while remaining:
            best_index = 0
            best_distance = float("inf")
            for index, stop in enumerate(remaining):
                distance = distance_meters(current, stop.coordinate)
                if distance < best_distance:
                    best_distance = distance
                    best_index = index

            nearest = remaining.pop(best_index)
            ordered.append(nearest)
            current = nearest.coordinate

        return ordered

    def two_opt(self, origin: Coordinate, ordered: List[Stop]) -> List[Stop]:
        """Improve an open tour starting at origin by reversing segments"""
        route = list(ordered)
        points = [origin] + [stop.coordinate for stop in route]

        def dist(i: int, j: int) -> float:
            return distance_meters(points[i], points[j])

        for _ in range(self.settings.two_opt_max_passes):
            improved = False
            # Positions in points; 0 is the fixed origin
            for i in range(1, len(points) - 1):
                for k in range(i + 1, len(points)):
                    before = dist(i - 1, i)
                    after = dist(i - 1, k)
                    if k + 1 < len(points):
                        before += dist(k, k + 1)
                        after += dist(i, k + 1)
                    if after < before - 1e-6:
                        points[i:k + 1] = reversed(points[i:k + 1])
                        route[i - 1:k] = reversed(route[i - 1:k])
                        improved = True
            if not improved:
                break

        return route

    def visit_duration(self, stop: Stop) -> float:
        """Visit duration in seconds for a stop"""
        if stop.recommended_visit_duration is not None:
            return stop.recommended_visit_duration

        if self.settings.use_category_durations:
            minutes = CATEGORY_VISIT_MINUTES.get(stop.category.lower())
            if minutes is not None:
                return minutes * 60

        return self.settings.default_visit_minutes * 60

    @staticmethod
    def _estimate_legs(origin: Coordinate, ordered: Sequence[Stop], mode: TransportMode):
        legs = []
        current = origin
        for stop in ordered:
            distance = distance_meters(current, stop.coordinate)
            legs.append((distance, estimate_travel_time(distance, mode)))
            current = stop.coordinate
        return legs

    def _build_trip(self, origin, origin_address, ordered, mode, departure_time, legs) -> Trip:
        ordered_stops: List[OrderedStop] = []
        clock = departure_time

        for index, (stop, (distance, travel_time)) in enumerate(zip(ordered, legs), start=1):
            visit = self.visit_duration(stop)
            arrival = clock + timedelta(seconds=travel_time)
            departure = arrival + timedelta(seconds=visit)

            ordered_stops.append(OrderedStop(
                stop=stop,
                sequence_index=index,
                distance_from_previous=distance,
                travel_time_from_previous=travel_time,
                visit_duration=visit,
                estimated_arrival_time=arrival,
                estimated_departure_time=departure,
            ))
            clock = departure

        return Trip(
            origin=origin,
            origin_address=origin_address,
            stops=ordered_stops,
            mode=mode,
            departure_time=departure_time,
        )

    def _tour_duration(self, origin: Coordinate, ordered: Sequence[Stop], mode: TransportMode) -> float:
        legs = self._estimate_legs(origin, ordered, mode)
        return sum(travel for _, travel in legs) + sum(self.visit_duration(stop) for stop in ordered)
