"""
Live turn-by-turn navigation session
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set, Tuple, Union

from tripnav.config.models import NavigationSettings
from tripnav.core.geo import distance_meters, distance_to_polyline, polyline_length, progress_along_polyline
from tripnav.core.models import Coordinate, LocationFix, NavigationStatus, OrderedStop, RouteLeg, Step, Trip
from tripnav.core.travel import estimate_travel_time
from tripnav.directions.gateway import DirectionsGateway, GatewayError, request_leg
from tripnav.directions.translation import InstructionTranslator

from .location import GeolocationSource
from .state import NavigationState

Subscriber = Callable[[NavigationState], Any]


class StaleResultDiscarded(Exception):
    """A directions result arrived for a superseded generation"""
    pass


@dataclass(frozen=True)
class LegRequest:
    """A leg request as issued, kept so a retry can repeat it exactly"""

    destination_index: int
    source: Coordinate
    destination: Coordinate


@dataclass(frozen=True)
class _Event:
    kind: str
    payload: Any = None
    generation: int = 0


class NavigationSession:
    """
    Navigation state machine over a trip

    All state changes happen on a single consumer task that processes events in the
    order they were submitted. The public event methods (start, on_location_update,
    retry, cancel) never block; directions requests run as separate tasks and their
    results re-enter the queue tagged with the generation they were issued under.
    """

    def __init__(
        self,
        gateway: DirectionsGateway,
        settings: Optional[NavigationSettings] = None,
        translator: Optional[InstructionTranslator] = None,
    ):
        self.gateway = gateway
        self.settings = settings or NavigationSettings()
        self.translator = translator or InstructionTranslator(self.settings.locale)
        self.logger = logging.getLogger(__name__)

        self._status = NavigationStatus.IDLE
        self._trip: Optional[Trip] = None
        self._index = 0
        self._active_leg: Optional[RouteLeg] = None
        self._last_location: Optional[Coordinate] = None
        self._latest_fix_time = None
        self._generation = 0
        self._pending_request: Optional[LegRequest] = None
        self._attempts = 0
        self._error: Optional[GatewayError] = None

        self._step_index = 0
        self._current_instruction: Optional[str] = None
        self._next_instruction: Optional[str] = None
        self._distance_to_next_step: Optional[float] = None
        self._distance_to_destination: Optional[float] = None
        self._eta: Optional[float] = None

        self._subscribers: List[Subscriber] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        """Start the event-processing task"""
        if self._worker is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._worker = self._loop.create_task(self._run())

    async def close(self) -> None:
        """Stop event processing and abandon in-flight requests"""
        for task in list(self._inflight):
            task.cancel()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._queue = None

    async def settle(self) -> None:
        """Wait until queued events and in-flight requests have been processed"""
        if self._queue is None:
            return
        while True:
            await self._queue.join()
            if self._inflight:
                await asyncio.gather(*list(self._inflight), return_exceptions=True)
                continue
            if self._queue.empty():
                return

    async def follow(self, source: GeolocationSource) -> None:
        """Feed every fix from a geolocation source into the session"""
        await source.start()
        try:
            async for fix in source.fixes():
                self.on_location_update(fix)
        finally:
            await source.stop()

    # ------------------------------------------------------------------
    # Public events

    def start(self, trip: Trip) -> None:
        """Begin navigating a trip from its origin"""
        self._submit(_Event("start", trip))

    def on_location_update(self, location: Union[LocationFix, Coordinate]) -> None:
        """Submit a location; safe to call from any thread"""
        if isinstance(location, Coordinate):
            location = LocationFix(coordinate=location)
        self._submit(_Event("location", location))

    def retry(self) -> None:
        """Re-issue the failed leg request"""
        self._submit(_Event("retry"))

    def cancel(self) -> None:
        """Stop navigating; in-flight results will be discarded"""
        self._submit(_Event("cancel"))

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a state observer

        Returns:
            Function that removes the observer
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Observable state

    @property
    def status(self) -> NavigationStatus:
        return self._status

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_destination_index(self) -> int:
        return self._index

    @property
    def active_leg(self) -> Optional[RouteLeg]:
        return self._active_leg

    @property
    def last_known_location(self) -> Optional[Coordinate]:
        return self._last_location

    @property
    def current_destination(self) -> Optional[OrderedStop]:
        if self._trip is None or self._index >= len(self._trip.stops):
            return None
        return self._trip.stops[self._index]

    @property
    def state(self) -> NavigationState:
        destination = self.current_destination
        return NavigationState(
            status=self._status,
            generation=self._generation,
            current_destination_index=self._index,
            stop_count=len(self._trip.stops) if self._trip else 0,
            destination=destination.stop if destination else None,
            active_leg=self._active_leg,
            last_known_location=self._last_location,
            current_instruction=self._current_instruction,
            next_instruction=self._next_instruction,
            distance_to_next_step=self._distance_to_next_step,
            distance_to_destination=self._distance_to_destination,
            eta_seconds=self._eta,
            error=self._error,
        )

    def detailed_instructions(self) -> List[str]:
        """Every step of the active leg with a done/current/pending marker"""
        if self._active_leg is None:
            return []

        lines = []
        for index, step in enumerate(self._active_leg.steps):
            if index < self._step_index:
                marker = "✓"
            elif index == self._step_index:
                marker = "➜"
            else:
                marker = "·"
            text = self.translator.translate(step.instruction)
            lines.append(f"{marker} Step {index + 1}: {text} ({step.distance:.0f} m)")
        return lines

    # ------------------------------------------------------------------
    # Event processing

    def _submit(self, event: _Event) -> None:
        if self._queue is None or self._loop is None:
            raise RuntimeError("Navigation session is not running; use 'async with session' or await open()")

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._queue.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self._dispatch(event)
            except StaleResultDiscarded as e:
                self.logger.debug(str(e))
            except Exception as e:
                self.logger.error(f"Error handling {event.kind} event: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def _dispatch(self, event: _Event) -> None:
        if event.kind == "start":
            self._handle_start(event.payload)
        elif event.kind == "location":
            self._handle_location(event.payload)
        elif event.kind == "retry":
            self._handle_retry()
        elif event.kind == "cancel":
            self._handle_cancel()
        elif event.kind == "route_result":
            self._handle_route_result(event.generation, event.payload)
        else:
            raise ValueError(f"Unknown event kind: {event.kind}")

    def _handle_start(self, trip: Trip) -> None:
        self._generation += 1
        self._trip = trip
        self._index = 0
        self._active_leg = None
        self._error = None
        self._clear_guidance()

        if not trip.stops:
            self.logger.info("Trip has no stops; nothing to navigate")
            self._current_instruction = self.translator.message("completed")
            self._set_status(NavigationStatus.COMPLETED)
            return

        self.logger.info(f"Starting navigation over {len(trip.stops)} stops by {trip.mode.value}")
        self._request_leg(LegRequest(0, trip.origin, trip.stops[0].coordinate))

    def _handle_cancel(self) -> None:
        self._generation += 1
        self._trip = None
        self._index = 0
        self._active_leg = None
        self._pending_request = None
        self._error = None
        self._clear_guidance()
        self.logger.info("Navigation cancelled")
        self._set_status(NavigationStatus.IDLE)

    def _handle_retry(self) -> None:
        if self._status != NavigationStatus.ROUTING_FAILED or self._pending_request is None:
            self.logger.warning(f"Retry ignored in state {self._status.value}")
            return

        self.logger.info(f"Retrying leg to stop {self._pending_request.destination_index}")
        self._attempts = 0
        self._request_leg(self._pending_request)

    def _handle_location(self, fix: LocationFix) -> None:
        if not self._accept_fix(fix):
            return

        location = fix.coordinate
        self._last_location = location

        if self._status not in (NavigationStatus.ROUTING_IN_PROGRESS, NavigationStatus.NAVIGATING):
            self._publish()
            return

        destination = self.current_destination
        distance = distance_meters(location, destination.coordinate)
        if distance < self.settings.arrival_threshold_m:
            self._arrive(location)
            return

        if self._status == NavigationStatus.NAVIGATING and self._active_leg is not None:
            if self._is_off_route(location):
                self.logger.info(f"Off route near {location}; re-routing to stop {self._index}")
                self._active_leg = None
                self._request_leg(LegRequest(self._index, location, destination.coordinate))
                return
            self._update_guidance(location)
        else:
            self._distance_to_destination = distance

        self._publish()

    def _handle_route_result(self, generation: int, result: Union[RouteLeg, GatewayError]) -> None:
        if generation != self._generation:
            raise StaleResultDiscarded(
                f"Discarded directions result from generation {generation} (current {self._generation})"
            )

        if isinstance(result, GatewayError):
            self._attempts += 1
            if self._attempts <= self.settings.auto_retries:
                self.logger.warning(
                    f"Leg to stop {self._pending_request.destination_index} failed ({result}); "
                    f"automatic retry {self._attempts}/{self.settings.auto_retries}"
                )
                self._request_leg(self._pending_request, reset_attempts=False)
                return

            self.logger.error(f"Routing to stop {self._pending_request.destination_index} failed: {result}")
            self._error = result
            self._set_status(NavigationStatus.ROUTING_FAILED)
            return

        self._attempts = 0
        self._error = None
        self._active_leg = result
        self._step_index = 0
        self.logger.info(
            f"Leg to stop {self._index} ready: {len(result.steps)} steps, {result.distance:.0f} m"
        )
        self._status = NavigationStatus.NAVIGATING
        self._update_guidance(self._last_location or result.source)
        self._publish()

    # ------------------------------------------------------------------
    # Transitions

    def _request_leg(self, request: LegRequest, reset_attempts: bool = True) -> None:
        self._generation += 1
        self._pending_request = request
        if reset_attempts:
            self._attempts = 0
        self._set_status(NavigationStatus.ROUTING_IN_PROGRESS)

        task = self._loop.create_task(self._fetch_leg(self._generation, request, self._trip.mode))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _fetch_leg(self, generation: int, request: LegRequest, mode) -> None:
        try:
            result = await request_leg(
                self.gateway,
                request.source,
                request.destination,
                mode,
                timeout=self.settings.gateway_timeout_s,
            )
        except GatewayError as e:
            result = e
        if self._queue is not None:
            self._queue.put_nowait(_Event("route_result", result, generation))

    def _arrive(self, location: Coordinate) -> None:
        arrived = self.current_destination
        self.logger.info(f"Arrived at stop {self._index} ({arrived.name})")

        self._active_leg = None
        self._clear_guidance()
        self._current_instruction = self.translator.message("arrived")
        self._set_status(NavigationStatus.ARRIVED_AT_STOP)

        if self._index + 1 < len(self._trip.stops):
            self._index += 1
            self._request_leg(LegRequest(self._index, location, self._trip.stops[self._index].coordinate))
        else:
            self._generation += 1
            self._pending_request = None
            self._current_instruction = self.translator.message("completed")
            self.logger.info("All stops visited; navigation complete")
            self._set_status(NavigationStatus.COMPLETED)

    def _set_status(self, status: NavigationStatus) -> None:
        if status != self._status:
            self.logger.debug(f"Status {self._status.value} -> {status.value}")
        self._status = status
        self._publish()

    def _publish(self) -> None:
        if not self._subscribers:
            return
        state = self.state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception as e:
                self.logger.error(f"Navigation subscriber raised: {e}")

    # ------------------------------------------------------------------
    # Guidance

    def _accept_fix(self, fix: LocationFix) -> bool:
        max_accuracy = self.settings.max_fix_accuracy_m
        if max_accuracy is not None and fix.accuracy is not None and fix.accuracy > max_accuracy:
            self.logger.debug(f"Ignoring fix with accuracy {fix.accuracy:.0f} m")
            return False

        if fix.timestamp is not None:
            if self._latest_fix_time is None or fix.timestamp > self._latest_fix_time:
                self._latest_fix_time = fix.timestamp
            max_age = self.settings.max_fix_age_s
            age = (self._latest_fix_time - fix.timestamp).total_seconds()
            if max_age is not None and age > max_age:
                self.logger.debug(f"Ignoring fix {age:.1f}s older than the newest")
                return False

        return True

    def _is_off_route(self, location: Coordinate) -> bool:
        threshold = self.settings.off_route_threshold_m
        if threshold is None or not self._active_leg.polyline:
            return False
        return distance_to_polyline(location, self._active_leg.polyline) > threshold

    def _clear_guidance(self) -> None:
        self._step_index = 0
        self._current_instruction = None
        self._next_instruction = None
        self._distance_to_next_step = None
        self._distance_to_destination = None
        self._eta = None

    def _update_guidance(self, location: Coordinate) -> None:
        leg = self._active_leg
        steps = leg.steps

        if not steps:
            remaining = distance_meters(location, leg.destination)
            self._current_instruction = self.translator.message("continue")
            self._next_instruction = self.translator.message("arrive")
            self._distance_to_next_step = remaining
            self._distance_to_destination = remaining
            self._eta = self._estimate_eta(remaining)
            return

        if all(step.location is not None for step in steps):
            to_step = self._advance_by_maneuvers(location, steps)
            remaining = to_step + sum(s.distance for s in steps[self._step_index:])
        else:
            to_step, remaining = self._advance_along_polyline(location, steps)

        if leg.distance > 0:
            remaining = min(remaining, leg.distance)

        step = steps[self._step_index]
        self._current_instruction = self.translator.translate(step.instruction)
        if self._step_index + 1 < len(steps):
            self._next_instruction = self.translator.translate(steps[self._step_index + 1].instruction)
        else:
            self._next_instruction = self.translator.message("arrive")

        self._distance_to_next_step = min(to_step, remaining)
        self._distance_to_destination = remaining
        self._eta = self._estimate_eta(remaining)

    def _advance_by_maneuvers(self, location: Coordinate, steps: List[Step]) -> float:
        """Step progress from maneuver points; returns meters to the current maneuver"""
        # Jump to the nearest upcoming maneuver, never backwards
        nearest = min(
            range(self._step_index, len(steps)),
            key=lambda i: distance_meters(location, steps[i].location),
        )
        self._step_index = max(self._step_index, nearest)

        # A maneuver within the step threshold counts as passed
        while (
            self._step_index < len(steps) - 1
            and distance_meters(location, steps[self._step_index].location)
            < self.settings.step_advance_threshold_m
        ):
            self._step_index += 1

        return distance_meters(location, steps[self._step_index].location)

    def _advance_along_polyline(self, location: Coordinate, steps: List[Step]) -> Tuple[float, float]:
        """
        Step progress from the position along the leg polyline

        Used when the provider gives no maneuver points. Step k's maneuver lies where
        steps 0..k-1 end, measured in step distances scaled onto the polyline.

        Returns:
            (meters to the current maneuver, meters left on the leg)
        """
        leg = self._active_leg
        polyline = leg.polyline if len(leg.polyline) >= 2 else [leg.source, leg.destination]
        length = polyline_length(polyline)
        fraction = progress_along_polyline(location, polyline) / length if length > 0 else 0.0

        total = sum(step.distance for step in steps)
        travelled = fraction * total

        upcoming = len(steps) - 1
        maneuver_at = 0.0
        for index in range(1, len(steps)):
            maneuver_at += steps[index - 1].distance
            if maneuver_at - travelled >= self.settings.step_advance_threshold_m:
                upcoming = index
                break
        self._step_index = max(self._step_index, upcoming)

        remaining = (1.0 - fraction) * leg.distance
        if self._step_index == 0:
            return remaining, remaining

        maneuver_at = sum(step.distance for step in steps[:self._step_index])
        return max(0.0, maneuver_at - travelled), remaining

    def _estimate_eta(self, remaining: float) -> float:
        leg = self._active_leg
        if leg is not None and leg.distance > 0 and leg.duration > 0:
            return remaining * leg.duration / leg.distance
        return estimate_travel_time(remaining, self._trip.mode)
