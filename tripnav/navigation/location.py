"""
Geolocation sources and trace playback
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from pydantic import ValidationError

from tripnav.core.models import Coordinate, LocationFix


class TraceError(Exception):
    """Invalid or unreadable location trace"""
    pass


class GeolocationSource(ABC):
    """Stream of location fixes with start/stop controls"""

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    def fixes(self) -> AsyncIterator[LocationFix]:
        """Async iterator over fixes until the source stops"""
        pass


class ReplayGeolocationSource(GeolocationSource):
    """
    Plays back a recorded location trace

    Accepts either a list of fixes or a recording of the form
    {"trace": [{"elapsed": 0.0, "location": {"lat": .., "lon": .., "accuracy": ..}}, ...]}.
    Entries with a null location are skipped. Timing between entries is scaled by `speed`;
    speed=0 replays without waiting.
    """

    def __init__(
        self,
        entries: List[Dict[str, Any]],
        speed: float = 1.0,
        start_time: Optional[datetime] = None,
    ):
        self.entries = entries
        self.speed = speed
        self.start_time = start_time or datetime.now()
        self.index = 0
        self.running = False
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_file(cls, path: Union[str, Path], speed: float = 1.0) -> "ReplayGeolocationSource":
        """Load a trace recording from a JSON file"""
        path = Path(path)
        if not path.exists():
            raise TraceError(f"Trace file not found: {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise TraceError(f"Invalid JSON in trace {path}: {e}")

        entries = data["trace"] if isinstance(data, dict) and "trace" in data else data
        if not isinstance(entries, list):
            raise TraceError(f"Trace {path} must be a list or contain a 'trace' list")

        return cls(entries, speed=speed)

    async def start(self) -> None:
        self.running = True
        self.index = 0
        self.logger.info(f"Replaying {len(self.entries)} trace entries at {self.speed}x")

    async def stop(self) -> None:
        self.running = False

    @property
    def is_finished(self) -> bool:
        return self.index >= len(self.entries)

    async def fixes(self) -> AsyncIterator[LocationFix]:
        previous_elapsed: Optional[float] = None

        while self.running and not self.is_finished:
            entry = self.entries[self.index]
            self.index += 1

            elapsed = self._entry_elapsed(entry)
            if elapsed is None:
                continue
            if previous_elapsed is not None and self.speed > 0:
                await asyncio.sleep(max(0.0, elapsed - previous_elapsed) / self.speed)
            previous_elapsed = elapsed

            fix = self._parse_entry(entry, elapsed)
            if fix is not None:
                yield fix

    def _entry_elapsed(self, entry: Any) -> Optional[float]:
        if not isinstance(entry, dict):
            self.logger.warning(f"Skipping malformed trace entry {self.index - 1}: not a mapping")
            return None

        try:
            return float(entry.get("elapsed", self.index - 1))
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Skipping malformed trace entry {self.index - 1}: bad elapsed time ({e})")
            return None

    def _parse_entry(self, entry: Dict[str, Any], elapsed: float) -> Optional[LocationFix]:
        location = entry.get("location", entry)
        if not location:
            return None

        try:
            lat = location.get("lat", location.get("latitude"))
            lon = location.get("lon", location.get("longitude"))
            return LocationFix(
                coordinate=Coordinate(latitude=lat, longitude=lon),
                accuracy=location.get("accuracy"),
                timestamp=self.start_time + timedelta(seconds=elapsed),
            )
        except (AttributeError, ValidationError) as e:
            self.logger.warning(f"Skipping malformed trace entry {self.index - 1}: {e}")
            return None
