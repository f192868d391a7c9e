# src/followme/location_feed.py
"""
Location Feeds
==============

Sources of (latitude, longitude) samples for the vehicle to follow.

A feed is consumed once: stream() hands out a lazy async iterator that
ends when the underlying source stops. Asking a spent feed for a second
stream raises FeedExhaustedError.

Available feeds:
- FakeLocationFeed: walks a square around a start point (SITL testing)
- SequenceLocationFeed: replays an in-memory list of samples
- FileLocationFeed: replays samples stored in a YAML file
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, Iterable, List, Tuple

import yaml

from followme.parameters import Parameters
from followme.mission_types import FeedExhaustedError

logger = logging.getLogger(__name__)

Sample = Tuple[float, float]

METERS_PER_DEG_LAT = 111320.0


class LocationFeed(ABC):
    """Base class for one-shot position sample sources."""

    def __init__(self, interval_s: float = 1.0):
        self.interval_s = interval_s
        self._consumed = False

    def stream(self) -> AsyncIterator[Sample]:
        """
        Returns the feed's sample iterator.

        Raises:
            FeedExhaustedError: If the feed has already been streamed
        """
        if self._consumed:
            raise FeedExhaustedError(f"{type(self).__name__} cannot be restarted")
        self._consumed = True
        return self._generate()

    async def subscribe(self, callback: Callable[[float, float], None]) -> int:
        """
        Delivers every sample to `callback(lat, lon)` until the feed ends.

        Returns:
            int: Number of samples delivered
        """
        count = 0
        async for latitude_deg, longitude_deg in self.stream():
            callback(latitude_deg, longitude_deg)
            count += 1
        return count

    @property
    def consumed(self) -> bool:
        return self._consumed

    @abstractmethod
    def _generate(self) -> AsyncIterator[Sample]:
        ...


class SequenceLocationFeed(LocationFeed):
    """Replays a fixed list of samples, one every `interval_s` seconds."""

    def __init__(self, samples: Iterable[Sample], interval_s: float = 0.0):
        super().__init__(interval_s)
        self.samples: List[Sample] = [(float(lat), float(lon)) for lat, lon in samples]

    async def _generate(self) -> AsyncIterator[Sample]:
        for index, sample in enumerate(self.samples):
            if index:
                await asyncio.sleep(self.interval_s)
            yield sample
        logger.info(f"[LocationFeed] Sequence exhausted after {len(self.samples)} samples")


class FileLocationFeed(SequenceLocationFeed):
    """
    Replays samples stored in a YAML file.

    Accepted entries: `[lat, lon]` pairs or `{lat: .., lon: ..}` mappings.
    """

    def __init__(self, path: str, interval_s: float = 1.0):
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or []
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a list of samples, got {type(data).__name__}")
        super().__init__([self._parse_entry(entry) for entry in data], interval_s)
        self.path = path

    @staticmethod
    def _parse_entry(entry) -> Sample:
        if isinstance(entry, dict):
            return float(entry['lat']), float(entry['lon'])
        if isinstance(entry, (list, tuple)) and len(entry) >= 2:
            return float(entry[0]), float(entry[1])
        raise ValueError(f"Malformed location sample: {entry!r}")


class FakeLocationFeed(LocationFeed):
    """
    Simulated target walking a square: `side_samples` steps of `step_m`
    metres north, east, south, then west, repeated until `max_updates`
    samples have been produced (0 means forever).
    """

    # (north, east) unit steps for each side of the square
    _LEGS = ((1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0))

    def __init__(self,
                 start_latitude_deg: float = 47.3977419,
                 start_longitude_deg: float = 8.5455938,
                 step_m: float = 4.0,
                 side_samples: int = 10,
                 max_updates: int = 40,
                 interval_s: float = 1.0):
        super().__init__(interval_s)
        self.start_latitude_deg = start_latitude_deg
        self.start_longitude_deg = start_longitude_deg
        self.step_m = step_m
        self.side_samples = max(1, int(side_samples))
        self.max_updates = int(max_updates)

    def _offsets_deg(self) -> Tuple[float, float]:
        lat_step = self.step_m / METERS_PER_DEG_LAT
        lon_step = self.step_m / (METERS_PER_DEG_LAT * math.cos(math.radians(self.start_latitude_deg)))
        return lat_step, lon_step

    async def _generate(self) -> AsyncIterator[Sample]:
        lat_step, lon_step = self._offsets_deg()
        latitude_deg = self.start_latitude_deg
        longitude_deg = self.start_longitude_deg
        count = 0

        while self.max_updates <= 0 or count < self.max_updates:
            if count:
                await asyncio.sleep(self.interval_s)
            yield latitude_deg, longitude_deg

            north, east = self._LEGS[(count // self.side_samples) % len(self._LEGS)]
            latitude_deg += north * lat_step
            longitude_deg += east * lon_step
            count += 1

        logger.info(f"[LocationFeed] Fake target stopped after {count} updates")


def create_location_feed(source: str = None) -> LocationFeed:
    """
    Build the location feed selected in the configuration.

    Args:
        source: 'fake' or 'file'; defaults to Parameters.LOCATION_SOURCE

    Raises:
        ValueError: For an unknown source or a file source without a path
    """
    source = (source or Parameters.LOCATION_SOURCE).lower()

    if source == 'fake':
        return FakeLocationFeed(
            start_latitude_deg=Parameters.START_LATITUDE_DEG,
            start_longitude_deg=Parameters.START_LONGITUDE_DEG,
            step_m=Parameters.STEP_M,
            side_samples=Parameters.SIDE_SAMPLES,
            max_updates=Parameters.MAX_UPDATES,
            interval_s=Parameters.LOCATION_INTERVAL_S,
        )
    if source == 'file':
        if not Parameters.LOCATION_FILE:
            raise ValueError("Location source 'file' requires LOCATION_FILE")
        return FileLocationFeed(Parameters.LOCATION_FILE, interval_s=Parameters.LOCATION_INTERVAL_S)

    raise ValueError(f"Unknown location source: {source}")
