# src/followme/status_observer.py
"""
Status Observer Module
======================

Displays flight mode changes during the Following phase, each joined with
the last target location forwarded to the vehicle:

    [FlightMode: FOLLOW_ME] Vehicle is at: 47.3977419, 8.5455938 degrees.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Optional

from followme.mission_types import TargetLocation
from followme.reporter import MissionReporter
from followme.vehicle_link import VehicleLink

logger = logging.getLogger(__name__)


class StatusObserver:
    """
    Read-only view of flight mode changes, correlated with the last target
    location sent to the vehicle.

    Nothing here feeds back into the mission: every error is logged and
    dropped, and the only state written is the observer's own display buffer.
    """

    def __init__(self,
                 location_source: Callable[[], Optional[TargetLocation]],
                 reporter: Optional[MissionReporter] = None,
                 buffer_size: int = 50):
        """
        Args:
            location_source: Returns the last forwarded TargetLocation, or None
            reporter: Destination for display lines
            buffer_size: Number of display lines kept
        """
        self.location_source = location_source
        self.reporter = reporter or MissionReporter()
        self.lines: Deque[str] = deque(maxlen=max(1, int(buffer_size)))
        self.last_mode: Optional[str] = None
        self._subscription: Optional[asyncio.Task] = None

    def attach(self, link) -> None:
        """Subscribes to the link's flight mode notifications."""
        if self._subscription is not None:
            return
        try:
            self._subscription = link.subscribe_flight_mode(self.on_flight_mode)
        except Exception as e:
            logger.warning(f"[StatusObserver] Could not subscribe to flight mode: {e}")

    async def detach(self) -> None:
        """Ends the subscription. Safe to call when not attached."""
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        subscription.cancel()
        await asyncio.wait([subscription])

    def on_flight_mode(self, flight_mode) -> None:
        try:
            mode = VehicleLink.get_flight_mode_text(flight_mode)
            if mode == self.last_mode:
                return
            self.last_mode = mode
            line = f"[FlightMode: {mode}] {self._describe_location()}"
            self.lines.append(line)
            self.reporter.telemetry(line)
        except Exception as e:
            logger.debug(f"[StatusObserver] Ignoring bad notification {flight_mode!r}: {e}")

    def _describe_location(self) -> str:
        location = self.location_source()
        if location is None:
            return "No target location yet."
        return (f"Vehicle is at: {location.latitude_deg}, "
                f"{location.longitude_deg} degrees.")
