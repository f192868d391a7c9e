# src/followme/target_relay.py
"""
Target Relay Module
===================

Bridges the location feed into follow-me target commands for the duration
of a FollowSession.

Forwarding rules:
- One set_target_location call in flight at a time; samples keep their
  feed order.
- Commands are fire-and-forget: the relay never waits for, or retries, a
  command before reading the next sample.
- A sample that arrives while the previous command is still in flight is
  discarded, never queued.
- Nothing is forwarded unless the session is alive.
- A feed that raises is logged and handled like a feed that ended.
"""

import asyncio
import logging
from typing import Optional

from followme.follow_session import FollowSession
from followme.mission_types import TargetLocation

logger = logging.getLogger(__name__)


class TargetRelay:
    """Forwards location samples to the vehicle while following is active."""

    def __init__(self, link):
        """
        Args:
            link: VehicleLink (or anything with an async set_target_location)
        """
        self.link = link
        self.last_location: Optional[TargetLocation] = None
        self.forwarded = 0
        self.discarded = 0
        self.rejected = 0

        self._session: Optional[FollowSession] = None
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._active = False
        self._failure_reported = False

    @property
    def active(self) -> bool:
        return self._active

    def activate(self, session: FollowSession) -> None:
        """
        Starts forwarding samples from `session`.

        Raises:
            RuntimeError: If this relay has already been activated
        """
        if self._task is not None:
            raise RuntimeError("TargetRelay can only be activated once")
        self._session = session
        self._active = True
        self._task = asyncio.create_task(self._consume(session))
        logger.info("[TargetRelay] Activated")

    def deactivate(self) -> None:
        """Stops consuming immediately. Safe to call repeatedly."""
        if not self._active:
            return
        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("[TargetRelay] Deactivated")

    async def join(self) -> None:
        """Waits until consumption has ended and the last command resolved."""
        if self._task is not None:
            await asyncio.wait([self._task])
            self._report_feed_failure()
        if self._in_flight is not None:
            await asyncio.wait([self._in_flight])

    def _report_feed_failure(self) -> None:
        """A feed that raised is logged once, then treated as a feed that ended."""
        task = self._task
        if self._failure_reported or task.cancelled() or task.exception() is None:
            return
        self._failure_reported = True
        logger.error(f"[TargetRelay] Location feed failed: {task.exception()!r}")

    async def _consume(self, session: FollowSession) -> None:
        try:
            async for latitude_deg, longitude_deg in session:
                if not self._active or not session.alive:
                    break
                self._forward(TargetLocation.from_coordinates(latitude_deg, longitude_deg))
            if self._active:
                logger.info("[TargetRelay] Location feed exhausted")
        finally:
            self._active = False
            logger.info(f"[TargetRelay] Stopped: {self.forwarded} forwarded, "
                        f"{self.discarded} discarded, {self.rejected} rejected")

    def _forward(self, location: TargetLocation) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            self.discarded += 1
            logger.debug(f"[TargetRelay] Vehicle busy, dropped sample "
                         f"({location.latitude_deg:.7f}, {location.longitude_deg:.7f})")
            return
        self.last_location = location
        self.forwarded += 1
        self._in_flight = asyncio.create_task(self._send(location))

    async def _send(self, location: TargetLocation) -> None:
        try:
            result = await self.link.set_target_location(location)
        except Exception as e:
            self.rejected += 1
            logger.error(f"[TargetRelay] set_target_location raised: {e}")
            return
        if not result.ok:
            self.rejected += 1
            logger.warning(f"[TargetRelay] Target rejected: {result.reason}")
