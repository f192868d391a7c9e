# src/followme/follow_session.py
"""
Follow Session Module
=====================

Scopes a location feed subscription to the Following phase.
"""

import logging
from typing import AsyncIterator, Optional, Tuple

from followme.location_feed import LocationFeed

logger = logging.getLogger(__name__)


class FollowSession:
    """
    Scoped subscription to a location feed, alive only while the vehicle
    is in the Following phase.

    Usage:
        async with FollowSession(feed) as session:
            async for latitude_deg, longitude_deg in session:
                ...

    Leaving the block, by any path, marks the session dead and closes the
    feed's iterator. A dead session yields no further samples.
    """

    def __init__(self, feed: LocationFeed):
        self.feed = feed
        self.alive = False
        self._samples: Optional[AsyncIterator[Tuple[float, float]]] = None

    async def __aenter__(self) -> 'FollowSession':
        self._samples = self.feed.stream()
        self.alive = True
        logger.info("[FollowSession] Opened")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.release()
        return False

    async def release(self) -> None:
        """Idempotent: ends the session and releases the feed subscription."""
        self.alive = False
        samples, self._samples = self._samples, None
        if samples is None:
            return
        aclose = getattr(samples, 'aclose', None)
        if aclose is not None:
            await aclose()
        logger.info("[FollowSession] Released")

    def __aiter__(self) -> 'FollowSession':
        return self

    async def __anext__(self) -> Tuple[float, float]:
        if not self.alive or self._samples is None:
            raise StopAsyncIteration
        return await self._samples.__anext__()
