# src/followme/vehicle_link.py
"""
Vehicle Link Module
===================

MAVSDK-backed command surface for a single PX4 vehicle.

Commands (arm, takeoff, land, follow-me start/stop/target) return a
CommandResult carrying the SDK's reason text on failure; readiness checks
(heartbeat, health) read the first value of the matching telemetry stream.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from mavsdk import System
from mavsdk.action import ActionError
from mavsdk.follow_me import FollowMeError
from mavsdk.follow_me import TargetLocation as MavTargetLocation

from followme.parameters import Parameters
from followme.mission_types import CommandResult, TargetLocation

logger = logging.getLogger(__name__)


class VehicleLink:
    """
    Command surface of a single PX4 vehicle, backed by MAVSDK.

    Every command returns a CommandResult instead of raising, so callers
    decide what a failure means. Readiness predicates return plain booleans.
    """

    def __init__(self, system_address: Optional[str] = None, command_timeout_s: Optional[float] = None):
        """
        Sets up the MAVSDK System. The connection itself is opened by connect().

        Args:
            system_address: MAVLink address, e.g. 'udp://:14540'
            command_timeout_s: Upper bound for each command; None waits indefinitely
        """
        self.system_address = system_address or Parameters.SYSTEM_ADDRESS
        self.command_timeout_s = command_timeout_s
        self._subscriptions: List[asyncio.Task] = []

        if Parameters.EXTERNAL_MAVSDK_SERVER:
            self.drone = System(mavsdk_server_address=Parameters.MAVSDK_SERVER_ADDRESS,
                                port=Parameters.MAVSDK_SERVER_PORT)
            logger.info(f"Using external mavsdk_server at "
                        f"{Parameters.MAVSDK_SERVER_ADDRESS}:{Parameters.MAVSDK_SERVER_PORT}")
        else:
            self.drone = System()

    async def _execute(self, name: str, coro, errors=(ActionError, FollowMeError)) -> CommandResult:
        """
        Await a MAVSDK command and translate its outcome.

        Args:
            name: Command name used in log lines
            coro: Coroutine issuing the command
            errors: MAVSDK error types that mean "the vehicle refused"

        Returns:
            CommandResult: success, or failure carrying the SDK's reason text
        """
        try:
            if self.command_timeout_s:
                await asyncio.wait_for(coro, timeout=self.command_timeout_s)
            else:
                await coro
        except asyncio.TimeoutError:
            logger.error(f"[{name}] timed out after {self.command_timeout_s}s")
            return CommandResult.failure(f"timed out after {self.command_timeout_s}s")
        except errors as e:
            logger.error(f"[{name}] rejected: {e}")
            return CommandResult.failure(str(e))
        except Exception as e:
            logger.error(f"[{name}] unexpected error: {e}")
            return CommandResult.failure(str(e) or type(e).__name__)
        logger.debug(f"[{name}] succeeded")
        return CommandResult.success()

    async def connect(self) -> CommandResult:
        """
        Opens the MAVSDK connection. Heartbeat discovery happens afterwards
        and is observed through is_connected().
        """
        logger.info(f"Connecting to vehicle at {self.system_address}")
        try:
            await self.drone.connect(system_address=self.system_address)
        except Exception as e:
            logger.error(f"Connection failed: {e}")
            return CommandResult.failure(str(e) or type(e).__name__)
        return CommandResult.success()

    async def is_connected(self) -> bool:
        """True once a heartbeat from the vehicle has been observed."""
        try:
            async for state in self.drone.core.connection_state():
                return bool(state.is_connected)
        except Exception as e:
            logger.debug(f"Connection state unavailable: {e}")
        return False

    async def health_all_ok(self) -> bool:
        """True when every sensor/estimator health check passes."""
        try:
            async for all_ok in self.drone.telemetry.health_all_ok():
                return bool(all_ok)
        except Exception as e:
            logger.debug(f"Health state unavailable: {e}")
        return False

    async def arm(self) -> CommandResult:
        return await self._execute('arm', self.drone.action.arm())

    async def takeoff(self) -> CommandResult:
        return await self._execute('takeoff', self.drone.action.takeoff())

    async def land(self) -> CommandResult:
        return await self._execute('land', self.drone.action.land())

    async def start_follow(self) -> CommandResult:
        return await self._execute('start_follow', self.drone.follow_me.start())

    async def stop_follow(self) -> CommandResult:
        return await self._execute('stop_follow', self.drone.follow_me.stop())

    async def set_target_location(self, location: TargetLocation) -> CommandResult:
        """
        Sends a follow-me target. The vehicle does not acknowledge it beyond
        the SDK call returning.
        """
        target = MavTargetLocation(
            location.latitude_deg,
            location.longitude_deg,
            location.altitude_m,
            location.velocity_north_m_s,
            location.velocity_east_m_s,
            location.velocity_down_m_s,
        )
        return await self._execute('set_target_location', self.drone.follow_me.set_target_location(target))

    def subscribe_flight_mode(self, callback: Callable) -> asyncio.Task:
        """
        Feeds every flight mode update to `callback` until the returned task
        is cancelled. Exceptions raised by the callback never reach the link.
        """
        task = asyncio.create_task(self._watch_flight_mode(callback))
        self._subscriptions.append(task)
        return task

    async def _watch_flight_mode(self, callback: Callable) -> None:
        try:
            async for flight_mode in self.drone.telemetry.flight_mode():
                try:
                    callback(flight_mode)
                except Exception as e:
                    logger.warning(f"Flight mode subscriber failed: {e}")
        except asyncio.CancelledError:
            logger.debug("Flight mode subscription cancelled.")
            raise
        except Exception as e:
            logger.error(f"Flight mode stream ended with error: {e}")

    @staticmethod
    def get_flight_mode_text(flight_mode) -> str:
        """Convert a MAVSDK FlightMode value to a text label."""
        return getattr(flight_mode, 'name', str(flight_mode))

    async def close(self) -> None:
        """Cancels every telemetry subscription opened through this link."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for task in subscriptions:
            task.cancel()
        if subscriptions:
            await asyncio.gather(*subscriptions, return_exceptions=True)
        logger.info("Vehicle link closed.")
