# src/followme/phase_controller.py
"""
Phase Controller Module
=======================

Drives one follow-target mission from connection to touchdown:

    Disconnected -> Connecting -> Connected -> Ready -> Armed -> Airborne
        -> Following -> Landing -> Terminated

Every phase-advancing command is awaited to completion before the next
transition is evaluated, and the first failed command ends the mission
(no retry, no backoff). Waiting for the heartbeat and for healthy sensors
is not a failure: those polls wait as long as the hardware needs.

The location relay and the status observer only run while the vehicle is
in the Following phase.

An operator cancel before Following aborts the mission where it stands; a
cancel during Following ends it, after which the vehicle stops follow-me
and lands.
"""

import asyncio
import inspect
import logging
from typing import Callable, List, Optional, Tuple

from followme.parameters import Parameters
from followme.mission_types import (
    Phase, FailureKind, MissionOutcome, FeedExhaustedError
)
from followme.follow_session import FollowSession
from followme.target_relay import TargetRelay
from followme.status_observer import StatusObserver
from followme.reporter import MissionReporter
from followme.logging_manager import logging_manager

logger = logging.getLogger(__name__)


class MissionAborted(Exception):
    """Raised internally to unwind the phase sequence after a failed command."""

    def __init__(self, outcome: MissionOutcome):
        super().__init__(outcome.diagnostic)
        self.outcome = outcome


async def wait_until(predicate: Callable, interval_s: float, on_wait: Callable = None,
                     stop: Callable = None) -> bool:
    """
    Suspends until `predicate()` is true, re-checking every `interval_s`.

    Args:
        predicate: Sync or async callable returning a truthy value when done
        interval_s: Delay between checks
        on_wait: Called after every unsuccessful check
        stop: Checked before every poll; a truthy value ends the wait early

    Returns:
        bool: True when the predicate held, False when `stop` ended the wait
    """
    while True:
        if stop is not None and stop():
            return False
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return True
        if on_wait is not None:
            on_wait()
        await asyncio.sleep(interval_s)


class PhaseController:
    """
    Mission state machine for a single vehicle.

    A controller runs exactly one mission; create a new one to fly again.

    Usage:
        controller = PhaseController(VehicleLink(), create_location_feed())
        outcome = await controller.run()
    """

    def __init__(self, link, feed, reporter: Optional[MissionReporter] = None,
                 poll_interval_s: Optional[float] = None,
                 settle_delay_s: Optional[float] = None,
                 post_land_watch_s: Optional[float] = None,
                 status_buffer_size: Optional[int] = None):
        """
        Args:
            link: VehicleLink used for every command
            feed: LocationFeed followed during the Following phase
            reporter: Operator-facing message sink
            poll_interval_s: Heartbeat/health polling interval
            settle_delay_s: Wait after takeoff before follow-me starts
            post_land_watch_s: Time spent watching telemetry after land
            status_buffer_size: Lines kept by the status observer
        """
        self.link = link
        self.feed = feed
        self.reporter = reporter or MissionReporter()

        self.poll_interval_s = self._or_default(poll_interval_s, Parameters.POLL_INTERVAL_S)
        self.settle_delay_s = self._or_default(settle_delay_s, Parameters.SETTLE_DELAY_S)
        self.post_land_watch_s = self._or_default(post_land_watch_s, Parameters.POST_LAND_WATCH_S)
        buffer_size = self._or_default(status_buffer_size, Parameters.STATUS_BUFFER_SIZE)

        self.relay = TargetRelay(link)
        self.observer = StatusObserver(lambda: self.relay.last_location, self.reporter, buffer_size)

        self.transitions: List[Tuple[Phase, Phase]] = []
        self.commands: List[str] = []
        self._phase = Phase.DISCONNECTED
        self._started = False
        self._cancel_requested = False

    @staticmethod
    def _or_default(value, default):
        return default if value is None else value

    @property
    def phase(self) -> Phase:
        return self._phase

    def cancel(self) -> None:
        """
        Operator stop (Ctrl+C / SIGTERM).

        Before Following the mission aborts: no further command is issued and
        run() returns a cancelled outcome. During Following the relay stops;
        the mission then stops follow-me and lands. Later requests are ignored.
        """
        if not self._cancel_requested:
            logger.info("[PhaseController] Cancellation requested")
        self._cancel_requested = True
        self.relay.deactivate()

    async def run(self) -> MissionOutcome:
        """
        Flies the mission to the Terminated phase.

        Returns:
            MissionOutcome: completion, or the phase and command that failed

        Raises:
            RuntimeError: If this controller has already run
        """
        if self._started:
            raise RuntimeError("PhaseController is not restartable; create a new one")
        self._started = True

        try:
            outcome = await self._fly()
        except MissionAborted as abort:
            outcome = abort.outcome
            self.reporter.error(outcome.diagnostic)

        self._advance(Phase.TERMINATED)
        logging_manager.log_mission_summary(logger)
        return outcome

    async def _fly(self) -> MissionOutcome:
        self._abort_if_cancelled()
        await self._command('connect', self.link.connect, FailureKind.CONNECTION_FAILURE)
        self._advance(Phase.CONNECTING)

        await wait_until(self.link.is_connected, self.poll_interval_s,
                         self._waiting_for_heartbeat, self._is_cancel_requested)
        self._abort_if_cancelled()
        logging_manager.log_connection_status(logger, 'Vehicle', True, "(heartbeat received)")
        self._advance(Phase.CONNECTED)

        await wait_until(self.link.health_all_ok, self.poll_interval_s,
                         self._waiting_for_health, self._is_cancel_requested)
        self._abort_if_cancelled()
        self.reporter.status("Device is ready")
        self._advance(Phase.READY)

        await self._command('arm', self.link.arm)
        self.reporter.status("Armed")
        self._advance(Phase.ARMED)

        self._abort_if_cancelled()
        await self._command('takeoff', self.link.takeoff)
        self.reporter.status("In Air...")
        self._advance(Phase.AIRBORNE)

        if self.settle_delay_s > 0:
            await asyncio.sleep(self.settle_delay_s)
        self._abort_if_cancelled()
        await self._command('start_follow', self.link.start_follow)
        self._advance(Phase.FOLLOWING)

        await self._follow()

        await self._command('stop_follow', self.link.stop_follow)
        self._advance(Phase.LANDING)

        await self._command('land', self.link.land)
        self.reporter.status("Landing...")
        # Relies on auto-disarm; keep telemetry flowing for a little longer.
        if self.post_land_watch_s > 0:
            await asyncio.sleep(self.post_land_watch_s)
        self.reporter.status("Finished...")
        return MissionOutcome.done()

    async def _follow(self) -> None:
        """Relays the location feed until it ends or cancel() is called."""
        try:
            session = FollowSession(self.feed)
            async with session:
                self.relay.activate(session)
                self.observer.attach(self.link)
                if self._cancel_requested:
                    self.relay.deactivate()
                try:
                    await self.relay.join()
                finally:
                    self.relay.deactivate()
                    await self.relay.join()
                    await self.observer.detach()
        except FeedExhaustedError as e:
            logger.error(f"[PhaseController] Location feed unavailable: {e}")

        logger.info(f"[PhaseController] Follow session ended "
                    f"({self.relay.forwarded} targets sent, {self.relay.discarded} discarded)")

    async def _command(self, name: str, command: Callable,
                       kind: FailureKind = FailureKind.COMMAND_FAILURE) -> None:
        self.commands.append(name)
        logger.info(f"[PhaseController] {name} ({self._phase.value})")
        result = await command()
        logging_manager.record_command(name, result.ok)
        if not result.ok:
            raise MissionAborted(MissionOutcome.aborted(self._phase, name, kind, result.reason))

    def _is_cancel_requested(self) -> bool:
        return self._cancel_requested

    def _abort_if_cancelled(self) -> None:
        """Only called before Following; a cancel there ends the mission on the spot."""
        if self._cancel_requested:
            raise MissionAborted(MissionOutcome.cancelled(self._phase))

    def _advance(self, target: Phase) -> None:
        source = self._phase
        self._phase = target
        self.transitions.append((source, target))
        logger.info(f"[PhaseController] {source.value} -> {target.value}")

    def _waiting_for_heartbeat(self) -> None:
        logging_manager.log_connection_status(logger, 'Vehicle', False,
                                              "Wait for device to connect via heartbeat")

    def _waiting_for_health(self) -> None:
        logging_manager.log_operation(logger, 'Health', details="Waiting for device to be ready")
