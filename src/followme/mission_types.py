# src/followme/mission_types.py
"""
Mission types: value objects shared by every follow-target component.

Phase replaces raw state strings so transitions can be matched exhaustively.

Usage:
    from followme.mission_types import Phase, TargetLocation, CommandResult
    location = TargetLocation.from_coordinates(47.0, 8.5)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    """
    Mission phases, in the order a successful mission visits them.

    Exactly one phase is active at a time; PhaseController owns it.
    """

    DISCONNECTED = 'disconnected'
    CONNECTING   = 'connecting'
    CONNECTED    = 'connected'
    READY        = 'ready'
    ARMED        = 'armed'
    AIRBORNE     = 'airborne'
    FOLLOWING    = 'following'
    LANDING      = 'landing'
    TERMINATED   = 'terminated'


class FailureKind(str, Enum):
    """Why a mission ended early. Every kind is unrecoverable."""

    CONNECTION_FAILURE = 'connection_failure'
    COMMAND_FAILURE    = 'command_failure'
    CANCELLED          = 'cancelled'


class FeedExhaustedError(RuntimeError):
    """Raised when a location feed is subscribed to a second time."""


@dataclass(frozen=True)
class TargetLocation:
    """
    Position (and optional velocity) command for the vehicle to track.

    Latitude/longitude in degrees, altitude in metres (AMSL), velocities
    in m/s along north/east/down.
    """
    latitude_deg: float
    longitude_deg: float
    altitude_m: float = 0.0
    velocity_north_m_s: float = 0.0
    velocity_east_m_s: float = 0.0
    velocity_down_m_s: float = 0.0

    @classmethod
    def from_coordinates(cls, latitude_deg: float, longitude_deg: float) -> 'TargetLocation':
        """Build a location from a raw feed sample; altitude and velocity stay zero."""
        return cls(latitude_deg=float(latitude_deg), longitude_deg=float(longitude_deg))


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single vehicle command: success, or failure with a reason."""
    ok: bool
    reason: str = ""

    @classmethod
    def success(cls) -> 'CommandResult':
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> 'CommandResult':
        return cls(ok=False, reason=str(reason))

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class MissionOutcome:
    """
    Terminal result of PhaseController.run().

    Attributes:
        completed: True when the mission reached Terminated through Landing
        failed_phase: Phase that was active when the mission aborted
        failed_command: Name of the command that failed (e.g. 'arm')
        kind: FailureKind of the abort, None on completion
        reason: Collaborator-supplied failure reason
    """
    completed: bool
    failed_phase: Optional[Phase] = None
    failed_command: Optional[str] = None
    kind: Optional[FailureKind] = None
    reason: str = ""

    @classmethod
    def done(cls) -> 'MissionOutcome':
        return cls(completed=True)

    @classmethod
    def aborted(cls, phase: Phase, command: str, kind: FailureKind, reason: str) -> 'MissionOutcome':
        return cls(completed=False, failed_phase=phase, failed_command=command,
                   kind=kind, reason=reason)

    @classmethod
    def cancelled(cls, phase: Phase) -> 'MissionOutcome':
        """Operator cancel before the vehicle started following."""
        return cls(completed=False, failed_phase=phase, kind=FailureKind.CANCELLED,
                   reason="cancelled by operator")

    @property
    def exit_code(self) -> int:
        return 0 if self.completed else 1

    @property
    def diagnostic(self) -> str:
        """Human readable one-line description of how the mission ended."""
        if self.completed:
            return "Mission completed"
        if self.kind == FailureKind.CANCELLED:
            return f"Mission cancelled during {self.failed_phase.value}: {self.reason}"
        command = (self.failed_command or "command").replace('_', ' ').capitalize()
        phase = self.failed_phase.value if self.failed_phase else "unknown"
        return f"{command} failed during {phase}: {self.reason}"
