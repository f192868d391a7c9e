"""
Follow-target mission orchestration for PX4 vehicles (MAVSDK).

Usage:
    from followme import PhaseController, VehicleLink, create_location_feed

    controller = PhaseController(VehicleLink(), create_location_feed())
    outcome = await controller.run()
"""

from .mission_types import Phase, TargetLocation, CommandResult, MissionOutcome, FailureKind
from .location_feed import LocationFeed, FakeLocationFeed, SequenceLocationFeed, create_location_feed
from .follow_session import FollowSession
from .target_relay import TargetRelay
from .status_observer import StatusObserver
from .phase_controller import PhaseController
from .vehicle_link import VehicleLink

__all__ = [
    'Phase',
    'TargetLocation',
    'CommandResult',
    'MissionOutcome',
    'FailureKind',
    'LocationFeed',
    'FakeLocationFeed',
    'SequenceLocationFeed',
    'create_location_feed',
    'FollowSession',
    'TargetRelay',
    'StatusObserver',
    'PhaseController',
    'VehicleLink',
]
