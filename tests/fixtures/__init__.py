# tests/fixtures/__init__.py
"""
Test fixtures package for follow-target mission testing.

Provides reusable mocks, factories, and test utilities.
"""

from tests.fixtures.mock_mavsdk import MockMAVSDKSystem, create_mock_mavsdk_system
from tests.fixtures.mock_vehicle import MockVehicleLink, create_mock_vehicle_link
from tests.fixtures.mock_reporter import RecordingReporter

__all__ = [
    'MockMAVSDKSystem',
    'create_mock_mavsdk_system',
    'MockVehicleLink',
    'create_mock_vehicle_link',
    'RecordingReporter',
]
