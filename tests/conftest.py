# tests/conftest.py
"""
Root pytest configuration and fixtures for follow-target mission testing.

Provides shared fixtures for mock infrastructure and test isolation.
All fixtures here are available to all test modules.
"""

import pytest
import sys
import os
from typing import Dict, Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from followme.logging_manager import logging_manager
from followme.location_feed import SequenceLocationFeed
from followme.phase_controller import PhaseController
from tests.fixtures import create_mock_mavsdk_system, create_mock_vehicle_link, RecordingReporter


# =============================================================================
# Vehicle Fixtures
# =============================================================================

@pytest.fixture
def mock_link():
    """
    Create a MockVehicleLink where every command succeeds.

    Usage:
        def test_something(mock_link):
            mock_link.failures['arm'] = "denied"
            # ... test code
    """
    return create_mock_vehicle_link()


@pytest.fixture
def mock_mavsdk_system():
    """Create an in-memory MAVSDK System (connected on connect())."""
    return create_mock_mavsdk_system()


# =============================================================================
# Mission Fixtures
# =============================================================================

@pytest.fixture
def reporter():
    """RecordingReporter collecting every operator-facing message."""
    return RecordingReporter()


@pytest.fixture
def two_sample_feed():
    """Feed emitting (47.0, 8.5) then (47.001, 8.501), then ending."""
    return SequenceLocationFeed([(47.0, 8.5), (47.001, 8.501)], interval_s=0.01)


@pytest.fixture
def make_controller(mock_link, reporter):
    """
    Factory for PhaseControllers with all delays removed.

    The mock link's phase source is wired to the controller so every
    recorded command carries the phase it was issued in.

    Usage:
        def test_mission(make_controller, two_sample_feed):
            controller = make_controller(two_sample_feed)
    """
    def _create(feed, link=None, **kwargs) -> PhaseController:
        link = link or mock_link
        options = {
            'poll_interval_s': 0.0,
            'settle_delay_s': 0.0,
            'post_land_watch_s': 0.0,
        }
        options.update(kwargs)
        controller = PhaseController(link, feed, reporter, **options)
        link.phase_source = lambda: controller.phase
        return controller
    return _create


# =============================================================================
# Test Isolation Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def isolate_logging_manager():
    """
    Reset the shared LoggingManager before and after each test.

    This runs automatically for all tests.
    """
    logging_manager.reset()
    yield
    logging_manager.reset()


@pytest.fixture
def temp_config_file(tmp_path):
    """
    Create a temporary config file for testing.

    Usage:
        def test_config_loading(temp_config_file):
            config_path = temp_config_file({'Mission': {'poll_interval_s': 0.5}})
            # ... test code
    """
    import yaml

    def _create_config(content: Dict[str, Any], name: str = "test_config.yaml") -> str:
        config_file = tmp_path / name
        with open(config_file, 'w') as f:
            yaml.safe_dump(content, f)
        return str(config_file)

    return _create_config
