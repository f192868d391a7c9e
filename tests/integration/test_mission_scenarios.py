# tests/integration/test_mission_scenarios.py
"""
Integration tests for complete follow-target missions.

Runs the command line entry point end to end against an in-memory vehicle:
Feed -> FollowSession -> TargetRelay -> VehicleLink, driven by the
PhaseController, with the process exit code as the observable result.
"""

import asyncio
import logging
import pytest
from unittest.mock import patch

from followme import main as main_module
from followme.location_feed import FakeLocationFeed
from followme.mission_types import Phase, TargetLocation
from followme.parameters import Parameters
from followme.phase_controller import PhaseController
from followme.vehicle_link import VehicleLink
from tests.fixtures.mock_mavsdk import MockMAVSDKSystem


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def no_delays(monkeypatch):
    """Zero every mission delay read from Parameters."""
    monkeypatch.setattr(Parameters, 'POLL_INTERVAL_S', 0.0)
    monkeypatch.setattr(Parameters, 'SETTLE_DELAY_S', 0.0)
    monkeypatch.setattr(Parameters, 'POST_LAND_WATCH_S', 0.0)
    monkeypatch.setattr(Parameters, 'COMMAND_TIMEOUT_S', None)


@pytest.fixture
def wired_main(mock_link, two_sample_feed, no_delays):
    """main() with the vehicle and the feed replaced by in-memory versions."""
    with patch.object(main_module, 'VehicleLink', return_value=mock_link) as link_cls, \
            patch.object(main_module, 'create_location_feed', return_value=two_sample_feed):
        yield link_cls


# ============================================================================
# Command Line Missions
# ============================================================================

class TestCommandLineMission:
    """Exit codes and diagnostics of `followme`."""

    def test_successful_mission_exits_zero(self, wired_main, mock_link):
        with pytest.raises(SystemExit) as exit_info:
            main_module.main(['--no-color'])

        assert exit_info.value.code == 0
        assert [call.location for call in mock_link.target_calls()] == [
            TargetLocation(47.0, 8.5, 0.0, 0.0, 0.0, 0.0),
            TargetLocation(47.001, 8.501, 0.0, 0.0, 0.0, 0.0),
        ]
        assert mock_link.command_names(include_targets=True)[-2:] == ['stop_follow', 'land']
        assert mock_link.closed is True

    def test_arm_failure_exits_non_zero_with_reason(self, wired_main, mock_link, caplog, capsys):
        mock_link.failures['arm'] = "reason"

        with caplog.at_level(logging.ERROR):
            with pytest.raises(SystemExit) as exit_info:
                main_module.main(['--no-color'])

        assert exit_info.value.code != 0
        diagnostics = [r.getMessage() for r in caplog.records if r.name == 'followme.mission']
        assert diagnostics == ["Arm failed during ready: reason"]
        assert capsys.readouterr().err.count("Arm failed during ready: reason") <= 1
        assert 'takeoff' not in mock_link.command_names()
        assert mock_link.target_calls() == []
        assert mock_link.closed is True

    def test_command_line_options_reach_vehicle_link(self, wired_main):
        with pytest.raises(SystemExit):
            main_module.main(['--system-address', 'udp://:14550', '--command-timeout', '2.5'])

        wired_main.assert_called_once_with(system_address='udp://:14550', command_timeout_s=2.5)

    def test_unreadable_config_exits_two(self, tmp_path):
        with pytest.raises(SystemExit) as exit_info:
            main_module.main(['--config', str(tmp_path / 'missing.yaml')])

        assert exit_info.value.code == 2

    def test_file_feed_without_path_exits_two(self, mock_link, no_delays, monkeypatch):
        monkeypatch.setattr(Parameters, 'LOCATION_FILE', '')

        with patch.object(main_module, 'VehicleLink', return_value=mock_link):
            with pytest.raises(SystemExit) as exit_info:
                main_module.main(['--feed', 'file'])

        assert exit_info.value.code == 2
        assert mock_link.calls == []


# ============================================================================
# Full Stack Missions (real VehicleLink over mock MAVSDK)
# ============================================================================

class TestMissionOverMavsdk:
    """PhaseController + VehicleLink + MockMAVSDKSystem."""

    @pytest.fixture
    def mavsdk_link(self):
        system = MockMAVSDKSystem()
        with patch('followme.vehicle_link.System', return_value=system), \
                patch('followme.vehicle_link.Parameters') as params:
            params.SYSTEM_ADDRESS = "udp://:14540"
            params.EXTERNAL_MAVSDK_SERVER = False
            link = VehicleLink()
            yield link, system

    @pytest.mark.asyncio
    async def test_two_sample_mission(self, mavsdk_link, reporter, two_sample_feed):
        link, system = mavsdk_link
        controller = PhaseController(link, two_sample_feed, reporter,
                                     poll_interval_s=0.0, settle_delay_s=0.0, post_land_watch_s=0.0)

        outcome = await asyncio.wait_for(controller.run(), timeout=5.0)
        await link.close()

        assert outcome.completed is True
        sent = system.follow_me.get_commands_of_type('set_target_location')
        assert [(c.values['latitude_deg'], c.values['longitude_deg']) for c in sent] == [
            (47.0, 8.5), (47.001, 8.501)
        ]
        assert all(c.values['absolute_altitude_m'] == 0.0 for c in sent)
        assert system.action.get_action_history() == ['arm', 'takeoff', 'land']
        assert system.follow_me.is_active is False

    @pytest.mark.asyncio
    async def test_arm_denied_by_vehicle(self, mavsdk_link, reporter, two_sample_feed):
        link, system = mavsdk_link
        system.action.set_fail('arm', "reason")
        controller = PhaseController(link, two_sample_feed, reporter,
                                     poll_interval_s=0.0, settle_delay_s=0.0, post_land_watch_s=0.0)

        outcome = await controller.run()

        assert outcome.exit_code == 1
        assert outcome.failed_phase == Phase.READY
        assert "reason" in outcome.diagnostic
        assert system.action.get_action_history() == ['arm']
        assert system.follow_me.get_commands_of_type('set_target_location') == []

    @pytest.mark.asyncio
    async def test_endless_feed_never_leaves_following(self, mavsdk_link):
        link, system = mavsdk_link
        controller = PhaseController(link, FakeLocationFeed(max_updates=0, interval_s=0.01),
                                     poll_interval_s=0.0, settle_delay_s=0.0, post_land_watch_s=0.0)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.run(), timeout=0.3)
        await link.close()

        assert controller.phase == Phase.FOLLOWING
        assert len(system.follow_me.get_commands_of_type('set_target_location')) > 1
        assert system.follow_me.is_active is True
