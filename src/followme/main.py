# src/followme/main.py
"""
followme command line entry point.

Usage:
    followme --config configs/config.yaml --feed fake

Exit codes: 0 mission completed, 1 mission aborted (failed command or
operator cancel before following), 2 setup error.
"""

import argparse
import asyncio
import logging
import signal
import sys

import yaml

from followme.parameters import Parameters
from followme.vehicle_link import VehicleLink
from followme.location_feed import create_location_feed
from followme.phase_controller import PhaseController
from followme.reporter import ConsoleReporter
from followme.mission_types import MissionOutcome

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Fly a follow-target mission on a PX4 vehicle.")
    parser.add_argument('--config', help="Path to config.yaml (default: configs/config.yaml)")
    parser.add_argument('--system-address', help="MAVLink address, e.g. udp://:14540")
    parser.add_argument('--feed', choices=['fake', 'file'], help="Location source to follow")
    parser.add_argument('--feed-file', help="YAML file of [lat, lon] samples for --feed file")
    parser.add_argument('--command-timeout', type=float,
                        help="Fail a vehicle command after this many seconds (default: wait forever)")
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--no-color', action='store_true', help="Disable ANSI colours")
    return parser.parse_args(argv)


def _install_signal_handlers(controller: PhaseController) -> None:
    """Ctrl+C / SIGTERM abort the mission before following, or end following so the vehicle lands."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, controller.cancel)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers.
            logger.debug(f"Signal handler for {sig} not installed")


async def fly(controller: PhaseController) -> MissionOutcome:
    _install_signal_handlers(controller)
    try:
        return await controller.run()
    finally:
        await controller.link.close()


def run_mission(args) -> MissionOutcome:
    """Builds the mission from configuration and blocks until it terminates."""
    if args.feed_file:
        Parameters.LOCATION_FILE = args.feed_file
    timeout = args.command_timeout if args.command_timeout is not None else Parameters.COMMAND_TIMEOUT_S

    link = VehicleLink(system_address=args.system_address, command_timeout_s=timeout)
    feed = create_location_feed(args.feed)
    reporter = ConsoleReporter(use_color=not args.no_color)
    controller = PhaseController(link, feed, reporter)
    return asyncio.run(fly(controller))


def main(argv=None):
    """
    Entry point: configures logging, runs the mission, and exits with 0 on
    completion or 1 when the mission aborted. The diagnostic reaches the
    console once, through the ConsoleReporter error channel.
    """
    args = parse_args(argv)
    if args.config:
        try:
            Parameters.load_config(args.config)
        except (OSError, yaml.YAMLError) as e:
            print(f"Could not load configuration: {e}", file=sys.stderr)
            sys.exit(2)

    logging.basicConfig(level=getattr(logging, (args.log_level or Parameters.LOG_LEVEL).upper(), logging.INFO),
                        format="%(asctime)s [%(levelname)s] %(message)s")
    logging.info("Starting follow-target mission...")

    try:
        outcome = run_mission(args)
    except (OSError, ValueError) as e:
        logging.error(f"Mission setup failed: {e}")
        sys.exit(2)

    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    main()
