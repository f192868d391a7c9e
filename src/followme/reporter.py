# src/followme/reporter.py
"""
Mission reporters: where operator-facing mission messages go.

The controller and observer receive a reporter instead of printing, so
console styling stays out of the mission logic.
"""

import logging

ERROR_CONSOLE_TEXT = "\033[31m"      # red
TELEMETRY_CONSOLE_TEXT = "\033[34m"  # blue
NORMAL_CONSOLE_TEXT = "\033[0m"


class MissionReporter:
    """Reporter interface. The base implementation discards every message."""

    def status(self, message: str) -> None:
        pass

    def telemetry(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class ConsoleReporter(MissionReporter):
    """
    Routes mission messages through a logger, colouring telemetry blue and
    errors red the way the vehicle console does.
    """

    def __init__(self, logger: logging.Logger = None, use_color: bool = True):
        self.logger = logger or logging.getLogger('followme.mission')
        self.use_color = use_color

    def _paint(self, color: str, message: str) -> str:
        if not self.use_color:
            return message
        return f"{color}{message}{NORMAL_CONSOLE_TEXT}"

    def status(self, message: str) -> None:
        self.logger.info(message)

    def telemetry(self, message: str) -> None:
        self.logger.info(self._paint(TELEMETRY_CONSOLE_TEXT, message))

    def error(self, message: str) -> None:
        self.logger.error(self._paint(ERROR_CONSOLE_TEXT, message))

