# src/followme/logging_manager.py
"""
Mission Logging Manager
Provides clean, informative logging with spam reduction for polling loops
and a command summary at the end of a mission.
"""

import time
import logging
from collections import defaultdict
from typing import Dict, Optional
from dataclasses import dataclass
from threading import Lock


@dataclass
class ConnectionStatus:
    """Track connection status for clean logging."""
    is_connected: bool = False
    last_connected_time: Optional[float] = None
    last_disconnected_time: Optional[float] = None
    consecutive_failures: int = 0
    last_log_time: float = 0.0


class LoggingManager:
    """
    Logging manager that provides:
    - Spam reduction for repetitive "still waiting" messages
    - Connection edge logging (connected / lost)
    - Command counters reported once per mission
    """

    def __init__(self, spam_cooldown: float = 5.0):
        self._lock = Lock()

        self._connections: Dict[str, ConnectionStatus] = {}
        self._command_results: Dict[str, Dict[str, int]] = defaultdict(lambda: {'ok': 0, 'failed': 0})

        # Spam prevention
        self._spam_filter: Dict[str, float] = {}
        self._spam_cooldown = spam_cooldown

    def log_connection_status(self, logger: logging.Logger, service_name: str,
                              is_connected: bool, details: str = "") -> None:
        """
        Log connection status with spam reduction.

        Args:
            logger: Logger instance
            service_name: Name of the service (e.g., 'Vehicle', 'Health')
            is_connected: Current connection status
            details: Additional details for the log
        """
        with self._lock:
            status = self._connections.get(service_name, ConnectionStatus())
            current_time = time.time()
            status_changed = status.is_connected != is_connected

            if is_connected:
                if status_changed:
                    status.last_connected_time = current_time
                    status.consecutive_failures = 0
                    logger.info(f"[{service_name}] Connected {details}".strip())
                status.is_connected = True
            else:
                status.consecutive_failures += 1
                status.last_disconnected_time = current_time

                if status_changed and status.last_connected_time is not None:
                    logger.warning(f"[{service_name}] Disconnected {details}".strip())
                elif current_time - status.last_log_time >= self._spam_cooldown:
                    logger.info(f"[{service_name}] Waiting "
                                f"({status.consecutive_failures} polls) {details}".strip())
                else:
                    self._connections[service_name] = status
                    return
                status.is_connected = False

            status.last_log_time = current_time
            self._connections[service_name] = status

    def log_operation(self, logger: logging.Logger, operation: str,
                      level: str = 'info', details: str = "") -> None:
        """
        Log operations with spam reduction.

        Args:
            logger: Logger instance
            operation: Operation name
            level: Log level ('debug', 'info', 'warning', 'error')
            details: Additional details
        """
        with self._lock:
            if not self._should_log_operation(operation):
                return

        message = f"[{operation}] {details}".strip() if details else f"[{operation}]"
        log_func = getattr(logger, level, logger.info)
        log_func(message)

    def record_command(self, command: str, ok: bool) -> None:
        """Count a vehicle command result for the mission summary."""
        with self._lock:
            self._command_results[command]['ok' if ok else 'failed'] += 1

    def command_counts(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return {name: dict(counts) for name, counts in self._command_results.items()}

    def log_mission_summary(self, logger: logging.Logger) -> None:
        """Log a summary of every command issued during the mission."""
        with self._lock:
            logger.info("=== MISSION SUMMARY ===")
            if self._command_results:
                logger.info("Commands:")
                for name, counts in self._command_results.items():
                    logger.info(f"  {name}: {counts['ok']} ok, {counts['failed']} failed")
            if self._connections:
                logger.info("Connections:")
                for service, status in self._connections.items():
                    state = "CONNECTED" if status.is_connected else "DISCONNECTED"
                    logger.info(f"  {service}: {state}")
            logger.info("=======================")

    def reset(self) -> None:
        """Clear all counters (one manager is shared per process)."""
        with self._lock:
            self._connections.clear()
            self._command_results.clear()
            self._spam_filter.clear()

    def _should_log_operation(self, operation: str) -> bool:
        """Determine if we should log an operation (spam reduction)."""
        current_time = time.time()
        last_log = self._spam_filter.get(operation, 0)

        if current_time - last_log >= self._spam_cooldown:
            self._spam_filter[operation] = current_time
            return True
        return False


# Global logging manager instance
logging_manager = LoggingManager()
