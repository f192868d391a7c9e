# src/followme/parameters.py
"""
Parameters Module - Central Configuration Management
=====================================================

This module provides the Parameters class for loading and accessing
configuration values from YAML files.

Every section of config.yaml is flattened into uppercase class attributes,
so `MAVSDK: {system_address: ...}` becomes `Parameters.SYSTEM_ADDRESS`.
Class-level defaults below are used for any key the file leaves out, which
also keeps the package usable without a config file.
"""

import os
import logging
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = os.environ.get('FOLLOWME_CONFIG', 'configs/config.yaml')


class Parameters:
    """
    Central configuration class for the follow-target mission.
    Configurations are set as class variables.
    """

    # Raw config storage
    _raw_config: Dict[str, Any] = {}

    # MAVSDK
    SYSTEM_ADDRESS = 'udp://:14540'
    EXTERNAL_MAVSDK_SERVER = False
    MAVSDK_SERVER_ADDRESS = 'localhost'
    MAVSDK_SERVER_PORT = 50051

    # Mission
    POLL_INTERVAL_S = 1.0
    SETTLE_DELAY_S = 5.0
    POST_LAND_WATCH_S = 5.0
    COMMAND_TIMEOUT_S = None

    # LocationFeed
    LOCATION_SOURCE = 'fake'
    LOCATION_FILE = ''
    LOCATION_INTERVAL_S = 1.0
    START_LATITUDE_DEG = 47.3977419
    START_LONGITUDE_DEG = 8.5455938
    STEP_M = 4.0
    SIDE_SAMPLES = 10
    MAX_UPDATES = 40

    # Logging
    LOG_LEVEL = 'INFO'
    STATUS_BUFFER_SIZE = 50

    @classmethod
    def load_config(cls, config_file=DEFAULT_CONFIG_FILE):
        """
        Load configurations from a YAML file and set class variables.
        """
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        cls._raw_config = config

        for section, params in config.items():
            if params is None:
                continue
            if isinstance(params, dict):
                for key, value in params.items():
                    setattr(cls, key.upper(), value)
            else:
                setattr(cls, section.upper(), params)

        logger.debug(f"Configuration loaded from {config_file}")

    @classmethod
    def get_section(cls, section_name: str) -> dict:
        """
        Get all parameters in a section as a dictionary.

        Args:
            section_name: Name of the section (e.g., 'Mission', 'LocationFeed')

        Returns:
            dict: The section parameters, or empty dict if not found
        """
        section = cls._raw_config.get(section_name)
        return dict(section) if isinstance(section, dict) else {}

    @classmethod
    def reload_config(cls, config_file: str = DEFAULT_CONFIG_FILE) -> bool:
        """
        Reload configuration from disk.

        Returns:
            bool: True if reload was successful, False otherwise
        """
        try:
            logger.info(f"Reloading configuration from {config_file}")
            cls.load_config(config_file)
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to reload configuration: {e}")
            return False


# Load the configurations upon module import
if os.path.exists(DEFAULT_CONFIG_FILE):
    Parameters.load_config()
