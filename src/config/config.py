"""
Minimal Configuration Reader for Arbitration Log Tools

A lightweight profile-based configuration system:
- JSON profiles stored in profiles/<profile>.json
- Read-only dot-notation access (config.get('parser.count'))
- Automatic path resolution for file paths

Usage:
    from config import Config
    config = Config(profile='my_pc')
    count = config.get('parser.count', 2)

The profile directory defaults to the 'profiles' folder next to this file and
can be moved with the ARBITRATION_LOG_CONFIG_DIR environment variable.

Example profile:
    {
      "general": {"log_level": "INFO", "output_path": "output"},
      "paths": {"log_file": "$LOCALAPPDATA/Warframe", "node_map": "node-map.json"},
      "parser": {"chunk_size": 4194304, "min_duration_sec": 60, "count": 2},
      "economy": {"drop_chance": 0.06, "multipliers": {"resource_booster": 2}, "rotation_reward": 3}
    }
"""

import os
from typing import Dict, Any, List, Optional
from pathlib import Path

from arbitration_log.base import JSONTool, logger


class Config(JSONTool):
    """
    A minimal JSON-based configuration reader.

    Attributes:
        config_dir (str): Directory containing profile JSON files
        profile (str): Currently active profile name
        data (dict): Loaded configuration data
    """

    DEFAULT_CONFIG_DIR = str(Path(__file__).parent / 'profiles')
    CONFIG_DIR_ENV = 'ARBITRATION_LOG_CONFIG_DIR'
    DEFAULT_PROFILE = "default"

    def __init__(self, config_dir: str = None, profile: str = None,
                 config: Optional[Dict[str, Any]] = None):
        """
        Initialize the Config instance.

        Args:
            config_dir (str, optional): Directory for config profiles. Defaults to
                $ARBITRATION_LOG_CONFIG_DIR, then the 'profiles' subdirectory of this package.
            profile (str, optional): Profile name to use. Defaults to 'default'.
            config (dict, optional): Base configuration dictionary for JSONTool compatibility.
        """
        super().__init__(config)

        self.config_dir = config_dir or os.environ.get(self.CONFIG_DIR_ENV) or self.DEFAULT_CONFIG_DIR
        self.profile = profile or self.DEFAULT_PROFILE
        self.data = {}

        Path(self.config_dir).mkdir(parents=True, exist_ok=True)

        self._load()

    def run(self) -> Dict[str, Any]:
        """
        Run the config tool (implementation of abstract method from ArbitrationTool).

        Returns:
            The full configuration dictionary.
        """
        return self.get()

    def _load(self):
        """
        Load configuration from the profile JSON file.

        A missing default profile is created empty; a missing named profile
        or an unreadable file leaves an empty configuration.
        """
        profile_path = Path(self.config_dir) / f"{self.profile}.json"

        if not profile_path.exists():
            if self.profile == self.DEFAULT_PROFILE:
                self._create_default_profile(str(profile_path))
            else:
                logger.warning(f"Profile '{self.profile}' not found. Using empty configuration.")
                self.data = {}
            return

        try:
            self.data = self.read_json(str(profile_path))
            logger.info(f"Loaded configuration from '{self.profile}'")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading configuration: {e}")
            self.data = {}

        if not isinstance(self.data, dict):
            logger.error(f"Profile '{self.profile}' is not a JSON object. Using empty configuration.")
            self.data = {}

    def _create_default_profile(self, profile_path: str):
        """
        Create an empty default profile file.

        Args:
            profile_path (str): Path where the default profile will be created
        """
        try:
            self.write_json({}, profile_path)
            logger.info(f"Created default profile at '{profile_path}'")
        except OSError as e:
            logger.error(f"Error creating default configuration: {e}")
        self.data = {}

    def get(self, path: str = None, default: Any = None) -> Any:
        """
        Get a configuration value by path using dot notation.

        Args:
            path (str, optional): Dot notation path to the value (e.g. "parser.count").
                If None, returns the entire configuration dictionary.
            default (Any, optional): Value to return if path not found.

        Returns:
            Any: The configuration value at the specified path, or default if not found.

        Examples:
            >>> config.get('parser.min_duration_sec', 60)
            90
            >>> config.get()
            {'general': {...}, 'parser': {...}}
        """
        if path is None:
            return self.data

        current = self.data
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def list_profiles(self) -> List[str]:
        """
        List all available profile names.

        Returns:
            List[str]: Profile names (without .json extension), sorted.
        """
        return sorted(f.stem for f in Path(self.config_dir).glob("*.json"))

    def switch_profile(self, profile: str) -> bool:
        """
        Switch to a different profile.

        Args:
            profile (str): Name of profile to switch to (without .json extension).

        Returns:
            bool: True if successful, False if profile not found.
        """
        profile_path = Path(self.config_dir) / f"{profile}.json"
        if profile_path.exists():
            self.profile = profile
            self._load()
            return True

        logger.warning(f"Profile '{profile}' not found.")
        return False

    def get_path(self, path_key: str, fallback: str = None) -> str:
        """
        Get a resolved filesystem path from configuration.

        Args:
            path_key (str): Path key in dot notation (e.g., "paths.node_map")
            fallback (str, optional): Default path if not found

        Returns:
            str: Resolved absolute path, or an empty string if the path is unset.
                 Environment variables are expanded; relative paths are resolved
                 against the config directory.
        """
        path = self.get(path_key, fallback)
        if not path:
            return ""

        path_obj = Path(os.path.expanduser(os.path.expandvars(str(path))))
        if path_obj.is_absolute():
            return str(path_obj)

        return str(Path(self.config_dir) / path_obj)
