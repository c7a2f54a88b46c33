"""
Configuration manager for TripNav
Handles locating, loading and saving the configuration file
"""

import os
from pathlib import Path
from typing import Optional

from .models import TripNavConfig
from .parser import ConfigParser, ConfigParserError


class ConfigManagerError(Exception):
    """Configuration manager error"""
    pass


class ConfigManager:
    """Manager for the TripNav configuration file"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Directory for configuration files (defaults to $TRIPNAV_CONFIG_DIR or ~/.tripnav)
        """
        if config_dir is None:
            env_dir = os.getenv("TRIPNAV_CONFIG_DIR")
            config_dir = Path(env_dir) if env_dir else Path.home() / ".tripnav"

        self.config_dir = config_dir
        self.default_config_file = self.config_dir / "config.yaml"

    def load_config(self, config_path: Optional[Path] = None) -> TripNavConfig:
        """
        Load configuration from file

        A missing default file yields the built-in defaults; a missing explicit path is an error.

        Raises:
            ConfigManagerError: If loading fails
        """
        if config_path is None:
            if not self.default_config_file.exists():
                return TripNavConfig()
            config_path = self.default_config_file

        if not config_path.exists():
            raise ConfigManagerError(f"Configuration file not found: {config_path}")

        try:
            return ConfigParser.parse_config(config_path)
        except ConfigParserError as e:
            raise ConfigManagerError(f"Failed to load configuration: {e}")

    def save_config(self, config: TripNavConfig, config_path: Optional[Path] = None) -> Path:
        """Save configuration to file"""
        if config_path is None:
            config_path = self.default_config_file

        try:
            ConfigParser.save_file(config, config_path)
        except ConfigParserError as e:
            raise ConfigManagerError(f"Failed to save configuration: {e}")
        return config_path

    def create_default_config(self, overwrite: bool = False) -> Path:
        """
        Write the default configuration file

        Raises:
            ConfigManagerError: If the file exists and overwrite is False
        """
        if self.default_config_file.exists() and not overwrite:
            raise ConfigManagerError(
                f"Default config already exists: {self.default_config_file}. "
                "Use overwrite=True to replace it."
            )

        return self.save_config(ConfigParser.create_template_config())
