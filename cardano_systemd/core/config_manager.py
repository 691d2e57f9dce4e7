"""Configuration manager for loading the service registry and settings."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..utils.constants import (
    CONFIG_FILE,
    DEFAULT_ELEVATION,
    DEFAULT_ELEVATION_COMMAND,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SERVICES,
    DEFAULT_SYSTEMCTL,
    DEFAULT_SYSTEMD_DIR,
    DEFAULT_TIMEOUT,
)
from ..utils.elevation import ElevationPolicy

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages the known service registry and dispatch settings."""

    def __init__(self, config_file: Optional[Path] = None):
        """Initialize the config manager.

        Args:
            config_file: Path of the YAML config, defaults to ~/.config/cardano-systemd/config.yaml
        """
        self.config_file = Path(config_file) if config_file is not None else CONFIG_FILE
        self.services: List[str] = []
        self.settings: Dict[str, Any] = {}
        self._load_defaults()

    def load_config(self) -> bool:
        """Load configuration from file.

        Returns:
            True if config loaded successfully, False if defaults are in use
        """
        if not self.config_file.exists():
            logger.info("Config file not found, using defaults")
            self._load_defaults()
            return False

        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f)

        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            self._load_defaults()
            return False
        except OSError as e:
            logger.error(f"Failed to read config {self.config_file}: {e}")
            self._load_defaults()
            return False

        if not data:
            logger.warning("Empty config file, using defaults")
            self._load_defaults()
            return False

        if not self._validate_config(data):
            logger.error("Invalid config file, using defaults")
            self._load_defaults()
            return False

        self.services = self._load_services(data.get("services", list(DEFAULT_SERVICES)))
        self.settings = dict(data.get("settings") or {})
        self._ensure_default_settings()

        logger.info(f"Loaded {len(self.services)} services from config")
        return True

    def get_services(self) -> List[str]:
        """Get the ordered registry of known service names."""
        return list(self.services)

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value.

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: Any):
        """Override a setting for this run.

        Args:
            key: Setting key
            value: Setting value
        """
        self.settings[key] = value

    def _load_services(self, raw_services: List[Any]) -> List[str]:
        """Keep non-empty string names, dropping duplicates but preserving order."""
        services: List[str] = []
        for entry in raw_services:
            if not isinstance(entry, str) or not entry.strip():
                logger.error(f"Ignoring invalid service name: {entry!r}")
                continue
            name = entry.strip()
            if name in services:
                logger.warning(f"Duplicate service {name} in config, keeping first occurrence")
                continue
            services.append(name)
        return services

    def _validate_config(self, data: Any) -> bool:
        """Validate configuration data structure.

        Args:
            data: Parsed YAML document

        Returns:
            True if valid, False otherwise
        """
        if not isinstance(data, dict):
            logger.error("Config must be a dictionary")
            return False

        if "version" not in data:
            logger.warning("Config missing version, assuming valid")

        if "services" in data and not isinstance(data["services"], list):
            logger.error("Services must be a list")
            return False

        settings = data.get("settings")
        if settings is None:
            return True

        if not isinstance(settings, dict):
            logger.error("Settings must be a dictionary")
            return False

        if "elevation" in settings:
            try:
                ElevationPolicy.from_string(settings["elevation"])
            except ValueError as e:
                logger.error(str(e))
                return False

        timeout = settings.get("timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
            logger.error(f"Timeout must be a positive number of seconds or null, got {timeout!r}")
            return False

        max_workers = settings.get("max_workers", DEFAULT_MAX_WORKERS)
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            logger.error(f"max_workers must be a positive integer, got {max_workers!r}")
            return False

        return True

    def _load_defaults(self):
        """Load default configuration."""
        self.services = list(DEFAULT_SERVICES)
        self.settings = {}
        self._ensure_default_settings()

    def _ensure_default_settings(self):
        """Ensure all default settings exist."""
        defaults = {
            "systemd_dir": str(DEFAULT_SYSTEMD_DIR),
            "systemctl": DEFAULT_SYSTEMCTL,
            "elevation": DEFAULT_ELEVATION,
            "elevation_command": DEFAULT_ELEVATION_COMMAND,
            "timeout": DEFAULT_TIMEOUT,
            "max_workers": DEFAULT_MAX_WORKERS,
            "resolve_exec_start": False,
        }

        for key, value in defaults.items():
            if key not in self.settings:
                self.settings[key] = value
