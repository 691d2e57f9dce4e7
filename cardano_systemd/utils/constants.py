"""Application constants and configuration."""

from pathlib import Path

# Application metadata
APP_NAME = "cardano-systemd"
APP_VERSION = "1.0.0"

# Paths
CONFIG_DIR = Path.home() / ".config" / "cardano-systemd"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
LOG_FILE = CONFIG_DIR / "cardano-systemd.log"

# Service manager
DEFAULT_SYSTEMD_DIR = Path("/etc/systemd/system")
DEFAULT_SYSTEMCTL = "systemctl"
DEFAULT_ELEVATION = "all"
DEFAULT_ELEVATION_COMMAND = "sudo"
UNIT_SUFFIX = ".service"

# Dispatch
DEFAULT_TIMEOUT = None  # seconds, None waits for the process to exit
DEFAULT_MAX_WORKERS = 4

# Registry used when the config file names no services
DEFAULT_SERVICES = ["cardano-node"]
