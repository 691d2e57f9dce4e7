"""Utility functions and constants."""

from .constants import *

__all__ = ["APP_NAME", "CONFIG_DIR", "CONFIG_FILE", "DEFAULT_SYSTEMD_DIR", "UNIT_SUFFIX"]
