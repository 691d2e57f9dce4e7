"""Core functionality for unit file parsing and service lifecycle dispatch."""

from .config_manager import ConfigManager
from .exec_start import resolve_exec_start
from .service_manager import ServiceManager, build_command
from .unit_parser import get_property, parse_unit_file, parse_unit_text
from .validator import check_all

__all__ = [
    "ConfigManager",
    "ServiceManager",
    "build_command",
    "check_all",
    "get_property",
    "parse_unit_file",
    "parse_unit_text",
    "resolve_exec_start",
]
