"""Resolve and validate the executable a unit file launches."""

import logging
import shlex
from pathlib import Path

from ..errors import (
    ExecStartMissingError,
    ExecutableMissingError,
    LookupFailure,
    MalformedExecStartError,
    MultipleExecStartError,
    UnitFileMissingError,
)
from ..utils.constants import DEFAULT_SYSTEMD_DIR
from .unit_parser import get_property, parse_unit_file
from .validator import is_entry_name

logger = logging.getLogger(__name__)

# Special executable prefixes systemd accepts in front of the ExecStart path
EXEC_PREFIX_CHARS = "-@:+!"


def executable_from_command_line(command_line: str) -> str:
    """Extract the executable path from an ExecStart command line.

    Args:
        command_line: Raw ExecStart value, e.g. '-/usr/bin/node --config x'

    Returns:
        The executable path without arguments or systemd prefixes, '' if none

    Raises:
        ValueError: If the command line has unbalanced quotes or escapes
    """
    tokens = shlex.split(command_line)
    if not tokens:
        return ""
    return tokens[0].lstrip(EXEC_PREFIX_CHARS)


def resolve_exec_start(filename: str, systemd_dir: Path = DEFAULT_SYSTEMD_DIR) -> Path:
    """Validate the ExecStart target of a unit file.

    Args:
        filename: Unit filename within the unit directory, e.g. 'cardano-node.service'
        systemd_dir: Directory holding unit files

    Returns:
        Path of the executable, which exists on disk

    Raises:
        UnitFileMissingError: If the unit file does not exist
        UnitFileReadError: If the unit file cannot be read
        MalformedUnitFileError: If the unit file does not parse
        ExecStartMissingError: If there is no [Service] section or no ExecStart in it
        MalformedExecStartError: If the ExecStart command line cannot be split
        MultipleExecStartError: If ExecStart appears more than once
        ExecutableMissingError: If the executable is not an absolute path that exists
    """
    unit_path = Path(systemd_dir) / filename
    if not is_entry_name(filename) or not unit_path.exists():
        raise UnitFileMissingError(unit_path)

    unit = parse_unit_file(unit_path)
    try:
        exec_start = get_property(unit, "Service", "ExecStart")
    except LookupFailure as e:
        raise ExecStartMissingError(unit_path) from e

    if exec_start.is_list:
        raise MultipleExecStartError(unit_path, exec_start.items)

    try:
        executable = executable_from_command_line(exec_start.value)
    except ValueError as e:
        raise MalformedExecStartError(unit_path, exec_start.value, str(e)) from e

    if not executable:
        raise ExecStartMissingError(unit_path)

    executable_path = Path(executable)
    # bare names are not looked up on any search path
    if not executable_path.is_absolute() or not executable_path.exists():
        raise ExecutableMissingError(executable_path)

    logger.debug(f"{filename}: ExecStart resolves to {executable_path}")
    return executable_path
