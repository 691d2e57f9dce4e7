"""Exceptions raised while reading unit files and controlling services."""

from pathlib import Path
from typing import List, Optional, Sequence


class ServiceControlError(Exception):
    """Base class for every error this package reports."""


# --- Unit file parsing ---


class UnitFileReadError(ServiceControlError):
    """The unit file could not be read or is not valid UTF-8."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read unit file {self.path}: {reason}")


class MalformedUnitFileError(ServiceControlError):
    """A line is neither blank, a comment, a section header nor a property."""

    def __init__(self, line_number: int, line: str, path: Optional[Path] = None):
        self.line_number = line_number
        self.line = line
        self.path = Path(path) if path is not None else None
        where = f"{self.path}:{line_number}" if self.path else f"line {line_number}"
        super().__init__(f"Malformed unit file at {where}: {line!r}")


# --- Section/property lookup ---


class LookupFailure(ServiceControlError):
    """A section or property expected in a unit file is absent."""


class MissingSectionError(LookupFailure):
    def __init__(self, section: str):
        self.section = section
        super().__init__(f"Section [{section}] not found")


class MissingKeyError(LookupFailure):
    def __init__(self, section: str, key: str):
        self.section = section
        self.key = key
        super().__init__(f"Key {key} not found in section [{section}]")


# --- ExecStart resolution ---


class UnitFileMissingError(ServiceControlError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Unit file {self.path} does not exist")


class ExecStartMissingError(ServiceControlError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"No [Service] ExecStart in {self.path}")


class MalformedExecStartError(ServiceControlError):
    def __init__(self, path: Path, value: str, reason: str):
        self.path = Path(path)
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot parse ExecStart {value!r} in {self.path}: {reason}")


class MultipleExecStartError(ServiceControlError):
    def __init__(self, path: Path, values: Sequence[str]):
        self.path = Path(path)
        self.values: List[str] = list(values)
        super().__init__(f"{len(self.values)} ExecStart entries in {self.path}, expected exactly one")


class ExecutableMissingError(ServiceControlError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Executable {self.path} does not exist")


# --- Validation ---


class ServiceNotFoundError(ServiceControlError):
    """A requested service has no unit file in the unit directory."""

    def __init__(self, name: str, unit_dir: Optional[Path] = None):
        self.name = name
        self.unit_dir = Path(unit_dir) if unit_dir is not None else None
        location = f" in {self.unit_dir}" if self.unit_dir else ""
        super().__init__(f"Service file for {name}.service not found{location}")


# --- Dispatch (stored on outcomes, not raised) ---


class ProcessSpawnError(ServiceControlError):
    def __init__(self, argv: Sequence[str], reason: str):
        self.argv = list(argv)
        self.reason = reason
        super().__init__(f"Failed to run {' '.join(self.argv)}: {reason}")


class NonZeroExitError(ServiceControlError):
    def __init__(self, status: int, stderr: str = ""):
        self.status = status
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"Exited with status {status}{detail}")


class DispatchTimeoutError(ServiceControlError):
    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(f"Timed out after {seconds}s")


class DispatchCancelledError(ServiceControlError):
    def __init__(self):
        super().__init__("Cancelled before the command was issued")
