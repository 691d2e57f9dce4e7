"""Data models for service lifecycle dispatch."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..utils.constants import UNIT_SUFFIX


class LifecycleAction(Enum):
    """Actions that can be applied to a service."""

    START = "start"
    STOP = "stop"
    STATUS = "status"
    INTERRUPT = "interrupt"
    LIST = "list"

    @classmethod
    def from_string(cls, action_str: str) -> 'LifecycleAction':
        """Convert a string to LifecycleAction enum.

        Args:
            action_str: Action name as typed on the command line

        Returns:
            LifecycleAction enum value

        Raises:
            ValueError: If the string names no known action
        """
        try:
            return cls(action_str.strip().lower())
        except ValueError:
            valid = ", ".join(a.value for a in cls)
            raise ValueError(f"Unknown action: {action_str}. Must be one of: {valid}") from None

    @property
    def is_mutating(self) -> bool:
        """True for actions that change the state of the unit."""
        return self in (LifecycleAction.START, LifecycleAction.STOP, LifecycleAction.INTERRUPT)


def unit_filename(name: str) -> str:
    """Map a logical service name to its unit filename."""
    return f"{name}{UNIT_SUFFIX}"


@dataclass
class ServiceDescriptor:
    """What is known on disk about one configured service.

    Attributes:
        name: Logical service name (e.g. 'cardano-node')
        unit_exists: Whether '<name>.service' exists in the unit directory
        exec_start: Validated ExecStart executable, when resolution was requested and succeeded
        exec_start_error: Why ExecStart resolution failed, when it was requested and failed
    """

    name: str
    unit_exists: bool
    exec_start: Optional[Path] = None
    exec_start_error: Optional[Exception] = None

    @property
    def unit_file(self) -> str:
        return unit_filename(self.name)

    @property
    def executable_exists(self) -> Optional[bool]:
        """None when ExecStart was not resolved, otherwise whether it resolved."""
        if self.exec_start is None and self.exec_start_error is None:
            return None
        return self.exec_start is not None


@dataclass
class DispatchOutcome:
    """Result of dispatching one action to one service.

    Attributes:
        name: Logical service name
        succeeded: True if the command ran and exited with status 0
        returncode: Exit status of the command, None if it never ran to completion
        stdout: Captured standard output
        stderr: Captured standard error
        error: The failure, when the dispatch did not succeed
    """

    name: str
    succeeded: bool
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    error: Optional[Exception] = None


@dataclass
class BatchResult:
    """Per-service outcomes of one dispatch batch, in request order."""

    action: LifecycleAction
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(outcome.succeeded for outcome in self.outcomes)

    @property
    def failures(self) -> List[DispatchOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def get(self, name: str) -> Optional[DispatchOutcome]:
        """Get the first outcome for a service name, or None."""
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None
