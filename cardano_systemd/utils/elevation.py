"""Privilege elevation policy for service manager invocations."""

import logging
from enum import Enum

from ..models.service import LifecycleAction

logger = logging.getLogger(__name__)


class ElevationPolicy(Enum):
    """Which lifecycle actions are run through the elevation command."""

    ALL = "all"
    MUTATING = "mutating"
    NONE = "none"

    @classmethod
    def from_string(cls, policy_str: str) -> 'ElevationPolicy':
        """Convert a config string to ElevationPolicy.

        Args:
            policy_str: One of 'all', 'mutating' or 'none' (case-insensitive)

        Returns:
            ElevationPolicy enum value

        Raises:
            ValueError: If the string names no known policy
        """
        try:
            return cls(str(policy_str).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Invalid elevation policy: {policy_str}. Must be one of: {valid}") from None


def needs_elevation(action: LifecycleAction, policy: ElevationPolicy) -> bool:
    """Check whether a command for this action gets the elevation prefix.

    Args:
        action: Lifecycle action being dispatched
        policy: Configured elevation policy

    Returns:
        True if the command must be prefixed, False otherwise
    """
    if policy is ElevationPolicy.ALL:
        return True
    if policy is ElevationPolicy.MUTATING:
        return action.is_mutating
    return False
