"""Data models for parsed systemd unit files."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Sequence, Tuple

from ..errors import MissingKeyError, MissingSectionError

# Name of the section that holds properties appearing before any header
DEFAULT_SECTION = ""


class ValueKind(Enum):
    """Shape of a normalized property value."""

    SCALAR = "scalar"
    LIST = "list"


@dataclass(frozen=True)
class PropertyValue:
    """Value of one key within a section.

    A key seen once is a scalar, a key seen two or more times is a list of
    every value in source order, and a key never seen is an empty scalar.

    Attributes:
        kind: SCALAR or LIST
        items: The raw values; exactly one for a scalar, two or more for a list
    """

    kind: ValueKind = ValueKind.SCALAR
    items: Tuple[str, ...] = ("",)

    @classmethod
    def from_occurrences(cls, values: Sequence[str]) -> 'PropertyValue':
        """Fold every occurrence of a key into its normalized value.

        Args:
            values: Raw values in the order they appear in the file

        Returns:
            PropertyValue for zero, one or many occurrences
        """
        if not values:
            return cls()
        if len(values) == 1:
            return cls(ValueKind.SCALAR, (values[0],))
        return cls(ValueKind.LIST, tuple(values))

    @classmethod
    def scalar(cls, value: str) -> 'PropertyValue':
        return cls(ValueKind.SCALAR, (value,))

    @property
    def is_list(self) -> bool:
        return self.kind is ValueKind.LIST

    @property
    def value(self) -> str:
        """The scalar value.

        Raises:
            ValueError: If the value is a list
        """
        if self.is_list:
            raise ValueError(f"Property holds {len(self.items)} values, not a scalar")
        return self.items[0]

    def __str__(self) -> str:
        return ", ".join(self.items) if self.is_list else self.items[0]


Section = Dict[str, PropertyValue]


@dataclass
class UnitFile:
    """Sections of a unit file, keyed by section name in first-seen order."""

    sections: Dict[str, Section] = field(default_factory=dict)

    def get(self, section: str, key: str) -> PropertyValue:
        """Look up a property by exact, case-sensitive section and key.

        Raises:
            MissingSectionError: If the section is absent
            MissingKeyError: If the section exists but the key does not
        """
        try:
            properties = self.sections[section]
        except KeyError:
            raise MissingSectionError(section) from None
        try:
            return properties[key]
        except KeyError:
            raise MissingKeyError(section, key) from None

    def has_section(self, section: str) -> bool:
        return section in self.sections

    def __contains__(self, section: str) -> bool:
        return section in self.sections

    def __iter__(self) -> Iterator[str]:
        return iter(self.sections)

    def __len__(self) -> int:
        return len(self.sections)
