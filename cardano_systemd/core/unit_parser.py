"""Parser for systemd unit files.

Only the subset of the unit file grammar needed to validate services is
understood: blank lines, comments, section headers and Key=Value properties.
Anything else is rejected with the number of the offending line.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..errors import MalformedUnitFileError, UnitFileReadError
from ..models.unit_file import DEFAULT_SECTION, PropertyValue, UnitFile

logger = logging.getLogger(__name__)

COMMENT_PREFIXES = ("#", ";")
HEADER_RE = re.compile(r"^\[([^\[\]]+)\]$")
KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@-]*$")


class LineKind(Enum):
    BLANK = "blank"
    COMMENT = "comment"
    HEADER = "header"
    PROPERTY = "property"
    INVALID = "invalid"


@dataclass(frozen=True)
class UnitLine:
    """One classified source line.

    ``name`` is the section name for HEADER lines and the key for PROPERTY
    lines; ``value`` is only set for PROPERTY lines.
    """

    number: int
    kind: LineKind
    text: str
    name: str = ""
    value: str = ""


def classify_line(number: int, text: str) -> UnitLine:
    """Classify a single line of unit file text."""
    stripped = text.strip()
    if not stripped:
        return UnitLine(number, LineKind.BLANK, text)
    if stripped.startswith(COMMENT_PREFIXES):
        return UnitLine(number, LineKind.COMMENT, text)

    match = HEADER_RE.match(stripped)
    if match:
        name = match.group(1).strip()
        if name:
            return UnitLine(number, LineKind.HEADER, text, name=name)
        return UnitLine(number, LineKind.INVALID, text)

    if "=" in stripped:
        key, value = stripped.split("=", 1)
        key = key.rstrip()
        if KEY_RE.match(key):
            return UnitLine(number, LineKind.PROPERTY, text, name=key, value=value.strip())

    return UnitLine(number, LineKind.INVALID, text)


def tokenize(text: str) -> Iterable[UnitLine]:
    """Yield classified lines, numbered from 1."""
    for number, line in enumerate(text.splitlines(), start=1):
        yield classify_line(number, line)


def parse_unit_text(text: str, path: Optional[Path] = None) -> UnitFile:
    """Parse unit file text into sections of normalized properties.

    A section header seen again reopens the existing section. Properties
    before the first header land in the unnamed default section.

    Args:
        text: Full unit file contents
        path: Source path, only used in error messages

    Returns:
        UnitFile with every key normalized to scalar or list form

    Raises:
        MalformedUnitFileError: On the first line that fits no known form
    """
    raw: Dict[str, Dict[str, List[str]]] = {}
    current = DEFAULT_SECTION

    for line in tokenize(text):
        if line.kind in (LineKind.BLANK, LineKind.COMMENT):
            continue
        if line.kind is LineKind.HEADER:
            current = line.name
            raw.setdefault(current, {})
        elif line.kind is LineKind.PROPERTY:
            raw.setdefault(current, {}).setdefault(line.name, []).append(line.value)
        else:
            raise MalformedUnitFileError(line.number, line.text, path)

    sections = {
        name: {key: PropertyValue.from_occurrences(values) for key, values in properties.items()}
        for name, properties in raw.items()
    }
    return UnitFile(sections)


def parse_unit_file(path: Path) -> UnitFile:
    """Read and parse a unit file from disk.

    Raises:
        UnitFileReadError: If the file cannot be read or decoded as UTF-8
        MalformedUnitFileError: If the contents do not parse
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise UnitFileReadError(path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise UnitFileReadError(path, e.strerror or str(e)) from e

    logger.debug(f"Parsing unit file {path}")
    return parse_unit_text(text, path)


def get_property(unit: UnitFile, section: str, key: str) -> PropertyValue:
    """Look up ``section.key`` in a parsed unit file.

    Raises:
        MissingSectionError: If the section is absent
        MissingKeyError: If the section exists but the key does not
    """
    return unit.get(section, key)
