"""Check that every service in a batch has a unit file before acting on any."""

import logging
from pathlib import Path
from typing import Iterable

from ..errors import ServiceNotFoundError
from ..models.service import unit_filename
from ..utils.constants import DEFAULT_SYSTEMD_DIR

logger = logging.getLogger(__name__)


def is_entry_name(filename: str) -> bool:
    """True if filename names an entry directly inside a directory."""
    return bool(filename) and Path(filename).name == filename and filename not in (".", "..")


def unit_file_exists(name: str, systemd_dir: Path = DEFAULT_SYSTEMD_DIR) -> bool:
    """Check if '<name>.service' is an entry of the unit directory.

    Names that would reach outside the directory, such as '../x', never match.
    """
    filename = unit_filename(name)
    if not name or not is_entry_name(filename):
        return False
    return (Path(systemd_dir) / filename).exists()


def check_all(names: Iterable[str], systemd_dir: Path = DEFAULT_SYSTEMD_DIR) -> None:
    """Verify unit files exist for all services, in order.

    Stops at the first service without a unit file.

    Args:
        names: Logical service names, checked in iteration order
        systemd_dir: Directory holding unit files

    Raises:
        ServiceNotFoundError: For the first service whose unit file is missing
    """
    for name in names:
        if not unit_file_exists(name, systemd_dir):
            logger.warning(f"Unit file {unit_filename(name)} not found in {systemd_dir}")
            raise ServiceNotFoundError(name, systemd_dir)
