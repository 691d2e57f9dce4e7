import subprocess
import threading
from pathlib import Path

import pytest

from cardano_systemd.core.service_manager import RunResult


class FakeRunner:
    """Runner that records commands instead of executing them.

    Results are picked by the unit named in the command's last argument.
    """

    def __init__(self, results=None, errors=None):
        self.results = results or {}
        self.errors = errors or {}
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, cmd, timeout=None):
        with self._lock:
            self.calls.append(list(cmd))
        unit = cmd[-1]
        if unit in self.errors:
            raise self.errors[unit]
        return self.results.get(unit, RunResult(stdout="", stderr="", returncode=0))

    @property
    def units(self):
        return sorted(cmd[-1] for cmd in self.calls)


@pytest.fixture
def unit_dir(tmp_path) -> Path:
    path = tmp_path / "systemd" / "system"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_unit(unit_dir):
    def _write(name: str, content: str = "[Service]\nExecStart=/bin/true\n") -> Path:
        path = unit_dir / f"{name}.service"
        path.write_text(content)
        return path
    return _write


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def timeout_error():
    return subprocess.TimeoutExpired(cmd=["systemctl"], timeout=5)
