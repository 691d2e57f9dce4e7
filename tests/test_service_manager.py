"""
Tests for validation, command construction and batch dispatch.
No systemctl is ever executed: commands go to a recording fake runner.
"""

import threading

import pytest

from cardano_systemd.core.service_manager import RunResult, ServiceManager, build_command
from cardano_systemd.core.validator import check_all
from cardano_systemd.errors import (
    DispatchCancelledError,
    DispatchTimeoutError,
    NonZeroExitError,
    ProcessSpawnError,
    ServiceNotFoundError,
)
from cardano_systemd.models.service import LifecycleAction
from cardano_systemd.utils.elevation import ElevationPolicy


@pytest.fixture
def three_units(write_unit):
    for name in ("a", "b", "c"):
        write_unit(name)


def make_manager(unit_dir, runner, **kwargs):
    return ServiceManager(systemd_dir=unit_dir, runner=runner, **kwargs)


# --- validation ---


def test_check_all_passes(unit_dir, three_units):
    assert check_all(["a", "b", "c"], unit_dir) is None


def test_check_all_reports_first_missing(unit_dir, write_unit):
    write_unit("a")
    write_unit("c")
    with pytest.raises(ServiceNotFoundError) as err:
        check_all(["a", "b", "c"], unit_dir)
    assert err.value.name == "b"


def test_check_all_fails_fast_in_order(unit_dir, write_unit):
    write_unit("a")
    with pytest.raises(ServiceNotFoundError) as err:
        check_all(["a", "x", "y"], unit_dir)
    assert err.value.name == "x"


def test_check_all_rejects_names_outside_unit_dir(unit_dir, write_unit):
    write_unit("a")
    (unit_dir.parent / "escaped.service").write_text("[Service]\nExecStart=/bin/true\n")
    for name in ("../escaped", "sub/a", ""):
        with pytest.raises(ServiceNotFoundError) as err:
            check_all(["a", name], unit_dir)
        assert err.value.name == name


def test_dispatch_never_runs_name_outside_unit_dir(unit_dir, write_unit, fake_runner):
    (unit_dir.parent / "escaped.service").write_text("[Service]\nExecStart=/bin/true\n")
    with pytest.raises(ServiceNotFoundError):
        make_manager(unit_dir, fake_runner).dispatch(LifecycleAction.START, ["../escaped"])
    assert fake_runner.calls == []


def test_dispatch_rejects_whole_batch(unit_dir, write_unit, fake_runner):
    write_unit("a")
    write_unit("c")
    manager = make_manager(unit_dir, fake_runner)
    with pytest.raises(ServiceNotFoundError) as err:
        manager.dispatch(LifecycleAction.START, ["a", "b", "c"])
    assert err.value.name == "b"
    assert fake_runner.calls == []


# --- command construction ---


@pytest.mark.parametrize("action, verb", [
    (LifecycleAction.START, "start"),
    (LifecycleAction.STOP, "stop"),
    (LifecycleAction.STATUS, "status"),
])
def test_build_command_verbs(action, verb):
    assert build_command(action, "cardano-node") == ["sudo", "systemctl", verb, "cardano-node.service"]


def test_build_command_interrupt_sends_sigint():
    assert build_command(LifecycleAction.INTERRUPT, "x") == ["sudo", "systemctl", "kill", "-s", "SIGINT", "x.service"]


def test_build_command_list_is_not_dispatchable():
    with pytest.raises(ValueError):
        build_command(LifecycleAction.LIST, "x")


def test_build_command_elevation_policies():
    assert build_command(LifecycleAction.STATUS, "x", elevation=ElevationPolicy.NONE) == ["systemctl", "status", "x.service"]
    assert build_command(LifecycleAction.STATUS, "x", elevation=ElevationPolicy.MUTATING) == ["systemctl", "status", "x.service"]
    assert build_command(LifecycleAction.STOP, "x", elevation=ElevationPolicy.MUTATING) == ["sudo", "systemctl", "stop", "x.service"]
    assert build_command(
        LifecycleAction.START, "x", systemctl="/bin/systemctl", elevation_command="pkexec"
    ) == ["pkexec", "/bin/systemctl", "start", "x.service"]


def test_elevation_policy_from_string():
    assert ElevationPolicy.from_string("Mutating") is ElevationPolicy.MUTATING
    with pytest.raises(ValueError):
        ElevationPolicy.from_string("sometimes")


def test_action_from_string():
    assert LifecycleAction.from_string("INTERRUPT") is LifecycleAction.INTERRUPT
    assert not LifecycleAction.STATUS.is_mutating
    with pytest.raises(ValueError):
        LifecycleAction.from_string("restart")


# --- dispatch ---


def test_dispatch_all_succeed(unit_dir, three_units, fake_runner):
    result = make_manager(unit_dir, fake_runner).dispatch(LifecycleAction.STOP, ["a", "b", "c"])
    assert result.succeeded
    assert [o.name for o in result.outcomes] == ["a", "b", "c"]
    assert sorted(fake_runner.calls) == [
        ["sudo", "systemctl", "stop", "a.service"],
        ["sudo", "systemctl", "stop", "b.service"],
        ["sudo", "systemctl", "stop", "c.service"],
    ]


def test_dispatch_collects_every_failure(unit_dir, three_units, make_runner):
    runner = make_runner(results={"b.service": RunResult(stdout="", stderr="Unit b failed", returncode=1)})
    result = make_manager(unit_dir, runner).dispatch(LifecycleAction.START, ["a", "b", "c"])

    assert not result.succeeded
    assert [o.name for o in result.outcomes] == ["a", "b", "c"]
    assert [o.succeeded for o in result.outcomes] == [True, False, True]
    failed = result.get("b")
    assert isinstance(failed.error, NonZeroExitError)
    assert failed.error.status == 1
    assert failed.returncode == 1
    assert failed.stderr == "Unit b failed"
    assert runner.units == ["a.service", "b.service", "c.service"]


def test_dispatch_spawn_failure_is_per_service(unit_dir, three_units, make_runner):
    runner = make_runner(errors={"a.service": FileNotFoundError(2, "No such file or directory")})
    result = make_manager(unit_dir, runner).dispatch(LifecycleAction.START, ["a", "b", "c"])
    assert [o.succeeded for o in result.outcomes] == [False, True, True]
    assert isinstance(result.outcomes[0].error, ProcessSpawnError)
    assert result.outcomes[0].returncode is None


def test_dispatch_timeout_is_per_service(unit_dir, three_units, timeout_error, make_runner):
    runner = make_runner(errors={"c.service": timeout_error})
    result = make_manager(unit_dir, runner, timeout=5).dispatch(LifecycleAction.STOP, ["a", "b", "c"])
    assert [o.succeeded for o in result.outcomes] == [True, True, False]
    assert isinstance(result.outcomes[2].error, DispatchTimeoutError)
    assert result.outcomes[2].error.seconds == 5


def test_dispatch_passes_timeout_to_runner(unit_dir, write_unit):
    write_unit("a")
    seen = []

    def runner(cmd, timeout=None):
        seen.append(timeout)
        return RunResult(stdout="", stderr="", returncode=0)

    make_manager(unit_dir, runner, timeout=12.5).dispatch(LifecycleAction.STATUS, ["a"])
    assert seen == [12.5]


def test_dispatch_status_captures_output(unit_dir, write_unit, make_runner):
    write_unit("a")
    runner = make_runner(results={"a.service": RunResult(stdout="active (running)\n", stderr="", returncode=0)})
    result = make_manager(unit_dir, runner).dispatch(LifecycleAction.STATUS, ["a"])
    assert result.outcomes[0].stdout == "active (running)\n"


def test_dispatch_cancelled_before_start(unit_dir, three_units, fake_runner):
    cancel = threading.Event()
    cancel.set()
    result = make_manager(unit_dir, fake_runner).dispatch(LifecycleAction.START, ["a", "b", "c"], cancel_event=cancel)
    assert fake_runner.calls == []
    assert all(isinstance(o.error, DispatchCancelledError) for o in result.outcomes)


def test_dispatch_cancel_does_not_abort_running_command(unit_dir, write_unit):
    write_unit("a")
    write_unit("b")
    cancel = threading.Event()
    calls = []

    def runner(cmd, timeout=None):
        calls.append(cmd[-1])
        cancel.set()
        return RunResult(stdout="", stderr="", returncode=0)

    result = make_manager(unit_dir, runner, max_workers=1).dispatch(LifecycleAction.START, ["a", "b"], cancel_event=cancel)
    assert calls == ["a.service"]
    assert result.outcomes[0].succeeded
    assert isinstance(result.outcomes[1].error, DispatchCancelledError)


def test_dispatch_rejects_empty_batch_and_list(unit_dir, fake_runner):
    manager = make_manager(unit_dir, fake_runner)
    with pytest.raises(ValueError):
        manager.dispatch(LifecycleAction.START, [])
    with pytest.raises(ValueError):
        manager.dispatch(LifecycleAction.LIST, ["a"])


def test_invalid_max_workers(unit_dir):
    with pytest.raises(ValueError):
        ServiceManager(systemd_dir=unit_dir, max_workers=0)


# --- list ---


def test_list_services_existence_only(unit_dir, write_unit, fake_runner):
    write_unit("a")
    descriptors = make_manager(unit_dir, fake_runner).list_services(["a", "b"])
    assert [(d.name, d.unit_exists) for d in descriptors] == [("a", True), ("b", False)]
    assert descriptors[0].executable_exists is None
    assert fake_runner.calls == []


def test_list_services_resolves_exec_start(unit_dir, write_unit, tmp_path, fake_runner):
    binary = tmp_path / "cardano-node"
    binary.write_text("")
    write_unit("a", f"[Service]\nExecStart={binary}\n")
    write_unit("b", "[Service]\nExecStart=/bin/a\nExecStart=/bin/b\n")

    descriptors = make_manager(unit_dir, fake_runner).list_services(["a", "b", "c"], resolve_exec_start=True)

    assert descriptors[0].exec_start == binary
    assert descriptors[0].executable_exists is True
    assert descriptors[1].exec_start is None
    assert descriptors[1].executable_exists is False
    assert "ExecStart" in str(descriptors[1].exec_start_error)
    assert not descriptors[2].unit_exists
    assert descriptors[2].exec_start_error is None
    assert fake_runner.calls == []
