"""Service manager for dispatching lifecycle actions via systemctl."""

import logging
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..errors import (
    DispatchCancelledError,
    DispatchTimeoutError,
    NonZeroExitError,
    ProcessSpawnError,
    ServiceControlError,
)
from ..models.service import (
    BatchResult,
    DispatchOutcome,
    LifecycleAction,
    ServiceDescriptor,
    unit_filename,
)
from ..utils.constants import (
    DEFAULT_ELEVATION_COMMAND,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SYSTEMCTL,
    DEFAULT_SYSTEMD_DIR,
    DEFAULT_TIMEOUT,
)
from ..utils.elevation import ElevationPolicy, needs_elevation
from .exec_start import resolve_exec_start as resolve_unit_exec_start
from .validator import check_all, unit_file_exists

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of running one service manager command."""

    stdout: str
    stderr: str
    returncode: int


Runner = Callable[[List[str], Optional[float]], RunResult]


def subprocess_runner(cmd: List[str], timeout: Optional[float] = None) -> RunResult:
    """Default runner: execute the command and capture its output.

    Raises:
        subprocess.TimeoutExpired: If the command outlives the timeout
        OSError: If the program cannot be started
    """
    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )
    return RunResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


def build_command(
    action: LifecycleAction,
    service_name: str,
    systemctl: str = DEFAULT_SYSTEMCTL,
    elevation: ElevationPolicy = ElevationPolicy.ALL,
    elevation_command: str = DEFAULT_ELEVATION_COMMAND,
) -> List[str]:
    """Build the argument list for one action on one service.

    Args:
        action: Lifecycle action to perform
        service_name: Logical service name, without the '.service' suffix
        systemctl: Service manager program
        elevation: Which actions get the elevation prefix
        elevation_command: Program used to elevate, e.g. 'sudo'

    Returns:
        Program and arguments, ready for the runner

    Raises:
        ValueError: For LIST, which never reaches the service manager
    """
    unit = unit_filename(service_name)

    if action is LifecycleAction.LIST:
        raise ValueError("The list action does not invoke the service manager")

    cmd = []
    if needs_elevation(action, elevation):
        cmd.append(elevation_command)

    cmd.append(systemctl)

    if action is LifecycleAction.INTERRUPT:
        cmd.extend(["kill", "-s", "SIGINT", unit])
    else:
        cmd.extend([action.value, unit])

    return cmd


class ServiceManager:
    """Validates batches of services and dispatches lifecycle actions to them."""

    def __init__(
        self,
        systemd_dir: Path = DEFAULT_SYSTEMD_DIR,
        systemctl: str = DEFAULT_SYSTEMCTL,
        elevation: ElevationPolicy = ElevationPolicy.ALL,
        elevation_command: str = DEFAULT_ELEVATION_COMMAND,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
        runner: Optional[Runner] = None,
    ):
        """Initialize the service manager.

        Args:
            systemd_dir: Directory holding unit files
            systemctl: Service manager program
            elevation: Which actions are run through the elevation command
            elevation_command: Program used to elevate
            timeout: Per-service timeout in seconds, None to wait indefinitely
            max_workers: Upper bound on concurrently running commands
            runner: Callable that executes a command; defaults to subprocess
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.systemd_dir = Path(systemd_dir)
        self.systemctl = systemctl
        self.elevation = elevation
        self.elevation_command = elevation_command
        self.timeout = timeout
        self.max_workers = max_workers
        self.runner = runner or subprocess_runner

    @classmethod
    def from_config(cls, config_manager, runner: Optional[Runner] = None) -> 'ServiceManager':
        """Create a service manager from loaded configuration settings.

        Args:
            config_manager: ConfigManager whose settings have been loaded
            runner: Optional command runner override

        Returns:
            ServiceManager instance
        """
        return cls(
            systemd_dir=Path(config_manager.get_setting("systemd_dir", DEFAULT_SYSTEMD_DIR)),
            systemctl=config_manager.get_setting("systemctl", DEFAULT_SYSTEMCTL),
            elevation=ElevationPolicy.from_string(config_manager.get_setting("elevation", "all")),
            elevation_command=config_manager.get_setting("elevation_command", DEFAULT_ELEVATION_COMMAND),
            timeout=config_manager.get_setting("timeout", DEFAULT_TIMEOUT),
            max_workers=config_manager.get_setting("max_workers", DEFAULT_MAX_WORKERS),
            runner=runner,
        )

    def build_command(self, action: LifecycleAction, service_name: str) -> List[str]:
        """Build the command for an action using this manager's settings."""
        return build_command(
            action,
            service_name,
            systemctl=self.systemctl,
            elevation=self.elevation,
            elevation_command=self.elevation_command,
        )

    def validate(self, service_names: Sequence[str]):
        """Check every service has a unit file.

        Raises:
            ServiceNotFoundError: For the first service without one
        """
        check_all(service_names, self.systemd_dir)

    def dispatch(
        self,
        action: LifecycleAction,
        service_names: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Validate a batch, then run the action on every service in it.

        Nothing is executed unless every service has a unit file. Once
        validated, each service's command runs independently and every
        failure is recorded on its own outcome.

        Args:
            action: START, STOP, STATUS or INTERRUPT
            service_names: Non-empty ordered sequence of service names
            cancel_event: When set, services whose command has not started yet are skipped

        Returns:
            BatchResult with one outcome per requested service, in request order

        Raises:
            ValueError: If the batch is empty or the action is LIST
            ServiceNotFoundError: If any service has no unit file
        """
        names = list(service_names)
        if not names:
            raise ValueError("No services given")
        if action is LifecycleAction.LIST:
            raise ValueError("Use list_services() for the list action")

        self.validate(names)

        commands = [self.build_command(action, name) for name in names]
        workers = min(self.max_workers, len(names))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._run_one, action, name, cmd, cancel_event)
                for name, cmd in zip(names, commands)
            ]
            outcomes = [future.result() for future in futures]

        result = BatchResult(action=action, outcomes=outcomes)
        if result.succeeded:
            logger.info(f"{action.value}: all {len(outcomes)} service(s) succeeded")
        else:
            failed = ", ".join(outcome.name for outcome in result.failures)
            logger.error(f"{action.value}: {len(result.failures)} of {len(outcomes)} service(s) failed: {failed}")
        return result

    def list_services(self, service_names: Sequence[str], resolve_exec_start: bool = False) -> List[ServiceDescriptor]:
        """Report what exists on disk for each service, without invoking systemctl.

        Args:
            service_names: Known service names from configuration
            resolve_exec_start: Also validate each unit's ExecStart executable

        Returns:
            One ServiceDescriptor per name, in the given order
        """
        descriptors = []
        for name in service_names:
            descriptor = ServiceDescriptor(name=name, unit_exists=unit_file_exists(name, self.systemd_dir))
            if resolve_exec_start and descriptor.unit_exists:
                try:
                    descriptor.exec_start = resolve_unit_exec_start(unit_filename(name), self.systemd_dir)
                except ServiceControlError as e:
                    logger.debug(f"ExecStart for {name} did not resolve: {e}")
                    descriptor.exec_start_error = e
            descriptors.append(descriptor)
        return descriptors

    def _run_one(
        self,
        action: LifecycleAction,
        service_name: str,
        cmd: List[str],
        cancel_event: Optional[threading.Event],
    ) -> DispatchOutcome:
        """Run one service's command and turn the result into an outcome.

        Args:
            action: Action being dispatched, for logging
            service_name: Logical service name
            cmd: Command built for this service
            cancel_event: Checked before the command is started

        Returns:
            DispatchOutcome for this service
        """
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Skipping {action.value} {service_name}: batch cancelled")
            return DispatchOutcome(name=service_name, succeeded=False, error=DispatchCancelledError())

        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = self.runner(cmd, self.timeout)

        except subprocess.TimeoutExpired as e:
            logger.error(f"Timeout while trying to {action.value} {service_name}")
            return DispatchOutcome(
                name=service_name,
                succeeded=False,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr),
                error=DispatchTimeoutError(e.timeout),
            )

        except OSError as e:
            error = ProcessSpawnError(cmd, e.strerror or str(e))
            logger.error(f"Failed to {action.value} {service_name}: {error}")
            return DispatchOutcome(name=service_name, succeeded=False, error=error)

        if result.returncode != 0:
            error = NonZeroExitError(result.returncode, result.stderr)
            logger.error(f"Failed to {action.value} {service_name}: {error}")
            return DispatchOutcome(
                name=service_name,
                succeeded=False,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
                error=error,
            )

        logger.info(f"Successfully ran {action.value} on {service_name}")
        return DispatchOutcome(
            name=service_name,
            succeeded=True,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data
