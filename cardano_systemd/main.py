#!/usr/bin/env python3
"""Entry point for the cardano-systemd command line tool."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.config_manager import ConfigManager
from .core.service_manager import ServiceManager
from .errors import ServiceNotFoundError
from .models.service import BatchResult, LifecycleAction, ServiceDescriptor
from .utils.constants import APP_NAME, LOG_FILE

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REJECTED = 2

ALL_SERVICES = "all"


def setup_logging(verbose: bool = False, log_file: Path = LOG_FILE):
    """Set up application logging.

    Logs go to stderr and, when its directory can be created, to log_file.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    file_error = None
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    except OSError as e:
        file_error = e

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    if file_error is not None:
        logging.getLogger(__name__).warning(f"Not logging to {log_file}: {file_error}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Tool for managing systemd services for Cardano node.",
    )
    parser.add_argument("action", choices=[a.value for a in LifecycleAction],
                        help="start, stop, status, interrupt (SIGINT) or list the configured services")
    parser.add_argument("-a", "--all", action="store_true",
                        help="Act on every configured service")
    parser.add_argument("-s", "--service", default=ALL_SERVICES,
                        help="Act on a single service (default: all)")
    parser.add_argument("-c", "--config", type=Path, default=None,
                        help="Path of the YAML config file")
    parser.add_argument("--systemd-dir", type=Path, default=None,
                        help="Directory holding unit files (overrides config)")
    parser.add_argument("--resolve-exec-start", action="store_true",
                        help="With list, also check each unit's ExecStart executable")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser.parse_args(argv)


def select_services(args: argparse.Namespace, registry: List[str]) -> List[str]:
    """Resolve --all/--service into the ordered list of target services."""
    if args.all or args.service == ALL_SERVICES:
        return list(registry)
    return [args.service]


def format_batch(result: BatchResult) -> List[str]:
    lines = []
    for outcome in result.outcomes:
        if outcome.succeeded:
            lines.append(f"{outcome.name}: ok")
        else:
            lines.append(f"{outcome.name}: FAILED ({outcome.error})")
        if result.action is LifecycleAction.STATUS and outcome.stdout:
            lines.append(outcome.stdout.rstrip("\n"))
    return lines


def format_listing(descriptors: List[ServiceDescriptor], resolve_exec_start: bool) -> List[str]:
    lines = []
    for descriptor in descriptors:
        line = f"{descriptor.unit_file}: {'found' if descriptor.unit_exists else 'missing'}"
        if resolve_exec_start and descriptor.unit_exists:
            if descriptor.exec_start is not None:
                line += f", ExecStart {descriptor.exec_start}"
            else:
                line += f", ExecStart error: {descriptor.exec_start_error}"
        lines.append(line)
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    config_manager = ConfigManager(args.config)
    config_manager.load_config()
    if args.systemd_dir is not None:
        config_manager.set_setting("systemd_dir", str(args.systemd_dir))

    try:
        service_manager = ServiceManager.from_config(config_manager)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_REJECTED

    action = LifecycleAction.from_string(args.action)
    services = select_services(args, config_manager.get_services())

    if action is LifecycleAction.LIST:
        resolve = args.resolve_exec_start or bool(config_manager.get_setting("resolve_exec_start", False))
        descriptors = service_manager.list_services(services, resolve_exec_start=resolve)
        for line in format_listing(descriptors, resolve):
            print(line)
        return EXIT_OK

    if not services:
        logger.error("No services configured")
        return EXIT_REJECTED

    try:
        result = service_manager.dispatch(action, services)
    except ServiceNotFoundError as e:
        logger.error(f"Missing service file: {e}")
        print(f"error: {e}", file=sys.stderr)
        return EXIT_REJECTED

    for line in format_batch(result):
        print(line)

    return EXIT_OK if result.succeeded else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
