"""Command line runner: ``python -m bangerbot`` or the ``bangerbot`` script.

Loads a service's YAML settings, attaches the log renderer, and either
runs the heartbeat loop with the metrics endpoint until a signal arrives,
or (``--once``) collects for a single interval and exits.

Examples:
    ```bash
    python -m bangerbot tracker
    python -m bangerbot tracker --once
    python -m bangerbot tracker --log-level DEBUG
    python -m bangerbot tracker --config config/services/tracker.yaml
    ```
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, NamedTuple

from bangerbot.core import start_metrics_server
from bangerbot.core.base_service import BaseService
from bangerbot.core.exceptions import ConfigurationError
from bangerbot.core.logger import Logger, StructuredFormatter
from bangerbot.core.yaml import load_yaml
from bangerbot.models.constants import ServiceName
from bangerbot.services.tracker import LoggingListener, Tracker


CONFIG_BASE = Path("config")


class ServiceEntry(NamedTuple):
    """A runnable service and where its settings live by default."""

    cls: type[BaseService[Any]]
    config_path: Path


SERVICE_REGISTRY: dict[str, ServiceEntry] = {
    ServiceName.TRACKER: ServiceEntry(Tracker, CONFIG_BASE / "services" / "tracker.yaml"),
}

logger = Logger("cli")


def build_service(
    service_class: type[BaseService[Any]], service_dict: dict[str, Any]
) -> BaseService[Any]:
    """Instantiate a service and attach its default renderer."""
    if service_dict:
        service = service_class.from_dict(service_dict)
    else:
        service = service_class()

    if isinstance(service, Tracker):
        service.add_listener(LoggingListener(service.profiles))
    return service


async def run_once(service: BaseService[Any]) -> None:
    """Connect, let events arrive for one interval, then run one heartbeat."""
    async with service:
        if isinstance(service, Tracker):
            await service.pool.wait_connected(service.pool.config.timeouts.connect)
        await service.wait(service.config.interval)
        await service.run()


def _install_signal_handlers(service: BaseService[Any]) -> None:
    loop = asyncio.get_running_loop()

    def on_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_requested", signal=sig.name, service=service.SERVICE_NAME)
        service.request_shutdown()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, on_signal, sig)


async def _run_continuous(service_name: str, service: BaseService[Any]) -> int:
    metrics = service.config.metrics
    server = await start_metrics_server(metrics)
    if metrics.enabled:
        logger.info("metrics_listening", url=f"http://{metrics.host}:{metrics.port}{metrics.path}")
    try:
        async with service:
            await service.run_forever()
    except Exception as e:  # Intentionally broad: last boundary before the process exits
        logger.error("service_crashed", service=service_name, error=str(e))
        return 1
    finally:
        await server.stop()
    logger.info("service_exited", service=service_name)
    return 0


async def run_service(
    service_name: str,
    service_class: type[BaseService[Any]],
    service_dict: dict[str, Any],
    *,
    once: bool,
) -> int:
    """Build *service_class* from *service_dict* and run it.

    With ``once`` the service connects, collects events for one interval,
    reports one heartbeat and exits. Otherwise the metrics endpoint is
    served and the heartbeat loop runs until SIGINT or SIGTERM.

    Returns:
        Process exit code (``0`` on success, ``1`` if the service failed).
    """
    service = build_service(service_class, service_dict)
    _install_signal_handlers(service)

    if not once:
        return await _run_continuous(service_name, service)

    try:
        await run_once(service)
    except Exception as e:  # Intentionally broad: last boundary before the process exits
        logger.error("service_crashed", service=service_name, error=str(e), once=True)
        return 1
    logger.info("service_exited", service=service_name, once=True)
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bangerbot",
        description="Track the notes a Nostr author quotes, with their quote chains.",
    )
    parser.add_argument(
        "service",
        nargs="?",
        default=ServiceName.TRACKER.value,
        choices=sorted(SERVICE_REGISTRY),
        help="service to run (default: tracker)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file (default: config/services/<service>.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="root log level (default: INFO)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="collect for one interval, report, and exit",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Route all records through one root handler with ``StructuredFormatter``.

    ``Logger`` records carry their fields in ``structured_kv``; plain
    ``logging`` records from the relay client are rendered the same way.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Settings from *path*, or ``{}`` (all defaults) when the file is absent."""
    if path.is_file():
        return load_yaml(path)
    logger.warning("config_missing_using_defaults", path=str(path))
    return {}


async def main(argv: list[str] | None = None) -> int:
    """Run the selected service and return the process exit code."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    entry = SERVICE_REGISTRY[args.service]
    config_path = args.config or entry.config_path

    try:
        service_dict = _load_yaml_dict(config_path)
        return await run_service(
            service_name=args.service,
            service_class=entry.cls,
            service_dict=service_dict,
            once=args.once,
        )
    except (ConfigurationError, ValueError) as e:
        logger.error("config_invalid", path=str(config_path), error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted", service=args.service)
        return 130


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
