"""
Abstract base class for long-running bangerbot services.

``BaseService[ConfigT]`` provides the lifecycle shared by every service:
structured logging via [Logger][bangerbot.core.logger.Logger], explicit
``start()``/``stop()`` hooks bound to the async context manager, graceful
shutdown via ``asyncio.Event``, and an interval-driven heartbeat loop in
[run_forever()][bangerbot.core.base_service.BaseService.run_forever] with
consecutive failure limits and Prometheus metrics.

Services are event driven: the real work happens in relay callbacks
scheduled by ``start()``. ``run()`` is the periodic heartbeat that reports
state and publishes gauges.

See Also:
    [BaseServiceConfig][bangerbot.core.base_service.BaseServiceConfig]: Base
        configuration model for all services.
    [Tracker][bangerbot.services.tracker.Tracker]: The mention tracking service.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from pathlib import Path
from types import TracebackType
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from bangerbot.models.constants import ServiceName

from .logger import Logger
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
)
from .yaml import load_yaml


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class BaseServiceConfig(BaseModel):
    """Base configuration shared by all services.

    Subclass this to add service-specific fields. The fields defined here
    control the heartbeat interval, failure tolerance, log format, and
    Prometheus metrics exposition.
    """

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between heartbeat cycles",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Stop after this many consecutive errors (0 = unlimited)",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit one JSON object per log record instead of key=value pairs",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for all bangerbot services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [start()][bangerbot.core.base_service.BaseService.start],
    [stop()][bangerbot.core.base_service.BaseService.stop], and
    [run()][bangerbot.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Unique service identifier used in logging and metrics.
        CONFIG_CLASS: Pydantic model class used by the factory methods.
        _config: Typed service configuration.
        _logger: [Logger][bangerbot.core.logger.Logger] named after the service.
        _shutdown_event: Clear while running; set once shutdown is requested.

    Note:
        The lifecycle is ``async with service:`` (which calls ``start()``
        and, on exit, ``stop()``) followed by
        [run_forever()][bangerbot.core.base_service.BaseService.run_forever],
        or a single ``run()`` call with ``--once``.
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT | None = None) -> None:
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME, json_output=self._config.json_logs)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        """The typed service configuration (read-only)."""
        return self._config

    @abstractmethod
    async def start(self) -> None:
        """Acquire resources and schedule the service's background work."""

    @abstractmethod
    async def stop(self) -> None:
        """Release every resource acquired by ``start()``. Must be idempotent."""

    @abstractmethod
    async def run(self) -> None:
        """Execute one heartbeat cycle.

        Called repeatedly by
        [run_forever()][bangerbot.core.base_service.BaseService.run_forever].
        Implementations should perform a bounded unit of work and return.
        """

    def request_shutdown(self) -> None:
        """Request a graceful shutdown. Safe to call from signal handlers."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Whether the service is still active (shutdown not yet requested)."""
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Wait for a shutdown request or for *timeout* seconds to elapse.

        Returns ``True`` if shutdown was requested during the wait.
        """
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Run the heartbeat every ``config.interval`` seconds until shutdown.

        A heartbeat that raises counts as a failure; the first successful
        one clears the count. The loop ends on a shutdown request or once
        ``config.max_consecutive_failures`` heartbeats in a row have failed
        (``0`` never gives up). Cancellation always propagates.

        Metrics: ``heartbeats_ok`` and ``heartbeats_failed`` counters, the
        ``heartbeat_failures`` and ``last_heartbeat`` gauges, and
        ``cycle_duration_seconds``.
        """
        limit = self._config.max_consecutive_failures
        if self._config.metrics.enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})
        self._logger.info("heartbeat_loop_started", interval=self._config.interval, limit=limit)

        failures = 0
        while self.is_running:
            if await self._heartbeat():
                failures = 0
            else:
                failures += 1
                self.set_gauge("heartbeat_failures", failures)
                if limit and failures >= limit:
                    self._logger.critical("heartbeat_limit_reached", failures=failures, limit=limit)
                    break
            if await self.wait(self._config.interval):
                break

        self._logger.info("heartbeat_loop_stopped", failures=failures)

    async def _heartbeat(self) -> bool:
        started = time.monotonic()
        try:
            await self.run()
        except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:  # Intentionally broad: a failed heartbeat must not end the loop
            self.inc_counter("heartbeats_failed")
            self._logger.error("heartbeat_failed", error=str(e), error_type=type(e).__name__)
            return False

        self.inc_counter("heartbeats_ok")
        self.set_gauge("heartbeat_failures", 0)
        self.set_gauge("last_heartbeat", time.time())
        if self._config.metrics.enabled:
            CYCLE_DURATION_SECONDS.labels(service=self.SERVICE_NAME).observe(
                time.monotonic() - started
            )
        return True

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs: Any) -> Self:
        """Create a service from a YAML configuration file.

        Args:
            config_path: Path to the YAML file.
            **kwargs: Additional keyword arguments passed to the constructor.
        """
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create a service from a configuration dictionary.

        Raises:
            pydantic.ValidationError: If *data* does not match ``CONFIG_CLASS``.
        """
        config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        return cls(config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        await self.start()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        await self.stop()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set a named gauge for this service. No-op if metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment a named counter for this service. No-op if metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
