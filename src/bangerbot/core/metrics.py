"""
Prometheus metrics collection and HTTP exposition.

Module-level metric objects are shared across the process.
[BaseService.run_forever()][bangerbot.core.base_service.BaseService.run_forever]
records heartbeat cycle counts, durations, and failure streaks; the
tracker publishes its engine state through ``set_gauge()`` and
``inc_counter()`` on the base class, and the relay pool counts delivered
events per relay.

Architecture:
    SERVICE_INFO:               Static metadata set once at startup.
    SERVICE_GAUGE:              Point-in-time values (connected relays, stored events).
    SERVICE_COUNTER:            Cumulative totals (queries issued, references resolved).
    RELAY_EVENTS:               Events delivered by each relay, by outcome.
    CYCLE_DURATION_SECONDS:     Heartbeat cycle latency histogram.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


_NAMESPACE = "bangerbot"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Enable the metrics endpoint")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Service metrics
# ---------------------------------------------------------------------------

SERVICE_INFO = Info(
    "service",
    "Service information and metadata",
    namespace=_NAMESPACE,
)

CYCLE_DURATION_SECONDS = Histogram(
    "cycle_duration_seconds",
    "Duration of a service heartbeat cycle in seconds",
    ["service"],
    namespace=_NAMESPACE,
    buckets=(0.001, 0.01, 0.1, 0.5, 1, 5, 10, 30, 60),
)

# Heartbeat labels (BaseService.run_forever):
#   gauge:   heartbeat_failures, last_heartbeat
#   counter: heartbeats_ok, heartbeats_failed
# Tracker gauges:
#   relays_connected, events_stored, profiles_cached, feed_entries,
#   references_resolved, references_duplicate, queries_{mention,inline,profile}

SERVICE_GAUGE = Gauge(
    "service_gauge",
    "Service gauge values (point-in-time state)",
    ["service", "name"],
    namespace=_NAMESPACE,
)

SERVICE_COUNTER = Counter(
    "service_counter",
    "Service counter values (cumulative totals)",
    ["service", "name"],
    namespace=_NAMESPACE,
)

RELAY_EVENTS = Counter(
    "relay_events",
    "Events delivered by a relay subscription",
    ["relay", "outcome"],
    namespace=_NAMESPACE,
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... service runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Start listening for scrape requests; no-op when disabled.

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        await site.start()
        self._runner = runner

    async def stop(self) -> None:
        """Stop the HTTP server. Idempotent."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a metrics server. Caller must ``stop()`` it on shutdown."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
