"""Core layer providing the infrastructure for bangerbot services.

Sits in the middle of the diamond DAG -- depends only on
``bangerbot.models`` and is depended upon by ``bangerbot.services``.

Attributes:
    RelayPool: One relay client per endpoint with independent, time-bounded
        connects, a per-endpoint subscription guard, and fan-out point
        queries. See [RelayPool][bangerbot.core.pool.RelayPool].
    EventStore: Deduplicated event map with at-most-once insert.
        See [EventStore][bangerbot.core.store.EventStore].
    BaseService: Abstract generic base class with lifecycle management
        (``start()`` / ``stop()`` / heartbeat ``run()`` /
        [run_forever()][bangerbot.core.base_service.BaseService.run_forever]),
        factory methods, and Prometheus metrics integration.
    Logger: Structured logger supporting key=value and JSON output modes.
    MetricsServer: Prometheus HTTP endpoint built on aiohttp.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.

Examples:
    ```python
    from bangerbot.core import EventStore, Logger

    store = EventStore()
    if store.put(event):
        Logger("tracker").info("event_stored", id=event.id)
    ```
"""

from .base_service import BaseService, BaseServiceConfig, ConfigT
from .exceptions import (
    BangerBotError,
    ConfigurationError,
    ConnectivityError,
    RelayTimeoutError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    RELAY_EVENTS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .pool import (
    EventHandler,
    RelayClient,
    RelayPool,
    RelayPoolConfig,
    RelayPoolRetryConfig,
    RelayPoolTimeoutsConfig,
)
from .store import EventStore
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "RELAY_EVENTS",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "BangerBotError",
    "BaseService",
    "BaseServiceConfig",
    "ConfigT",
    "ConfigurationError",
    "ConnectivityError",
    "EventHandler",
    "EventStore",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "RelayClient",
    "RelayPool",
    "RelayPoolConfig",
    "RelayPoolRetryConfig",
    "RelayPoolTimeoutsConfig",
    "RelayTimeoutError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
