"""Observability package for the WebChat backend."""

from webchat.observability.metrics import (
    connection_attached,
    connection_detached,
    observe_request_latency,
    increment_event_deliveries,
    increment_stale_connections,
    increment_cache_lookup,
    increment_error,
    get_metrics_content,
    MetricsErrorType,
    CacheResult,
)

__all__ = [
    "connection_attached",
    "connection_detached",
    "observe_request_latency",
    "increment_event_deliveries",
    "increment_stale_connections",
    "increment_cache_lookup",
    "increment_error",
    "get_metrics_content",
    "MetricsErrorType",
    "CacheResult",
]
