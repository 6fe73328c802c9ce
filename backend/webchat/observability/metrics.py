"""
Prometheus Metrics for the WebChat backend.

DATA FLOW:
    This file                  presentation/api/metrics.py         Observability Stack
    ─────────                  ────────────────────────────         ───────────────────
    Define metrics ──────────► /metrics endpoint ──────────────►   Prometheus scraper

METRIC TYPES:
    - Gauge: Value goes up/down (current count, e.g., live connections)
    - Counter: Value only goes up (total count, e.g., cache hits)
    - Histogram: Distribution (for percentiles like P95, e.g., latency)
"""

from prometheus_client import (
    Gauge,
    Histogram,
    Counter,
    generate_latest,
    CONTENT_TYPE_LATEST,
)


# =============================================================================
# METRICS DEFINITIONS
# =============================================================================
LIVE_CONNECTIONS = Gauge(
    "webchat_live_connections", "Number of live connections currently attached"
)

REQUEST_LATENCY = Histogram(
    "http_server_request_duration_seconds",
    "Http request latency in seconds",
    ["method", "route", "http_status_code"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5],
)

EVENT_DELIVERIES_TOTAL = Counter(
    "webchat_event_deliveries_total",
    "Live events delivered to connections, by event type",
    ["event"],
)

STALE_CONNECTIONS_TOTAL = Counter(
    "webchat_stale_connections_total",
    "Connections detached because a send to them failed",
)

CACHE_LOOKUPS_TOTAL = Counter(
    "webchat_cache_lookups_total",
    "Conversation cache lookups by key family and result",
    ["family", "result"],
)

ERRORS_TOTAL = Counter(
    "webchat_errors_total",
    "Total number of errors by type",
    ["error_type"],
)


# =============================================================================
# LABEL CONSTANTS (avoid hardcoding strings throughout codebase)
# =============================================================================
class MetricsErrorType:
    """Error type labels for webchat_errors_total metric."""

    STORAGE_FAILED = "storage_failed"
    CACHE_FAILED = "cache_failed"
    UNHANDLED = "unhandled"


class CacheResult:
    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


# =============================================================================
# RECORDING FUNCTIONS
# =============================================================================
def connection_attached():
    LIVE_CONNECTIONS.inc()


def connection_detached():
    LIVE_CONNECTIONS.dec()


def observe_request_latency(method: str, route: str, status_code: int, duration: float):
    """Call to record request latency. Integration point: fastapi_app.py middleware"""
    REQUEST_LATENCY.labels(
        method=method, route=route, http_status_code=str(status_code)
    ).observe(duration)


def increment_event_deliveries(event: str, count: int = 1):
    if count:
        EVENT_DELIVERIES_TOTAL.labels(event=event).inc(count)


def increment_stale_connections():
    STALE_CONNECTIONS_TOTAL.inc()


def increment_cache_lookup(family: str, result: str):
    CACHE_LOOKUPS_TOTAL.labels(family=family, result=result).inc()


def increment_error(error_type: str):
    """
    Call to record an error occurrence.

    Integration points:
        - fastapi_app.py: storage_failed, unhandled
        - infrastructure/cache/conversation_cache.py: cache_failed
    """
    ERRORS_TOTAL.labels(error_type=error_type).inc()


# =============================================================================
# HELPER FOR /metrics ENDPOINT
# =============================================================================
def get_metrics_content():
    """
    Generate Prometheus metrics output.

    Called by: presentation/api/metrics.py

    Returns:
        Tuple of (content_bytes, content_type_string)
    """
    return generate_latest(), CONTENT_TYPE_LATEST


# =============================================================================
# EXPORTS
# =============================================================================
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
