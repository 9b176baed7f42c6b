"""Prometheus metrics for the analytics engine."""
from prometheus_client import Counter, Histogram, start_http_server

# Cache metrics
cache_hits = Counter(
    "prepflight_cache_hits_total",
    "Number of analytics reads served from the cache",
    ["metric_type"],
)

cache_misses = Counter(
    "prepflight_cache_misses_total",
    "Number of analytics reads that had to be recomputed",
    ["metric_type"],
)

cache_evictions = Counter(
    "prepflight_cache_evictions_total",
    "Number of stale or unreadable cache entries removed on read",
)

# Analytics metrics
analytics_fallbacks = Counter(
    "prepflight_analytics_fallbacks_total",
    "Number of analytics operations that returned their default value",
    ["operation"],
)

transform_duration = Histogram(
    "prepflight_transform_duration_seconds",
    "Duration of analytics recomputations in seconds",
    ["metric_type"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

# Firestore metrics
firestore_operations = Counter(
    "prepflight_firestore_operations_total",
    "Total number of Firestore operations",
    ["operation"],
)

firestore_errors = Counter(
    "prepflight_firestore_errors_total",
    "Total number of failed Firestore operations",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
