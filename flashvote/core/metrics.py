"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Vote write metrics
votes_cast = Counter(
    'votes_cast_total',
    'Vote submissions',
    ['result']  # created, rate_limited, rejected, error
)

vote_write_latency = Histogram(
    'vote_write_latency_seconds',
    'Vote insert latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Read model metrics
vote_aggregate_latency = Histogram(
    'vote_aggregate_latency_seconds',
    'Batch aggregate query latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

vote_aggregate_subjects = Histogram(
    'vote_aggregate_subjects',
    'Number of subjects requested per batch aggregate',
    buckets=[1, 5, 10, 25, 50, 100, 250, 500]
)

# Rate limiter metrics
rate_limit_decisions = Counter(
    'rate_limit_decisions_total',
    'Vote rate limiter decisions',
    ['result']  # allowed, limited
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

# Change feed
feed_subscribers = Gauge(
    'feed_subscribers',
    'Connected vote change feed subscribers'
)

# HTTP
http_request_latency = Histogram(
    'http_request_latency_seconds',
    'Request latency by route template',
    ['method', 'route', 'status'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_vote(result: str):
    """Record vote submission. Result: created, rate_limited, rejected, error"""
    votes_cast.labels(result=result).inc()


def record_rate_limit(allowed: bool):
    """Record rate limiter decision."""
    result = "allowed" if allowed else "limited"
    rate_limit_decisions.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_request(method: str, route: str, status: int, seconds: float):
    http_request_latency.labels(method=method, route=route, status=str(status)).observe(seconds)
