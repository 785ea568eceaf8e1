"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration lifecycle metrics
registration_transitions = Counter(
    'registration_transitions_total',
    'Registration lifecycle operations',
    ['action', 'result']  # result: success, rejected, error
)

registration_latency = Histogram(
    'registration_operation_latency_seconds',
    'Registration lifecycle operation latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

capacity_rejections = Counter(
    'capacity_rejections_total',
    'Approvals refused because the event was full'
)

waitlist_promotions = Counter(
    'waitlist_promotions_total',
    'Waitlisted registrations promoted to confirmed'
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


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_transition(action: str, result: str):
    """Record a lifecycle operation. Result: success, rejected, error"""
    registration_transitions.labels(action=action, result=result).inc()


def record_capacity_rejection():
    capacity_rejections.inc()


def record_promotion():
    waitlist_promotions.inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
