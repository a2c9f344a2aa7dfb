"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, no_seats, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Seat allocation transaction latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Auth metrics
auth_events = Counter(
    'auth_events_total',
    'Authentication outcomes',
    ['event']  # registered, login_success, login_failed, admin_denied
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get: hit/miss/error, set: ok/error
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


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, no_seats, error"""
    booking_attempts.labels(status=status).inc()


def record_auth_event(event: str):
    auth_events.labels(event=event).inc()


def record_cache_operation(operation: str, result: str):
    """Record cache operation. Result: hit, miss, ok, error"""
    cache_operations.labels(operation=operation, result=result).inc()
