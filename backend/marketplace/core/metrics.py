"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, unavailable, invalid, inconsistent, conflict
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking creation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

booking_transitions = Counter(
    'booking_status_transitions_total',
    'Booking status changes',
    ['from_status', 'to_status']
)

# Optimistic locking
db_retries = Counter(
    'db_retry_attempts_total',
    'Write retries due to version conflicts or identifier collisions',
    ['operation']  # booking, purchase
)

# Ticket ledger metrics
ticket_purchases = Counter(
    'ticket_purchases_total',
    'Ticket purchase attempts',
    ['result']  # success, insufficient, invalid, conflict
)

tickets_issued = Counter(
    'tickets_issued_total',
    'Individual tickets issued'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Status: success, unavailable, invalid, inconsistent, conflict"""
    booking_attempts.labels(status=status).inc()


def record_transition(from_status: str, to_status: str):
    booking_transitions.labels(from_status=from_status, to_status=to_status).inc()


def record_retry(operation: str):
    db_retries.labels(operation=operation).inc()


def record_purchase(result: str, ticket_count: int = 0):
    ticket_purchases.labels(result=result).inc()
    if ticket_count:
        tickets_issued.inc(ticket_count)


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
