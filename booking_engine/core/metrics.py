"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics through render_metrics().
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['outcome']  # confirmed, storage_failure, or the rejection error code
)

booking_cancellations = Counter(
    'booking_cancellations_total',
    'Bookings moved to cancelled'
)

# Admission control metrics
admission_latency = Histogram(
    'admission_latency_seconds',
    'Time from admission request to decision',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

admission_lock_wait = Histogram(
    'admission_lock_wait_seconds',
    'Time spent waiting for the per-event admission guard',
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

admission_timeouts = Counter(
    'admission_lock_timeouts_total',
    'Admission requests that gave up waiting for the event guard'
)

# Lifecycle metrics
event_transitions = Counter(
    'event_transitions_total',
    'Event lifecycle transitions',
    ['to_status']  # draft, published, cancelled
)

# Storage metrics
storage_failures = Counter(
    'storage_failures_total',
    'Unexpected storage errors surfaced as StorageFailure',
    ['operation']
)


def render_metrics() -> tuple[bytes, str]:
    """
    Render the default registry in the Prometheus text format.

    Returns the payload and its content type so a service shell can
    serve it unchanged.
    """
    return generate_latest(), CONTENT_TYPE_LATEST


# Convenience functions for instrumentation
def record_booking_attempt(outcome: str):
    """Record booking attempt. Outcome: confirmed or an error code value."""
    booking_attempts.labels(outcome=outcome).inc()


def record_event_transition(to_status: str):
    event_transitions.labels(to_status=to_status).inc()


def record_storage_failure(operation: str):
    storage_failures.labels(operation=operation).inc()
