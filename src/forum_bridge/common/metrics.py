"""
Prometheus metrics for bridge monitoring.

Focused on essential metrics:
- Message production counts and producer errors
- Broker connection health
- Upload outcomes, bytes and duration
"""

import logging

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


def _existing(name: str):
    return REGISTRY._names_to_collectors.get(name)


def _create_counter(name: str, description: str, labelnames=None):
    try:
        return Counter(name, description, labelnames=labelnames or [])
    except ValueError:
        # Already registered (module re-imported under a second name)
        return _existing(name)


def _create_gauge(name: str, description: str, labelnames=None):
    try:
        return Gauge(name, description, labelnames=labelnames or [])
    except ValueError:
        return _existing(name)


def _create_histogram(name: str, description: str, labelnames=None, buckets=None):
    kwargs = {
        "name": name,
        "documentation": description,
        "labelnames": labelnames or [],
    }
    if buckets:
        kwargs["buckets"] = buckets
    try:
        return Histogram(**kwargs)
    except ValueError:
        return _existing(name)


# =============================================================================
# Broker metrics
# =============================================================================

messages_produced_counter = _create_counter(
    "bridge_messages_produced_total",
    "Total number of messages produced to topics",
    labelnames=["topic"],
)

producer_errors_counter = _create_counter(
    "bridge_producer_errors_total",
    "Total producer errors by error type",
    labelnames=["topic", "error_type"],
)

connection_status_gauge = _create_gauge(
    "bridge_connection_status",
    "Bridge connection status (1=connected, 0=disconnected)",
    labelnames=["component"],
)

# =============================================================================
# Upload metrics
# =============================================================================

uploads_counter = _create_counter(
    "bridge_uploads_total",
    "Total image uploads by outcome (relocated, fallback)",
    labelnames=["outcome"],
)

bytes_uploaded_counter = _create_counter(
    "bridge_bytes_uploaded_total",
    "Total bytes uploaded to the object store",
)

upload_duration_seconds = _create_histogram(
    "bridge_upload_duration_seconds",
    "Time spent relocating a single upload to the object store",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


# =============================================================================
# Convenience Functions
# =============================================================================


def record_message_produced(topic: str, message_bytes: int, success: bool = True) -> None:
    """Record a produced message."""
    if success:
        messages_produced_counter.labels(topic=topic).inc()
    else:
        producer_errors_counter.labels(topic=topic, error_type="send_failed").inc()


def record_producer_error(topic: str, error_type: str) -> None:
    """Record a producer error."""
    producer_errors_counter.labels(topic=topic, error_type=error_type).inc()


def update_connection_status(component: str, connected: bool) -> None:
    """Update bridge connection status."""
    connection_status_gauge.labels(component=component).set(1 if connected else 0)


def record_upload(outcome: str, size_bytes: int = 0, duration_seconds: float = 0.0) -> None:
    """Record an upload outcome ("relocated" or "fallback")."""
    uploads_counter.labels(outcome=outcome).inc()
    if outcome == "relocated":
        bytes_uploaded_counter.inc(size_bytes)
    upload_duration_seconds.observe(duration_seconds)


__all__ = [
    # Metrics
    "messages_produced_counter",
    "producer_errors_counter",
    "connection_status_gauge",
    "uploads_counter",
    "bytes_uploaded_counter",
    "upload_duration_seconds",
    # Helper functions
    "record_message_produced",
    "record_producer_error",
    "update_connection_status",
    "record_upload",
]
