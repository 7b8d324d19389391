"""
Prometheus metrics for the message API.

This module provides:
- HTTP request counter (method, path, status)
- Message write outcome counter (result)
- Request latency histogram (method, path)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# result: created, duplicate, validation_error, unavailable
message_writes_total = Counter(
    "message_writes_total",
    "Total message write outcomes",
    labelnames=["result"]
)

# Using default buckets: .005, .01, .025, .05, .075, .1, .25, .5, .75, 1.0, 2.5, 5.0, 7.5, 10.0
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Route template (e.g. /{message_id}) so ids do not become labels
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    http_requests_total.labels(
        method=method,
        path=path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=path
    ).observe(latency_seconds)


def record_write_outcome(result: str) -> None:
    """
    Record the outcome of a POST / request.

    Args:
        result: one of "created", "duplicate", "validation_error", "unavailable"
    """
    message_writes_total.labels(result=result).inc()


def get_metrics() -> bytes:
    """Generate Prometheus exposition format metrics."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
