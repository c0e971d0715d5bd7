"""Prometheus metrics for analytics request volume, outcomes and latency"""

from prometheus_client import Counter, Histogram

analytics_request_counter = Counter(
    "treasury_analytics_requests_total",
    "Analytics computations served",
    ["operation", "outcome"],  # outcome: ok | not_found | bad_request | error
)

analytics_duration_histogram = Histogram(
    "treasury_analytics_duration_seconds",
    "Time spent computing an analytics response",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)

_OUTCOMES = {404: "not_found", 400: "bad_request"}


def outcome_for_status(status_code: int) -> str:
    return _OUTCOMES.get(status_code, "ok" if status_code < 400 else "error")


def record_analytics_request(operation: str, status_code: int, duration_seconds: float) -> None:
    """Record outcome and latency for one analytics call"""
    analytics_request_counter.labels(operation=operation, outcome=outcome_for_status(status_code)).inc()
    analytics_duration_histogram.labels(operation=operation).observe(duration_seconds)
