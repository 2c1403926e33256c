"""Prometheus metrics for monitoring insight computation and credit bureau health"""

from prometheus_client import Counter, Histogram

# Insight metrics
insights_computed_counter = Counter(
    "finsight_insights_computed_total",
    "Insights computed from statements",
)

risk_flag_counter = Counter(
    "finsight_risk_flags_total",
    "Risk flags raised on computed insights",
    ["flag"],
)

# Bureau metrics
bureau_check_counter = Counter(
    "finsight_bureau_check_total",
    "Credit bureau checks by outcome",
    ["outcome"],  # cached | completed | failed
)

bureau_latency_histogram = Histogram(
    "bureau_latency_seconds",
    "Credit bureau response time per attempt",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

bureau_failure_counter = Counter(
    "bureau_failures_total",
    "Failed credit bureau attempts",
    ["kind"],  # transient | permanent
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_insight(risk_flags: list[str]) -> None:
    """Record a freshly computed insight and the flags it raised"""
    insights_computed_counter.inc()
    for flag in risk_flags:
        risk_flag_counter.labels(flag=flag).inc()


def record_bureau_check(outcome: str) -> None:
    bureau_check_counter.labels(outcome=outcome).inc()
