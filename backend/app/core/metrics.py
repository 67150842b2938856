"""Prometheus metrics shared across the application"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "catalog_admin_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "catalog_admin_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
LOGIN_ATTEMPTS = Counter(
    "catalog_admin_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
)
AUDIT_WRITE_FAILURES = Counter(
    "catalog_admin_audit_write_failures_total",
    "Audit entries that could not be persisted",
)


def endpoint_label(scope) -> str:
    """Route template for metric labels; unmatched paths share one series."""
    route = scope.get("route")
    return getattr(route, "path", None) or "unmatched"
