# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "relief_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "relief_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "relief_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
EMERGENCIES_CREATED = Counter(
    "emergencies_created_total",
    "Total emergencies reported",
)
EMERGENCIES_TOTAL = Gauge(
    "emergencies_total",
    "Current emergencies by status",
    ["status"],
)
ACCEPTANCES_TOTAL = Counter(
    "emergency_acceptances_total",
    "Total successful volunteer acceptances",
)
DECLINES_TOTAL = Counter(
    "emergency_declines_total",
    "Total successful volunteer declines",
)
REGISTRATIONS_TOTAL = Counter(
    "account_registrations_total",
    "Total accounts registered",
    ["role"],
)
LOGINS_TOTAL = Counter(
    "account_logins_total",
    "Login attempts by outcome",
    ["role", "outcome"],
)
UPSTREAM_CALLS = Counter(
    "upstream_calls_total",
    "Calls to upstream services",
    ["upstream", "outcome"],
)
STORE_CONFLICTS = Counter(
    "document_store_conflicts_total",
    "Optimistic write conflicts detected by the document store",
    ["collection"],
)
