"""Prometheus metric inventory.

Every metric the portal exports is declared here and incremented at the
point of action by the module that owns the behaviour.  Scraped from
``GET /metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, route, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Quiz submission can sit in the certificate poll for ~19s
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Learning workflow
# ---------------------------------------------------------------------------

ENROLLMENTS = Counter(
    "portal_enrollments_total",
    "Enrollment calls by outcome",
    ["result"],  # created|existing
)

MODULE_COMPLETIONS = Counter(
    "portal_module_completions_total",
    "Module completion calls",
)

QUIZ_SUBMISSIONS = Counter(
    "portal_quiz_submissions_total",
    "Graded quiz attempts by outcome",
    ["result"],  # passed|failed
)

CERTIFICATES_ISSUED = Counter(
    "portal_certificates_issued_total",
    "Certificate issuance outcomes by path",
    ["path"],  # existing|polled|fallback|race_lost
)

CERTIFICATE_POLL_ATTEMPTS = Counter(
    "portal_certificate_poll_attempts_total",
    "Reads performed while waiting for a certificate row",
)

VERIFICATION_LOOKUPS = Counter(
    "portal_certificate_verifications_total",
    "Public certificate verification lookups by result",
    ["result"],  # valid|expired|not_found
)

# ---------------------------------------------------------------------------
# Background work
# ---------------------------------------------------------------------------

NOTIFICATIONS = Counter(
    "portal_notifications_total",
    "Notification sink outcomes",
    ["outcome"],  # queued|delivered|failed|dropped
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # hit|miss
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
