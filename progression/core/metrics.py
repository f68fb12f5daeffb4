"""Application metrics using the Prometheus client library.

All metrics are defined here so there is a single inventory of what the
service measures.  Other modules import a metric and increment/observe it
at the point of action.

  COUNTER    only goes up (requests served, XP awarded, badges granted)
  GAUGE      goes up and down (in-flight requests)
  HISTOGRAM  bucketed observations (request latency, quiz percentages)

Prometheus scrapes GET /metrics; see progression/api/metrics_endpoint.py.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Engine metrics
# ---------------------------------------------------------------------------

XP_AWARDED = Counter(
    "xp_awarded_total",
    "Experience points added to learner profiles, including streak bonuses",
    ["reason"],  # lesson_completed|course_completed|quiz_graded|manual
)

BADGES_GRANTED = Counter(
    "badges_granted_total",
    "New badge grants (idempotent re-grants are not counted)",
    ["badge"],
)

QUIZ_ATTEMPTS = Counter(
    "quiz_attempts_total",
    "Graded quiz attempts by outcome",
    ["result"],  # "passed" or "failed"
)

QUIZ_PERCENTAGE = Histogram(
    "quiz_percentage",
    "Distribution of graded quiz percentages",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

ENROLLMENTS = Counter(
    "enrollments_total",
    "Enrollment attempts by outcome",
    ["result"],  # enrolled|ineligible|already_enrolled
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
