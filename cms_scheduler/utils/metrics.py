"""
Prometheus Metrics Module

Scheduler metrics using the prometheus_client library.
Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import time
from collections.abc import Callable

from prometheus_client import Counter, Gauge, Histogram, Info
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# =============================================================================
# Application Info
# =============================================================================

APP_INFO = Info("cms_scheduler_app", "CMS Scheduler application information")


def set_app_info(version: str, environment: str) -> None:
    """Set application info labels."""
    APP_INFO.info({"version": version, "environment": environment})


# =============================================================================
# HTTP Request Metrics
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "cms_scheduler_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "cms_scheduler_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "cms_scheduler_http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method"],
)

# =============================================================================
# Transition Metrics
# =============================================================================

SCHEDULER_TRANSITIONS_TOTAL = Counter(
    "cms_scheduler_transitions_total",
    "Scheduled transitions by entity type, process and outcome",
    ["entity_type", "process", "outcome"],  # outcome: committed, handled, failed
)

SCHEDULER_PASS_ERRORS_TOTAL = Counter(
    "cms_scheduler_pass_errors_total",
    "Scheduler passes halted by a fatal error",
    ["process"],
)

# =============================================================================
# Cron Metrics
# =============================================================================

SCHEDULER_CRON_RUNS_TOTAL = Counter(
    "cms_scheduler_cron_runs_total",
    "Lightweight cron runs by trigger and result",
    ["trigger", "result"],  # result: completed, skipped, error
)

SCHEDULER_CRON_DURATION_SECONDS = Histogram(
    "cms_scheduler_cron_duration_seconds",
    "Lightweight cron run duration in seconds",
    ["trigger"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# =============================================================================
# Cache Metrics
# =============================================================================

CACHE_HITS_TOTAL = Counter(
    "cms_scheduler_cache_hits_total",
    "Total cache hits",
    ["cache_type"],
)

CACHE_MISSES_TOTAL = Counter(
    "cms_scheduler_cache_misses_total",
    "Total cache misses",
    ["cache_type"],
)


# =============================================================================
# Prometheus Metrics Middleware
# =============================================================================


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP request metrics for Prometheus.

    Tracks request count, duration and in-progress requests.
    """

    EXCLUDED_PATHS = {"/metrics", "/health", "/favicon.ico"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

        method = request.method
        endpoint = self._normalize_path(path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method).inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            status_code = 500
            raise
        finally:
            duration = time.perf_counter() - start_time
            HTTP_REQUEST_DURATION_SECONDS.labels(method=method, endpoint=endpoint).observe(duration)
            HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method).dec()

        return response

    @staticmethod
    def _normalize_path(path: str) -> str:
        """
        Normalize URL path for metrics by replacing dynamic segments.

        The lightweight cron access key is never used as a label value.

        Examples:
            /api/v1/scheduler/content/12/schedule -> /api/v1/scheduler/content/{id}/schedule
            /scheduler/cron/Xk3...                -> /scheduler/cron/{key}
        """
        if path.startswith("/scheduler/cron/"):
            return "/scheduler/cron/{key}"
        return "/".join("{id}" if part.isdigit() else part for part in path.split("/"))


# =============================================================================
# Helper Functions
# =============================================================================


def record_transition(entity_type: str, process: str, outcome: str) -> None:
    """Record one item transition outcome."""
    SCHEDULER_TRANSITIONS_TOTAL.labels(entity_type=entity_type, process=process, outcome=outcome).inc()


def record_pass_error(process: str) -> None:
    """Record a pass halted by a fatal error."""
    SCHEDULER_PASS_ERRORS_TOTAL.labels(process=process).inc()


def record_cron_run(trigger: str, result: str, duration: float | None = None) -> None:
    """Record a lightweight cron run and, if given, its duration."""
    SCHEDULER_CRON_RUNS_TOTAL.labels(trigger=trigger, result=result).inc()
    if duration is not None:
        SCHEDULER_CRON_DURATION_SECONDS.labels(trigger=trigger).observe(duration)


def record_cache_hit(cache_type: str = "memory") -> None:
    """Record a cache hit."""
    CACHE_HITS_TOTAL.labels(cache_type=cache_type).inc()


def record_cache_miss(cache_type: str = "memory") -> None:
    """Record a cache miss."""
    CACHE_MISSES_TOTAL.labels(cache_type=cache_type).inc()
