"""
Prometheus Metrics Collection for the GitLab Remote

Every pod keeps its own metrics which are scraped independently, so
concurrent webhook deliveries and logins never share state beyond the
process-wide registry.
"""

import logging
import re
import time
from importlib.metadata import version as get_version
from typing import Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# =============================================================================
# Application Info Metrics
# =============================================================================

# Get version from package metadata (pyproject.toml)
try:
    APP_VERSION = get_version("gitlab-remote")
except Exception:
    APP_VERSION = "unknown"

app_info = Info("gitlab_remote_app", "Application information")
app_info.info(
    {
        "version": APP_VERSION,
        "app_name": "GitLab Remote",
    }
)

# =============================================================================
# HTTP Request Metrics
# =============================================================================

http_requests_total = Counter(
    "gitlab_remote_http_requests_total",
    "Total HTTP requests by method, endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "gitlab_remote_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_in_progress = Gauge(
    "gitlab_remote_http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
)

# =============================================================================
# External API Metrics
# =============================================================================

external_api_requests_total = Counter(
    "gitlab_remote_external_api_requests_total",
    "Total external API requests by service",
    ["service"],
)

external_api_errors_total = Counter(
    "gitlab_remote_external_api_errors_total",
    "Total external API errors by service",
    ["service"],
)

external_api_duration_seconds = Histogram(
    "gitlab_remote_external_api_duration_seconds",
    "External API request duration in seconds",
    ["service"],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

# =============================================================================
# Authentication Metrics
# =============================================================================

auth_oauth_logins_total = Counter(
    "gitlab_remote_auth_oauth_logins_total",
    "Total GitLab OAuth login attempts by status",
    ["status"],
)

# =============================================================================
# Webhook Metrics
# =============================================================================

hooks_received_total = Counter(
    "gitlab_remote_hooks_received_total",
    "Total inbound GitLab webhooks by object kind and result",
    ["kind", "result"],
)

commit_status_failures_total = Counter(
    "gitlab_remote_commit_status_failures_total",
    "Commit status publications rejected by GitLab",
)

# =============================================================================
# System Metrics
# =============================================================================

uptime_seconds = Gauge(
    "gitlab_remote_uptime_seconds",
    "Application uptime in seconds",
)

startup_time = time.time()


def update_uptime():
    """Update the uptime metric."""
    uptime_seconds.set(time.time() - startup_time)


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Should only be reachable from inside the cluster.
    """
    update_uptime()
    metrics_output = generate_latest(REGISTRY)
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to automatically collect HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = self._normalize_path(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
        except Exception as e:
            logger.error(f"Error in PrometheusMiddleware: {e}")
            raise
        finally:
            duration = time.time() - start_time
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        return response

    def _normalize_path(self, path: str) -> str:
        """
        Replace numeric IDs with placeholders to keep label cardinality low.

          /api/v1/projects/123 -> /api/v1/projects/{id}
        """
        return re.sub(r"/\d+", "/{id}", path)
