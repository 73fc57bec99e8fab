"""
Prometheus metrics for site requests.

Every request dispatched through
[WebSite.get_response()][snapweb.core.site.WebSite.get_response] is counted
by scheme, verb and response code, and its duration observed, when the
owning registry's ``metrics.enabled`` flag is set. Metrics live in the
default ``prometheus_client`` registry, so an application exposes them with
its usual exporter.

Architecture:
    REQUESTS_TOTAL:             Cumulative requests by scheme, method, code.
    REQUEST_DURATION_SECONDS:   Request latency histogram by scheme, method.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for request metrics.

    Metrics are not recorded unless ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Enable metrics collection")


# ---------------------------------------------------------------------------
# Request Metrics (recorded by WebSite.get_response)
# ---------------------------------------------------------------------------

REQUESTS_TOTAL = Counter(
    "snapweb_requests_total",
    "Site requests by scheme, method and response code",
    ["scheme", "method", "code"],
)

REQUEST_DURATION_SECONDS = Histogram(
    "snapweb_request_duration_seconds",
    "Duration of site requests in seconds",
    ["scheme", "method"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 30),
)


def record_request(
    config: MetricsConfig, scheme: str, method: str, code: int, duration: float
) -> None:
    """Record one finished request if metrics are enabled in *config*."""
    if not config.enabled:
        return
    REQUESTS_TOTAL.labels(scheme=scheme, method=method, code=str(code)).inc()
    REQUEST_DURATION_SECONDS.labels(scheme=scheme, method=method).observe(duration)
