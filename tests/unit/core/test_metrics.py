"""
Unit tests for core.metrics module.

Tests:
- MetricsConfig defaults
- record_request honours the enabled flag
"""

import pytest

from snapweb.core.metrics import (
    REQUEST_DURATION_SECONDS,
    REQUESTS_TOTAL,
    MetricsConfig,
    record_request,
)


def _count(scheme: str, method: str, code: str) -> float:
    return REQUESTS_TOTAL.labels(scheme=scheme, method=method, code=code)._value.get()


# ============================================================================
# MetricsConfig Tests
# ============================================================================


class TestMetricsConfig:
    """Tests for MetricsConfig Pydantic model."""

    def test_defaults(self) -> None:
        assert MetricsConfig().enabled is False

    def test_enabled(self) -> None:
        assert MetricsConfig(enabled=True).enabled is True


# ============================================================================
# record_request Tests
# ============================================================================


class TestRecordRequest:
    """Counting of site requests."""

    def test_disabled_records_nothing(self) -> None:
        before = _count("testdisabled", "GET", "200")
        record_request(MetricsConfig(), "testdisabled", "GET", 200, 0.01)
        assert _count("testdisabled", "GET", "200") == before

    def test_enabled_increments_counter(self) -> None:
        before = _count("testenabled", "HEAD", "404")
        record_request(MetricsConfig(enabled=True), "testenabled", "HEAD", 404, 0.01)
        assert _count("testenabled", "HEAD", "404") == before + 1

    def test_enabled_observes_duration(self) -> None:
        histogram = REQUEST_DURATION_SECONDS.labels(scheme="testduration", method="GET")
        before = histogram._sum.get()
        record_request(MetricsConfig(enabled=True), "testduration", "GET", 200, 0.25)
        assert histogram._sum.get() == pytest.approx(before + 0.25)
