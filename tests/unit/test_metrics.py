"""
Unit tests for metrics collection and Prometheus export.
"""

import pytest
from reviewhub.lib.metrics import MetricsCollector, get_metrics_collector, reset_metrics


@pytest.fixture
def collector():
    """Fresh metrics collector for each test."""
    return MetricsCollector()


@pytest.mark.unit
def test_metrics_collector_initialization(collector):
    """Test metrics collector initializes with empty counters."""
    assert collector.export_prometheus() == ""


@pytest.mark.unit
def test_increment_fetches_by_status(collector):
    """Test fetch counters are separate per status."""
    collector.increment_fetches("google")
    collector.increment_fetches("google")
    collector.increment_fetches("google", status="error")

    ok = collector.get_counter_value("review_fetches_total", {"platform": "google", "status": "ok"})
    error = collector.get_counter_value("review_fetches_total", {"platform": "google", "status": "error"})

    assert ok == 2
    assert error == 1


@pytest.mark.unit
def test_increment_normalized_ignores_empty_batches(collector):
    """Test zero-row fetches do not create a counter."""
    collector.increment_normalized("booking", 0)
    collector.increment_normalized("booking", 12)

    assert collector.get_counter_value("reviews_normalized_total", {"platform": "booking"}) == 12
    assert "reviews_normalized_total{platform=\"booking\"} 12" in collector.export_prometheus()


@pytest.mark.unit
def test_increment_dropped_default_reason(collector):
    """Test dropped rows are labelled with their reason."""
    collector.increment_dropped("tripadvisor", amount=3)

    value = collector.get_counter_value(
        "review_rows_dropped_total",
        {"platform": "tripadvisor", "reason": "missing_published_at"},
    )
    assert value == 3


@pytest.mark.unit
def test_increment_clamped(collector):
    """Test clamped rating counter."""
    collector.increment_clamped("booking")
    assert collector.get_counter_value("rating_clamped_total", {"platform": "booking"}) == 1


@pytest.mark.unit
def test_export_prometheus_format(collector):
    """Test Prometheus export format is correct."""
    collector.increment_fetches("facebook", status="error")
    collector.increment_clamped("google")

    output = collector.export_prometheus()

    assert "# HELP review_fetches_total" in output
    assert "# TYPE review_fetches_total counter" in output
    assert "# TYPE rating_clamped_total counter" in output
    assert 'review_fetches_total{platform="facebook",status="error"} 1' in output
    assert 'rating_clamped_total{platform="google"} 1' in output


@pytest.mark.unit
def test_case_normalization(collector):
    """Test labels are lower-cased for consistency."""
    collector.increment_fetches("GOOGLE", status="OK")

    value = collector.get_counter_value("review_fetches_total", {"platform": "google", "status": "ok"})
    assert value == 1


@pytest.mark.unit
def test_reset_all_clears_counters(collector):
    """Test reset_all clears all counters."""
    collector.increment_normalized("google", 100)
    collector.reset_all()

    assert collector.get_counter_value("reviews_normalized_total", {"platform": "google"}) == 0
    assert collector.export_prometheus() == ""


@pytest.mark.unit
def test_get_metrics_collector_singleton():
    """Test get_metrics_collector returns singleton instance."""
    collector1 = get_metrics_collector()
    collector2 = get_metrics_collector()

    assert collector1 is collector2

    collector1.increment_fetches("google")
    assert collector2.get_counter_value("review_fetches_total", {"platform": "google", "status": "ok"}) == 1


@pytest.mark.unit
def test_reset_metrics_clears_singleton():
    """Test reset_metrics clears the global singleton."""
    get_metrics_collector().increment_normalized("google", 5)

    reset_metrics()

    assert get_metrics_collector().get_counter_value("reviews_normalized_total", {"platform": "google"}) == 0
