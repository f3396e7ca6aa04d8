"""
Prometheus-compatible metrics for observability.

Tracks review pipeline counters:
- Platform fetches (by platform, status)
- Rows normalized into canonical reviews (by platform)
- Rows dropped before trend bucketing (by platform, reason)
- Native ratings clamped back into range (by platform)

Usage:
    from reviewhub.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.increment_fetches(platform="google", status="ok")
    metrics.increment_normalized(platform="google", amount=42)

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from typing import Dict, Tuple
from threading import Lock


class MetricsCollector:
    """
    Prometheus-style metrics collector for the review pipeline.

    Counters:
    - review_fetches_total: Platform store queries (labels: platform, status)
    - reviews_normalized_total: Rows converted to canonical reviews (labels: platform)
    - review_rows_dropped_total: Rows excluded from bucketing (labels: platform, reason)
    - rating_clamped_total: Ratings outside the native scale (labels: platform)

    Thread-safe for concurrent increments.
    """

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        sorted_labels = tuple(sorted(labels.items()))
        return (metric_name, sorted_labels)

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: int = 1):
        """Thread-safe increment of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def _get_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """Get current value of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    # ===== Fetch Metrics =====

    def increment_fetches(self, platform: str, status: str = "ok", amount: int = 1):
        """
        Increment platform fetch counter.

        Args:
            platform: Review platform (google, facebook, tripadvisor, booking)
            status: Fetch outcome (ok, error)
            amount: Increment amount (default 1)
        """
        labels = {
            "platform": platform.lower(),
            "status": status.lower(),
        }
        self._increment("review_fetches_total", labels, amount)

    # ===== Normalization Metrics =====

    def increment_normalized(self, platform: str, amount: int = 1):
        """Increment rows converted into canonical reviews."""
        if amount <= 0:
            return
        self._increment("reviews_normalized_total", {"platform": platform.lower()}, amount)

    def increment_dropped(self, platform: str, reason: str = "missing_published_at", amount: int = 1):
        """
        Increment rows dropped before bucketing.

        Args:
            platform: Review platform
            reason: Why the row was dropped (missing_published_at)
            amount: Increment amount
        """
        if amount <= 0:
            return
        labels = {
            "platform": platform.lower(),
            "reason": reason.lower(),
        }
        self._increment("review_rows_dropped_total", labels, amount)

    def increment_clamped(self, platform: str, amount: int = 1):
        """Increment ratings clamped back into the native scale."""
        self._increment("rating_clamped_total", {"platform": platform.lower()}, amount)

    # ===== Export =====

    def export_prometheus(self) -> str:
        """
        Export all metrics in Prometheus text format.

        Returns:
            Prometheus-compatible text output
        """
        output_lines = []

        # Group counters by metric name
        metrics_by_name: Dict[str, list] = {}
        with self._lock:
            for (metric_name, labels_tuple), value in self._counters.items():
                if metric_name not in metrics_by_name:
                    metrics_by_name[metric_name] = []
                metrics_by_name[metric_name].append((dict(labels_tuple), value))

        # Generate Prometheus format for each metric
        for metric_name in sorted(metrics_by_name.keys()):
            help_text = self._get_help_text(metric_name)
            output_lines.append(f"# HELP {metric_name} {help_text}")
            output_lines.append(f"# TYPE {metric_name} counter")

            for labels_dict, value in sorted(metrics_by_name[metric_name], key=lambda x: str(x[0])):
                labels_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels_dict.items())])
                output_lines.append(f"{metric_name}{{{labels_str}}} {value}")

            output_lines.append("")  # Blank line between metrics

        return "\n".join(output_lines)

    def _get_help_text(self, metric_name: str) -> str:
        """Get help text for metric."""
        help_texts = {
            "review_fetches_total": "Total number of platform review store queries",
            "reviews_normalized_total": "Total number of rows converted to canonical reviews",
            "review_rows_dropped_total": "Total number of review rows excluded from trend bucketing",
            "rating_clamped_total": "Total number of ratings clamped into the native scale",
        }
        return help_texts.get(metric_name, "Counter metric")

    def get_counter_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """
        Get current value of a specific counter.

        Args:
            metric_name: Name of the metric
            labels: Label filters

        Returns:
            Current counter value
        """
        return self._get_value(metric_name, labels)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: MetricsCollector | None = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """
    Get global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    global _metrics_collector
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
