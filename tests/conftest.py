"""
Shared fixtures for review core tests.
"""
from datetime import datetime, timezone

import pytest

from reviewhub.lib.metrics import get_metrics_collector, reset_metrics
from reviewhub.reviews.canonical import CanonicalReview, Platform


@pytest.fixture(autouse=True)
def clean_metrics():
    """Every test starts from zeroed global counters."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def metrics():
    """The global metrics collector, zeroed."""
    return get_metrics_collector()


@pytest.fixture
def make_review():
    """Factory for canonical reviews with sensible defaults."""
    counter = {"n": 0}
    default_published = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def _make(platform=Platform.GOOGLE, rating=5.0, published_at=default_published, **fields):
        counter["n"] += 1
        fields.setdefault("id", f"{Platform(platform).value}-{counter['n']}")
        return CanonicalReview(
            platform=Platform(platform),
            rating=rating,
            published_at=published_at,
            **fields,
        )

    return _make
