"""
Unit tests for the canonical review model and rating projections.
"""
from datetime import datetime, timezone

import pytest

from reviewhub.reviews.canonical import (
    CanonicalReview,
    Platform,
    RatingScale,
    round_half_up,
    to_five_point_bucket,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "native, bucket",
    [(1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (6, 3), (7, 4), (8, 4), (9, 5), (10, 5)],
)
def test_booking_bucket_for_every_native_rating(native, bucket):
    """Booking bucket is clamp(round_half_up(native / 2), 1, 5)."""
    assert to_five_point_bucket(native, RatingScale.TEN_POINT) == bucket


@pytest.mark.unit
def test_round_half_up_is_not_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(0.5) == 1
    assert round_half_up(2.49) == 2


@pytest.mark.unit
def test_five_star_bucket_clamps_off_scale_values():
    assert to_five_point_bucket(0.2, RatingScale.FIVE_STAR) == 1
    assert to_five_point_bucket(7, RatingScale.FIVE_STAR) == 5
    assert to_five_point_bucket(4.5, RatingScale.FIVE_STAR) == 5


@pytest.mark.unit
def test_recommendation_scale_is_distinct_from_five_star():
    """Both span 1-5 but must stay separate enum members."""
    assert RatingScale.RECOMMENDATION is not RatingScale.FIVE_STAR
    assert RatingScale.RECOMMENDATION.sentiment_scale == 5
    assert RatingScale.TEN_POINT.maximum == 10.0


@pytest.mark.unit
def test_booking_review_keeps_native_rating():
    review = CanonicalReview(id="b1", platform=Platform.BOOKING, rating=9.0, published_at=None)

    assert review.rating == 9.0
    assert review.rating_bucket == 5
    assert review.normalized_rating == 4.5
    assert review.scale is RatingScale.TEN_POINT


@pytest.mark.unit
def test_extras_are_read_only():
    review = CanonicalReview(
        id="g1",
        platform=Platform.GOOGLE,
        rating=4.0,
        published_at=None,
        extras={"likes_count": 3},
    )

    with pytest.raises(TypeError):
        review.extras["likes_count"] = 10
    assert review.extra("likes_count") == 3
    assert review.extra("missing", "default") == "default"


@pytest.mark.unit
def test_to_dict_uses_iso_strings():
    published = datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)
    review = CanonicalReview(
        id="t1",
        platform=Platform.TRIPADVISOR,
        rating=4.0,
        published_at=published,
        images=("a.jpg",),
        extras={"sub_ratings": {"food": 5.0}},
    )

    data = review.to_dict()

    assert data["platform"] == "tripadvisor"
    assert data["published_at"] == "2024-03-01T08:30:00+00:00"
    assert data["reply_at"] is None
    assert data["images"] == ["a.jpg"]
    assert data["extras"] == {"sub_ratings": {"food": 5.0}}
    assert data["rating_bucket"] == 4


@pytest.mark.unit
def test_has_text_ignores_whitespace():
    blank = CanonicalReview(id="x", platform=Platform.GOOGLE, rating=3.0, published_at=None, text="   ")
    assert blank.has_text is False
