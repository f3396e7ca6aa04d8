"""
Unit tests for platform adapters.
"""
from datetime import datetime, timedelta, timezone

import pytest

from reviewhub.reviews.adapters import (
    native_rating_criteria,
    normalize,
    normalize_many,
    to_utc,
)
from reviewhub.reviews.canonical import Platform
from reviewhub.reviews.raw import (
    BookingReviewRow,
    FacebookReviewRow,
    GoogleReviewRow,
    ReviewMetadataRow,
    TripAdvisorReviewRow,
)


@pytest.mark.unit
def test_google_rating_passes_through():
    review = normalize(GoogleReviewRow(id="g1", stars=4, name="Ana", text="Lovely"))

    assert review.platform is Platform.GOOGLE
    assert review.rating == 4.0
    assert review.author == "Ana"
    assert review.text == "Lovely"


@pytest.mark.unit
def test_missing_optional_fields_get_defaults():
    review = normalize(GoogleReviewRow(id="g2", stars=5))

    assert review.author == "Anonymous"
    assert review.text is None
    assert review.images == ()
    assert review.has_reply is False
    assert review.is_read is False
    assert review.sentiment is None


@pytest.mark.unit
def test_blank_author_becomes_anonymous():
    review = normalize(TripAdvisorReviewRow(id="t1", rating=3, reviewer_name="  "))
    assert review.author == "Anonymous"


@pytest.mark.unit
@pytest.mark.parametrize("recommended, rating", [(True, 5.0), (False, 1.0), (None, 1.0)])
def test_facebook_recommendation_maps_to_five_or_one(recommended, rating):
    review = normalize(FacebookReviewRow(id="f1", is_recommended=recommended))

    assert review.rating == rating
    assert review.extra("is_recommended") is bool(recommended)


@pytest.mark.unit
def test_booking_keeps_native_and_derives_bucket():
    review = normalize(BookingReviewRow(id="b1", rating=8))

    assert review.rating == 8.0
    assert review.rating_bucket == 4


@pytest.mark.unit
def test_booking_text_falls_back_to_liked_and_disliked():
    review = normalize(BookingReviewRow(
        id="b2",
        rating=7,
        liked_text="Great breakfast",
        disliked_text="Noisy street",
    ))
    assert review.text == "Great breakfast\nNoisy street"


@pytest.mark.unit
def test_out_of_range_rating_is_clamped_and_counted(metrics):
    review = normalize(GoogleReviewRow(id="g3", stars=7))

    assert review.rating == 5.0
    assert metrics.get_counter_value("rating_clamped_total", {"platform": "google"}) == 1


@pytest.mark.unit
def test_quiet_normalization_clamps_without_reporting(metrics):
    review = normalize(GoogleReviewRow(id="g10", stars=9), report_clamps=False)

    assert review.rating == 5.0
    assert metrics.get_counter_value("rating_clamped_total", {"platform": "google"}) == 0


@pytest.mark.unit
def test_booking_zero_rating_is_clamped_to_scale_minimum(metrics):
    review = normalize(BookingReviewRow(id="b3", rating=0))

    assert review.rating == 1.0
    assert metrics.get_counter_value("rating_clamped_total", {"platform": "booking"}) == 1


@pytest.mark.unit
def test_metadata_supplies_read_state_sentiment_and_keywords():
    metadata = ReviewMetadataRow(
        is_read=True,
        is_important=True,
        sentiment=1.7,
        keywords=("staff", "view", "staff"),
    )
    review = normalize(GoogleReviewRow(id="g4", stars=5, metadata=metadata))

    assert review.is_read is True
    assert review.is_important is True
    assert review.sentiment == 1.0
    assert review.keywords == ("staff", "view")


@pytest.mark.unit
def test_reply_comes_from_row_or_metadata():
    replied_at = datetime(2024, 1, 2, tzinfo=timezone.utc)
    from_row = normalize(GoogleReviewRow(
        id="g5",
        stars=5,
        response_from_owner_text="Thanks!",
        response_from_owner_date=replied_at,
    ))
    from_metadata = normalize(GoogleReviewRow(
        id="g6",
        stars=5,
        metadata=ReviewMetadataRow(reply="Thank you", reply_date=replied_at),
    ))

    assert from_row.has_reply is True
    assert from_row.reply_at == replied_at
    assert from_metadata.reply_text == "Thank you"
    assert from_metadata.has_reply is True


@pytest.mark.unit
def test_owner_response_flag_counts_as_reply():
    review = normalize(TripAdvisorReviewRow(id="t2", rating=4, has_owner_response=True))
    assert review.has_reply is True
    assert review.reply_text is None


@pytest.mark.unit
def test_tripadvisor_extras_drop_missing_sub_ratings():
    review = normalize(TripAdvisorReviewRow(
        id="t3",
        rating=5,
        trip_type="Traveled as a couple",
        helpful_votes=4,
        sub_ratings={"service": 5, "food": None},
    ))

    assert review.extra("sub_ratings") == {"service": 5.0}
    assert review.extra("trip_type") == "Traveled as a couple"
    assert review.extra("helpful_votes") == 4


@pytest.mark.unit
def test_timestamps_are_converted_to_utc():
    plus_two = timezone(timedelta(hours=2))
    review = normalize(GoogleReviewRow(
        id="g7",
        stars=5,
        published_at_date=datetime(2024, 1, 1, 1, 0, tzinfo=plus_two),
    ))

    assert review.published_at == datetime(2023, 12, 31, 23, 0, tzinfo=timezone.utc)
    assert to_utc(datetime(2024, 1, 1)).tzinfo is timezone.utc
    assert to_utc(None) is None


@pytest.mark.unit
def test_normalize_rejects_contradicting_platform():
    with pytest.raises(ValueError, match="cannot be normalized as booking"):
        normalize(GoogleReviewRow(id="g8", stars=5), Platform.BOOKING)


@pytest.mark.unit
def test_normalize_many_keeps_order_and_does_not_mutate_input():
    rows = [
        GoogleReviewRow(id="g9", stars=5),
        BookingReviewRow(id="b4", rating=6),
        FacebookReviewRow(id="f2", is_recommended=True),
    ]
    before = list(rows)

    reviews = normalize_many(rows)

    assert [r.id for r in reviews] == ["g9", "b4", "f2"]
    assert rows == before


@pytest.mark.unit
def test_native_criteria_for_booking_buckets():
    criteria = native_rating_criteria(Platform.BOOKING, [3, 5])

    assert criteria.ranges == ((5.0, 7.0), (9.0, None))
    assert criteria.recommended is None


@pytest.mark.unit
def test_native_criteria_for_five_star_lowest_bucket_is_open():
    criteria = native_rating_criteria(Platform.GOOGLE, [1])
    assert criteria.ranges == ((None, 1.5),)


@pytest.mark.unit
def test_native_criteria_for_facebook():
    assert native_rating_criteria(Platform.FACEBOOK, [5]).recommended == frozenset({True})
    assert native_rating_criteria(Platform.FACEBOOK, [1, 5]).recommended == frozenset({True, False})

    nothing = native_rating_criteria(Platform.FACEBOOK, [3])
    assert nothing.matches_nothing is True


@pytest.mark.unit
@pytest.mark.parametrize("native", [1, 2, 3, 4, 5, 6, 7, 8, 9, 10])
def test_booking_criteria_agree_with_canonical_bucket(native):
    review = normalize(BookingReviewRow(id="b", rating=native))
    low, high = native_rating_criteria(Platform.BOOKING, [review.rating_bucket]).ranges[0]

    assert low is None or native >= low
    assert high is None or native < high
