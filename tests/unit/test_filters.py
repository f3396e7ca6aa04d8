"""
Unit tests for inbox filters, query filters and pagination.
"""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from reviewhub.reviews.canonical import ALL_PLATFORMS, Platform, SentimentLabel
from reviewhub.reviews.filters import (
    DateRange,
    DateRangePreset,
    InboxFilters,
    InboxStatus,
    Pagination,
    ReviewQueryFilter,
    safe_boolean,
    resolve_date_range,
)


NOW = datetime(2024, 6, 15, 15, 30, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (False, False),
        ("true", True),
        ("TRUE", True),
        (" false ", False),
        ("", None),
        (None, None),
        ("yes", False),
        (1, True),
        (0, False),
    ],
)
def test_safe_boolean(value, expected):
    assert safe_boolean(value) is expected


@pytest.mark.unit
def test_query_filter_normalizes_boolean_strings():
    query = ReviewQueryFilter(is_read="false", is_important="", has_response="true")

    assert query.is_read is False
    assert query.is_important is None
    assert query.has_response is True


@pytest.mark.unit
def test_query_filter_is_immutable():
    query = ReviewQueryFilter()
    with pytest.raises(ValidationError):
        query.is_read = True


@pytest.mark.unit
def test_rating_filter_is_validated_and_deduplicated():
    assert ReviewQueryFilter(rating_in=[5, 3, 5]).rating_in == (3, 5)
    assert ReviewQueryFilter(rating_in="4").rating_in == (4,)
    with pytest.raises(ValidationError):
        ReviewQueryFilter(rating_in=[6])


@pytest.mark.unit
def test_blank_search_is_dropped():
    assert ReviewQueryFilter(text_contains="   ").text_contains is None


@pytest.mark.unit
def test_matches_rating_bucket_on_native_scale(make_review):
    query = ReviewQueryFilter(rating_in=[4])

    assert query.matches(make_review(Platform.BOOKING, rating=8)) is True
    assert query.matches(make_review(Platform.BOOKING, rating=9)) is False
    assert query.matches(make_review(Platform.GOOGLE, rating=4)) is True


@pytest.mark.unit
def test_matches_sentiment_requires_a_score(make_review):
    query = ReviewQueryFilter(sentiment=SentimentLabel.NEGATIVE)

    assert query.matches(make_review(sentiment=-0.7)) is True
    assert query.matches(make_review(sentiment=0.1)) is False
    assert query.matches(make_review()) is False


@pytest.mark.unit
def test_matches_search_in_text_or_author(make_review):
    query = ReviewQueryFilter(text_contains="POOL")

    assert query.matches(make_review(text="Loved the pool")) is True
    assert query.matches(make_review(author="Poole")) is True
    assert query.matches(make_review(text="Nice beach")) is False


@pytest.mark.unit
def test_matches_date_range_and_flags(make_review):
    query = ReviewQueryFilter(
        date_range=DateRange(start=datetime(2024, 1, 1), end=datetime(2024, 1, 31)),
        is_read=False,
        has_response=True,
    )

    assert query.matches(make_review(has_reply=True)) is True
    assert query.matches(make_review(has_reply=True, is_read=True)) is False
    assert query.matches(make_review(has_reply=False)) is False
    assert query.matches(make_review(has_reply=True, published_at=None)) is False


@pytest.mark.unit
def test_date_range_assumes_utc_for_naive_bounds():
    window = DateRange(start=datetime(2024, 1, 1))
    assert window.start.tzinfo is timezone.utc
    assert window.contains(datetime(2024, 1, 1, tzinfo=timezone.utc)) is True


@pytest.mark.unit
def test_resolve_date_presets():
    today = resolve_date_range(DateRangePreset.TODAY, NOW)
    week = resolve_date_range("week", NOW)

    assert today.start == datetime(2024, 6, 15, tzinfo=timezone.utc)
    assert today.end == NOW
    assert (NOW - week.start).days == 7
    assert resolve_date_range(DateRangePreset.ALL, NOW).is_open


@pytest.mark.unit
def test_inbox_filters_default_to_all_platforms():
    assert InboxFilters().platforms == ALL_PLATFORMS
    assert InboxFilters(platforms=["Google", "booking", "google"]).platforms == (
        Platform.GOOGLE, Platform.BOOKING,
    )
    assert InboxFilters(platforms=[]).platforms == ()


@pytest.mark.unit
@pytest.mark.parametrize(
    "status, field, value",
    [
        (InboxStatus.UNREAD, "is_read", False),
        (InboxStatus.READ, "is_read", True),
        (InboxStatus.IMPORTANT, "is_important", True),
        (InboxStatus.REPLIED, "has_response", True),
        (InboxStatus.NOT_REPLIED, "has_response", False),
    ],
)
def test_status_presets_translate_to_flags(status, field, value):
    query = InboxFilters(status=status).to_query_filter(NOW)
    assert getattr(query, field) is value


@pytest.mark.unit
def test_explicit_flags_win_over_status_preset():
    query = InboxFilters(status="unread", is_read="true").to_query_filter(NOW)
    assert query.is_read is True


@pytest.mark.unit
def test_explicit_date_range_wins_over_preset():
    explicit = DateRange(start=datetime(2020, 1, 1), end=datetime(2020, 2, 1))

    query = InboxFilters(date_preset="month", date_range=explicit).to_query_filter(NOW)
    preset_only = InboxFilters(date_preset="month").to_query_filter(NOW)

    assert query.date_range == explicit
    assert preset_only.date_range.end == NOW


@pytest.mark.unit
def test_query_filter_carries_search_rating_and_sort():
    query = InboxFilters(rating=[1, 2], search="rude", sort_by="rating", sort_order="asc").to_query_filter(NOW)

    assert query.rating_in == (1, 2)
    assert query.text_contains == "rude"
    assert query.sort_by.value == "rating"
    assert query.sort_order.value == "asc"
    assert query.limit is None


@pytest.mark.unit
def test_pagination_offset_and_cap():
    assert Pagination(page=3, limit=10).offset == 20
    assert Pagination(limit=10_000).limit == 100
    assert Pagination().limit == 20
    with pytest.raises(ValidationError):
        Pagination(page=0)


@pytest.mark.unit
def test_covering_days_widens_to_whole_utc_days():
    window = DateRange(
        start=datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc),
        end=datetime(2024, 1, 5),
    ).covering_days()

    assert window.start == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert window.contains(datetime(2024, 1, 5, 23, 59, 59, tzinfo=timezone.utc)) is True
    assert window.contains(datetime(2024, 1, 6, tzinfo=timezone.utc)) is False
    assert DateRange(start=datetime(2024, 1, 1)).covering_days().end is None
