"""
Unit tests for metric calculators.
"""
from datetime import datetime, timedelta, timezone

import pytest

from reviewhub.reviews import calculators
from reviewhub.reviews.calculators import (
    BOOKING_SUB_RATINGS,
    SentimentBasis,
    average_rating,
    classify_rating,
    classify_score,
    rating_distribution,
)
from reviewhub.reviews.canonical import Platform, SentimentLabel


PUBLISHED = datetime(2024, 1, 10, tzinfo=timezone.utc)


# ===== Ratings =====

@pytest.mark.unit
@pytest.mark.parametrize(
    "ratings",
    [[], [5], [1, 2, 3, 4, 5], [0.2, 5.7, 2.5, 3.49, 4.5], [3] * 17],
)
def test_distribution_sums_to_number_of_ratings(ratings):
    assert sum(rating_distribution(ratings).values()) == len(ratings)


@pytest.mark.unit
def test_distribution_rounds_half_up_and_clamps():
    distribution = rating_distribution([2.5, 0.1, 9, 3.49])
    assert distribution == {1: 1, 2: 0, 3: 2, 4: 0, 5: 1}


@pytest.mark.unit
def test_rating_percentages():
    percentages = calculators.rating_percentages({1: 1, 2: 0, 3: 0, 4: 1, 5: 2})
    assert percentages == {1: 25.0, 2: 0.0, 3: 0.0, 4: 25.0, 5: 50.0}


@pytest.mark.unit
def test_average_rating_empty_is_none():
    assert average_rating([]) is None
    assert average_rating([4, 5]) == 4.5
    assert average_rating([0, 0]) == 0


# ===== Sentiment =====

@pytest.mark.unit
@pytest.mark.parametrize(
    "rating, label",
    [
        (5, SentimentLabel.POSITIVE),
        (4, SentimentLabel.POSITIVE),
        (3, SentimentLabel.NEUTRAL),
        (2, SentimentLabel.NEGATIVE),
        (1, SentimentLabel.NEGATIVE),
    ],
)
def test_classify_five_point_boundaries(rating, label):
    assert classify_rating(rating, 5) is label


@pytest.mark.unit
@pytest.mark.parametrize(
    "rating, label",
    [
        (10, SentimentLabel.POSITIVE),
        (7, SentimentLabel.POSITIVE),
        (6, SentimentLabel.NEUTRAL),
        (5, SentimentLabel.NEUTRAL),
        (4, SentimentLabel.NEGATIVE),
    ],
)
def test_classify_ten_point_boundaries(rating, label):
    assert classify_rating(rating, 10) is label


@pytest.mark.unit
def test_classification_is_total_over_five_point_scale():
    ratings = [x / 10 for x in range(10, 51)]
    for rating in ratings:
        assert classify_rating(rating, 5) in set(SentimentLabel)
        assert classify_rating(rating, 5) is classify_rating(rating, 5)


@pytest.mark.unit
def test_classify_rating_rejects_unknown_scale():
    with pytest.raises(ValueError, match="Unsupported rating scale"):
        classify_rating(3, 7)


@pytest.mark.unit
@pytest.mark.parametrize(
    "score, label",
    [
        (1.0, SentimentLabel.POSITIVE),
        (0.5, SentimentLabel.POSITIVE),
        (0.49, SentimentLabel.NEUTRAL),
        (-0.5, SentimentLabel.NEUTRAL),
        (-0.51, SentimentLabel.NEGATIVE),
    ],
)
def test_classify_score_boundaries(score, label):
    assert classify_score(score) is label


@pytest.mark.unit
def test_sentiment_distribution_score_basis_skips_unscored(make_review):
    reviews = [
        make_review(rating=5, sentiment=0.9),
        make_review(rating=1, sentiment=0.0),
        make_review(rating=1, sentiment=-0.8),
        make_review(rating=5),
    ]

    result = calculators.sentiment_distribution(reviews, SentimentBasis.SCORE)

    assert (result.positive, result.neutral, result.negative) == (1, 1, 1)
    assert result.analyzed == 3
    assert result.average_score == pytest.approx(0.1 / 3)
    assert result.basis == "score"


@pytest.mark.unit
def test_sentiment_distribution_rating_basis_uses_native_scale(make_review):
    reviews = [
        make_review(rating=4),
        make_review(Platform.BOOKING, rating=8),
        make_review(Platform.BOOKING, rating=5),
        make_review(Platform.FACEBOOK, rating=1),
    ]

    result = calculators.sentiment_distribution(reviews, SentimentBasis.RATING)

    assert (result.positive, result.neutral, result.negative) == (2, 1, 1)
    assert result.percentages["positive"] == 50.0


# ===== Responses =====

@pytest.mark.unit
def test_negative_latency_excluded_but_counted_in_rate(make_review):
    reviews = [
        make_review(published_at=PUBLISHED, has_reply=True, reply_text="ok",
                    reply_at=datetime(2024, 1, 5, tzinfo=timezone.utc)),
        make_review(published_at=PUBLISHED, has_reply=True, reply_text="ok",
                    reply_at=PUBLISHED + timedelta(hours=10)),
        make_review(published_at=PUBLISHED),
    ]

    result = calculators.response_metrics(reviews)

    assert result.total_with_response == 2
    assert result.response_rate == pytest.approx(200 / 3)
    assert result.average_response_hours == 10
    assert result.median_response_hours == 10


@pytest.mark.unit
def test_response_median_and_days(make_review):
    reviews = [
        make_review(published_at=PUBLISHED, has_reply=True, reply_at=PUBLISHED + timedelta(hours=h))
        for h in (2, 4, 48)
    ]

    result = calculators.response_metrics(reviews)

    assert result.average_response_hours == pytest.approx(18)
    assert result.median_response_hours == 4
    assert result.average_response_days == pytest.approx(0.75)


@pytest.mark.unit
def test_response_metrics_empty():
    result = calculators.response_metrics([])
    assert result.response_rate == 0.0
    assert result.average_response_hours is None
    assert result.average_response_days is None


# ===== Content / engagement / status =====

@pytest.mark.unit
def test_content_metrics(make_review):
    reviews = [
        make_review(text="short"),
        make_review(text="x" * 150, images=("a", "b")),
        make_review(text="y" * 300, images=("c",), extras={"is_local_guide": True}),
        make_review(text="  "),
    ]

    result = calculators.content_metrics(reviews)

    assert result.reviews_with_text == 3
    assert result.reviews_with_photos == 2
    assert result.total_photos == 3
    assert result.average_photos_per_review == 0.75
    assert result.average_text_length == pytest.approx((5 + 150 + 300) / 3)
    assert (result.short_reviews, result.medium_reviews, result.long_reviews) == (1, 1, 1)
    assert result.reviews_from_local_guides == 1


@pytest.mark.unit
def test_content_metrics_without_text_has_no_average(make_review):
    assert calculators.content_metrics([make_review()]).average_text_length is None


@pytest.mark.unit
def test_engagement_metrics(make_review):
    reviews = [
        make_review(Platform.FACEBOOK, rating=5, extras={"likes_count": 2, "comments_count": 1, "is_recommended": True}),
        make_review(Platform.FACEBOOK, rating=1, extras={"likes_count": 0, "comments_count": 0, "is_recommended": False}),
    ]

    result = calculators.engagement_metrics(reviews)

    assert result.total_likes == 2
    assert result.total_comments == 1
    assert result.average_likes == 1.0
    assert result.reviews_with_likes == 1
    # (2 + 1) / 2 * 50 = 75, no photos, no replies
    assert result.engagement_score == 75.0
    # 1 * 30 + 0.5 * 40 + 0.5 * 30 = 65
    assert result.virality_score == 65.0


@pytest.mark.unit
def test_engagement_score_is_capped():
    assert calculators.engagement_score(1, 10, 10, 0, 0) == 100.0
    assert calculators.engagement_score(0, 10, 10, 0, 0) == 0.0


@pytest.mark.unit
def test_status_metrics(make_review):
    reviews = [
        make_review(is_read=True),
        make_review(is_important=True),
        make_review(),
        make_review(is_read=True, is_important=True),
    ]

    result = calculators.status_metrics(reviews)

    assert result.unread == 2
    assert result.important == 2
    assert result.read_percentage == 50.0


# ===== Platform breakdowns =====

@pytest.mark.unit
def test_sub_rating_denominators_are_independent(make_review):
    reviews = [
        make_review(Platform.BOOKING, rating=9, extras={"sub_ratings": {"wifi": 8.0, "staff": 10.0}}),
        make_review(Platform.BOOKING, rating=9, extras={"sub_ratings": {"staff": 6.0}}),
        make_review(Platform.BOOKING, rating=9),
    ]

    averages = calculators.sub_rating_averages(reviews, BOOKING_SUB_RATINGS)

    assert averages["wifi"] == 8.0
    assert averages["staff"] == 8.0
    assert averages["cleanliness"] is None


@pytest.mark.unit
def test_trip_type_distribution(make_review):
    reviews = [
        make_review(Platform.TRIPADVISOR, rating=4, extras={"trip_type": trip_type})
        for trip_type in ("FAMILY", "Traveled as a couple", "SOLO", "business", "Friends", None, "other")
    ]

    assert calculators.trip_type_distribution(reviews) == {
        "family": 1, "couples": 1, "solo": 1, "business": 1, "friends": 1,
    }


@pytest.mark.unit
def test_helpful_votes_and_room_tips(make_review):
    reviews = [
        make_review(Platform.TRIPADVISOR, rating=4, extras={"helpful_votes": 3, "room_tip": "Ask for sea view"}),
        make_review(Platform.TRIPADVISOR, rating=4, extras={"helpful_votes": 1, "room_tip": " "}),
    ]

    assert calculators.helpful_votes_metrics(reviews) == {
        "total_helpful_votes": 4,
        "average_helpful_votes": 2.0,
    }
    assert calculators.count_room_tips(reviews) == 1


@pytest.mark.unit
def test_guest_type_distribution(make_review):
    reviews = [
        make_review(Platform.BOOKING, rating=8, extras={"guest_type": guest_type})
        for guest_type in ("Solo traveler", "COUPLE", "Family with young children", "Group", "BUSINESS", "Alien")
    ]

    assert calculators.guest_type_distribution(reviews) == {
        "solo": 1,
        "couple": 1,
        "family_with_young_children": 1,
        "family_with_older_children": 0,
        "group_of_friends": 1,
        "business": 1,
    }


@pytest.mark.unit
def test_stay_length_buckets(make_review):
    reviews = [
        make_review(Platform.BOOKING, rating=8, extras={"length_of_stay": nights})
        for nights in (1, 3, 7, 10)
    ]

    result = calculators.stay_length_metrics(reviews)

    assert result.average_length_of_stay == 5.25
    assert (result.short_stays, result.medium_stays, result.long_stays) == (1, 2, 1)


@pytest.mark.unit
def test_top_values_breaks_ties_by_first_seen(make_review):
    reviews = [
        make_review(Platform.BOOKING, rating=8, extras={"nationality": n})
        for n in ("Spain", "France", "France", "Spain", "Italy")
    ]

    assert calculators.top_values(reviews, "nationality", limit=2) == ["Spain", "France"]


@pytest.mark.unit
def test_recommendation_metrics_and_star_equivalent(make_review):
    reviews = [
        make_review(Platform.FACEBOOK, rating=5, extras={"is_recommended": True}),
        make_review(Platform.FACEBOOK, rating=5, extras={"is_recommended": True}),
        make_review(Platform.FACEBOOK, rating=5, extras={"is_recommended": True}),
        make_review(Platform.FACEBOOK, rating=1, extras={"is_recommended": False}),
        make_review(Platform.GOOGLE, rating=5),
    ]

    result = calculators.recommendation_metrics(reviews)

    assert result.total_reviews == 4
    assert result.recommendation_rate == 75.0
    assert result.star_equivalent == 4.0
    assert calculators.recommendation_rate_to_star_equivalent(0) == 1
    assert calculators.recommendation_metrics([]).star_equivalent is None


@pytest.mark.unit
def test_tag_frequency(make_review):
    reviews = [
        make_review(Platform.FACEBOOK, rating=5, sentiment=0.8,
                    extras={"is_recommended": True, "tags": ("Food", "service")}),
        make_review(Platform.FACEBOOK, rating=1, sentiment=-0.4,
                    extras={"is_recommended": False, "tags": ("food",)}),
    ]

    tags = calculators.tag_frequency(reviews)

    assert [t.tag for t in tags] == ["food", "service"]
    assert tags[0].count == 2
    assert tags[0].recommendation_rate == 50.0
    assert tags[0].average_sentiment == pytest.approx(0.2)


@pytest.mark.unit
def test_calculators_do_not_mutate_input(make_review):
    reviews = [make_review(rating=r) for r in (1, 3, 5)]
    snapshot = list(reviews)

    calculators.sentiment_distribution(reviews, SentimentBasis.RATING)
    calculators.response_metrics(reviews)
    calculators.content_metrics(reviews)
    calculators.engagement_metrics(reviews)

    assert reviews == snapshot
