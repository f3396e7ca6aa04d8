"""
Metric calculators over canonical reviews.

Every function is pure: it takes a finite sequence of reviews (or values)
and returns a new value without touching its input. Averages return None
rather than 0 when there is no data, so callers can tell "no data" from
"average of zero".

Sentiment thresholds are fixed:
- rating, 5-point scale:  >= 4 positive, [3, 4) neutral, otherwise negative
- rating, 10-point scale: >= 7 positive, >= 5 neutral, otherwise negative
- score in [-1, 1]:       >= 0.5 positive, >= -0.5 neutral, otherwise negative
A report picks one basis (rating or score) and applies it to every review.
"""
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from statistics import median
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from reviewhub.reviews.canonical import (
    CanonicalReview,
    Platform,
    SentimentLabel,
    clamp,
    round_half_up,
)


POSITIVE_SCORE_THRESHOLD = 0.5
NEGATIVE_SCORE_THRESHOLD = -0.5

SHORT_TEXT_MAX = 100  # characters, exclusive
LONG_TEXT_MIN = 300  # characters, inclusive

SHORT_STAY_MAX = 3  # nights, exclusive
LONG_STAY_MIN = 7  # nights, exclusive

TRIPADVISOR_SUB_RATINGS = (
    "service", "food", "value", "atmosphere",
    "cleanliness", "location", "rooms", "sleep_quality",
)
BOOKING_SUB_RATINGS = (
    "cleanliness", "comfort", "location", "facilities",
    "staff", "value", "wifi",
)


class SentimentBasis(str, Enum):
    """Which signal a sentiment distribution is computed from."""
    SCORE = "score"
    RATING = "rating"


def _percent(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 2)


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


# ===== Ratings =====

def rating_distribution(ratings: Iterable[float]) -> Dict[int, int]:
    """
    Count ratings per 1..5 bucket.

    Ratings are expected on a 1-5 scale; each is rounded half-up and clamped
    into [1, 5] first, so off-scale values still land in a bucket and the
    counts always sum to the number of ratings.
    """
    distribution = {bucket: 0 for bucket in range(1, 6)}
    for rating in ratings:
        bucket = int(clamp(round_half_up(rating), 1, 5))
        distribution[bucket] += 1
    return distribution


def rating_percentages(distribution: Dict[int, int]) -> Dict[int, float]:
    total = sum(distribution.values())
    return {bucket: _percent(count, total) for bucket, count in distribution.items()}


def average_rating(ratings: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, None for an empty input."""
    return _mean(list(ratings))


# ===== Sentiment =====

def classify_rating(rating: float, scale: int = 5) -> SentimentLabel:
    """
    Classify a rating on an explicit 5- or 10-point scale.

    Raises:
        ValueError: For any other scale
    """
    if scale == 5:
        if rating >= 4:
            return SentimentLabel.POSITIVE
        if rating >= 3:
            return SentimentLabel.NEUTRAL
        return SentimentLabel.NEGATIVE
    if scale == 10:
        if rating >= 7:
            return SentimentLabel.POSITIVE
        if rating >= 5:
            return SentimentLabel.NEUTRAL
        return SentimentLabel.NEGATIVE
    raise ValueError(f"Unsupported rating scale: {scale}. Must be 5 or 10")


def classify_score(score: float) -> SentimentLabel:
    """Classify an NLP sentiment score in [-1, 1]."""
    if score >= POSITIVE_SCORE_THRESHOLD:
        return SentimentLabel.POSITIVE
    if score >= NEGATIVE_SCORE_THRESHOLD:
        return SentimentLabel.NEUTRAL
    return SentimentLabel.NEGATIVE


def classify_review(review: CanonicalReview, basis: SentimentBasis) -> Optional[SentimentLabel]:
    """
    Classify one review on the given basis.

    Returns None on the score basis when the review carries no score.
    """
    if basis is SentimentBasis.SCORE:
        if review.sentiment is None:
            return None
        return classify_score(review.sentiment)
    return classify_rating(review.rating, review.scale.sentiment_scale)


@dataclass(frozen=True)
class SentimentDistribution:
    basis: str
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    analyzed: int = 0
    average_score: Optional[float] = None

    @property
    def percentages(self) -> Dict[str, float]:
        return {
            "positive": _percent(self.positive, self.analyzed),
            "neutral": _percent(self.neutral, self.analyzed),
            "negative": _percent(self.negative, self.analyzed),
        }

    def to_dict(self) -> dict:
        data = asdict(self)
        data["percentages"] = self.percentages
        return data


def sentiment_distribution(
    reviews: Sequence[CanonicalReview],
    basis: SentimentBasis = SentimentBasis.SCORE,
) -> SentimentDistribution:
    """
    Three-way sentiment split over reviews.

    On the score basis only reviews with a score are analyzed. On the rating
    basis every review is classified on its own native scale.
    """
    counts = Counter()
    scores = [r.sentiment for r in reviews if r.sentiment is not None]
    for review in reviews:
        label = classify_review(review, basis)
        if label is not None:
            counts[label] += 1
    return SentimentDistribution(
        basis=basis.value,
        positive=counts[SentimentLabel.POSITIVE],
        neutral=counts[SentimentLabel.NEUTRAL],
        negative=counts[SentimentLabel.NEGATIVE],
        analyzed=sum(counts.values()),
        average_score=_mean(scores),
    )


# ===== Responses =====

@dataclass(frozen=True)
class ResponseMetrics:
    total_reviews: int = 0
    total_with_response: int = 0
    response_rate: float = 0.0
    average_response_hours: Optional[float] = None
    median_response_hours: Optional[float] = None

    @property
    def average_response_days(self) -> Optional[float]:
        if self.average_response_hours is None:
            return None
        return self.average_response_hours / 24

    def to_dict(self) -> dict:
        data = asdict(self)
        data["average_response_days"] = self.average_response_days
        return data


def response_latency_hours(review: CanonicalReview) -> Optional[float]:
    """Hours between publication and owner reply; None when either is missing."""
    if review.published_at is None or review.reply_at is None:
        return None
    return (review.reply_at - review.published_at).total_seconds() / 3600


def response_metrics(reviews: Sequence[CanonicalReview]) -> ResponseMetrics:
    """
    Response rate and latency.

    Every replied review counts toward the rate. Latency only uses reviews
    with both timestamps; a reply that predates its review is corrupted data
    and is left out of the latency figures entirely (not clamped to zero).
    """
    total = len(reviews)
    if total == 0:
        return ResponseMetrics()

    replied = [r for r in reviews if r.has_reply]
    latencies = []
    for review in replied:
        hours = response_latency_hours(review)
        if hours is not None and hours >= 0:
            latencies.append(hours)

    return ResponseMetrics(
        total_reviews=total,
        total_with_response=len(replied),
        response_rate=len(replied) / total * 100,
        average_response_hours=_mean(latencies),
        median_response_hours=median(latencies) if latencies else None,
    )


# ===== Content =====

@dataclass(frozen=True)
class ContentMetrics:
    reviews_with_text: int = 0
    reviews_with_photos: int = 0
    total_photos: int = 0
    average_photos_per_review: float = 0.0
    average_text_length: Optional[float] = None
    short_reviews: int = 0
    medium_reviews: int = 0
    long_reviews: int = 0
    reviews_from_local_guides: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def content_metrics(reviews: Sequence[CanonicalReview]) -> ContentMetrics:
    total = len(reviews)
    with_text = [r for r in reviews if r.has_text]
    lengths = [len(r.text) for r in with_text]
    total_photos = sum(len(r.images) for r in reviews)
    return ContentMetrics(
        reviews_with_text=len(with_text),
        reviews_with_photos=sum(1 for r in reviews if r.images),
        total_photos=total_photos,
        average_photos_per_review=total_photos / total if total else 0.0,
        average_text_length=_mean(lengths),
        short_reviews=sum(1 for n in lengths if n < SHORT_TEXT_MAX),
        medium_reviews=sum(1 for n in lengths if SHORT_TEXT_MAX <= n < LONG_TEXT_MIN),
        long_reviews=sum(1 for n in lengths if n >= LONG_TEXT_MIN),
        reviews_from_local_guides=sum(1 for r in reviews if r.extra("is_local_guide")),
    )


# ===== Engagement =====

@dataclass(frozen=True)
class EngagementMetrics:
    total_likes: int = 0
    total_comments: int = 0
    average_likes: float = 0.0
    average_comments: float = 0.0
    reviews_with_likes: int = 0
    engagement_score: float = 0.0
    virality_score: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def engagement_score(
    total_reviews: int,
    total_likes: int,
    total_comments: int,
    total_photos: int,
    response_rate_percent: float,
) -> float:
    """Weighted 0-100 score: interactions 50%, photos 25%, responses 25%."""
    if total_reviews == 0:
        return 0.0
    interactions = (total_likes + total_comments) / total_reviews
    photos = total_photos / total_reviews
    score = interactions * 50 + photos * 25 + (response_rate_percent / 100) * 25
    return clamp(score, 0.0, 100.0)


def virality_score(
    average_likes: float,
    average_comments: float,
    recommendation_rate_percent: float,
) -> float:
    """Weighted 0-100 score: likes 30%, comments 40%, recommendations 30%."""
    score = average_likes * 30 + average_comments * 40 + (recommendation_rate_percent / 100) * 30
    return clamp(score, 0.0, 100.0)


def engagement_metrics(reviews: Sequence[CanonicalReview]) -> EngagementMetrics:
    total = len(reviews)
    if total == 0:
        return EngagementMetrics()

    likes = [int(r.extra("likes_count", 0) or 0) for r in reviews]
    comments = [int(r.extra("comments_count", 0) or 0) for r in reviews]
    total_likes = sum(likes)
    total_comments = sum(comments)
    total_photos = sum(len(r.images) for r in reviews)
    responses = response_metrics(reviews)
    recommendation = recommendation_metrics(reviews)

    average_likes = total_likes / total
    average_comments = total_comments / total
    return EngagementMetrics(
        total_likes=total_likes,
        total_comments=total_comments,
        average_likes=average_likes,
        average_comments=average_comments,
        reviews_with_likes=sum(1 for n in likes if n > 0),
        engagement_score=engagement_score(
            total, total_likes, total_comments, total_photos, responses.response_rate
        ),
        virality_score=virality_score(
            average_likes, average_comments, recommendation.recommendation_rate
        ),
    )


# ===== Read state =====

@dataclass(frozen=True)
class StatusMetrics:
    unread: int = 0
    important: int = 0
    read_percentage: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def status_metrics(reviews: Sequence[CanonicalReview]) -> StatusMetrics:
    total = len(reviews)
    unread = sum(1 for r in reviews if not r.is_read)
    return StatusMetrics(
        unread=unread,
        important=sum(1 for r in reviews if r.is_important),
        read_percentage=_percent(total - unread, total),
    )


# ===== Sub-ratings =====

def sub_rating_averages(
    reviews: Sequence[CanonicalReview],
    fields: Sequence[str],
) -> Dict[str, Optional[float]]:
    """
    Average each sub-rating over the reviews that carry it.

    Denominators are independent per field: a review without "wifi" does
    not pull the wifi average down.
    """
    sums = {name: 0.0 for name in fields}
    counts = {name: 0 for name in fields}
    for review in reviews:
        sub_ratings = review.extra("sub_ratings") or {}
        for name in fields:
            value = sub_ratings.get(name)
            if value is not None:
                sums[name] += value
                counts[name] += 1
    return {
        name: (sums[name] / counts[name] if counts[name] else None)
        for name in fields
    }


# ===== TripAdvisor =====

TRIP_TYPES = ("family", "couples", "solo", "business", "friends")

# substring -> trip type, checked in order
_TRIP_TYPE_MATCHERS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("family", "families"), "family"),
    (("couple",), "couples"),
    (("solo", "alone"), "solo"),
    (("business",), "business"),
    (("friend",), "friends"),
)


def trip_type_distribution(reviews: Sequence[CanonicalReview]) -> Dict[str, int]:
    """Count TripAdvisor trip types (FAMILY, COUPLES, SOLO, BUSINESS, FRIENDS)."""
    counts = {trip_type: 0 for trip_type in TRIP_TYPES}
    for review in reviews:
        trip_type = (review.extra("trip_type") or "").lower()
        if not trip_type:
            continue
        for needles, bucket in _TRIP_TYPE_MATCHERS:
            if any(needle in trip_type for needle in needles):
                counts[bucket] += 1
                break
    return counts


def helpful_votes_metrics(reviews: Sequence[CanonicalReview]) -> Dict[str, float]:
    total = len(reviews)
    votes = sum(int(r.extra("helpful_votes", 0) or 0) for r in reviews)
    return {
        "total_helpful_votes": votes,
        "average_helpful_votes": votes / total if total else 0.0,
    }


def count_room_tips(reviews: Sequence[CanonicalReview]) -> int:
    return sum(1 for r in reviews if (r.extra("room_tip") or "").strip())


# ===== Booking =====

GUEST_TYPES = (
    "solo",
    "couple",
    "family_with_young_children",
    "family_with_older_children",
    "group_of_friends",
    "business",
)

_GUEST_TYPE_ALIASES = {
    "SOLO": "solo",
    "SOLO_TRAVELER": "solo",
    "COUPLE": "couple",
    "COUPLES": "couple",
    "FAMILY_WITH_YOUNG_CHILDREN": "family_with_young_children",
    "FAMILY_YOUNG": "family_with_young_children",
    "FAMILY_WITH_OLDER_CHILDREN": "family_with_older_children",
    "FAMILY_OLDER": "family_with_older_children",
    "GROUP_OF_FRIENDS": "group_of_friends",
    "GROUP": "group_of_friends",
    "FRIENDS": "group_of_friends",
    "BUSINESS": "business",
    "BUSINESS_TRAVELER": "business",
}


def guest_type_distribution(reviews: Sequence[CanonicalReview]) -> Dict[str, int]:
    """Count Booking guest types; unknown or missing types are not counted."""
    counts = {guest_type: 0 for guest_type in GUEST_TYPES}
    for review in reviews:
        raw = (review.extra("guest_type") or "").strip().upper().replace(" ", "_").replace("-", "_")
        bucket = _GUEST_TYPE_ALIASES.get(raw)
        if bucket:
            counts[bucket] += 1
    return counts


@dataclass(frozen=True)
class StayLengthMetrics:
    average_length_of_stay: Optional[float] = None
    short_stays: int = 0
    medium_stays: int = 0
    long_stays: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def stay_length_metrics(reviews: Sequence[CanonicalReview]) -> StayLengthMetrics:
    """Short < 3 nights, medium 3-7 nights, long > 7 nights."""
    nights = [r.extra("length_of_stay") for r in reviews if r.extra("length_of_stay") is not None]
    if not nights:
        return StayLengthMetrics()
    return StayLengthMetrics(
        average_length_of_stay=_mean(nights),
        short_stays=sum(1 for n in nights if n < SHORT_STAY_MAX),
        medium_stays=sum(1 for n in nights if SHORT_STAY_MAX <= n <= LONG_STAY_MIN),
        long_stays=sum(1 for n in nights if n > LONG_STAY_MIN),
    )


def top_values(reviews: Sequence[CanonicalReview], extra_field: str, limit: int = 10) -> List[str]:
    """Most frequent values of a string extension field, ties in first-seen order."""
    counts = Counter()
    for review in reviews:
        value = review.extra(extra_field)
        if value and str(value).strip():
            counts[str(value).strip()] += 1
    return [value for value, _ in counts.most_common(limit)]


# ===== Facebook =====

@dataclass(frozen=True)
class RecommendationMetrics:
    total_reviews: int = 0
    recommended_count: int = 0
    not_recommended_count: int = 0
    recommendation_rate: float = 0.0

    @property
    def star_equivalent(self) -> Optional[float]:
        if self.total_reviews == 0:
            return None
        return recommendation_rate_to_star_equivalent(self.recommendation_rate)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["star_equivalent"] = self.star_equivalent
        return data


def recommendation_metrics(reviews: Sequence[CanonicalReview]) -> RecommendationMetrics:
    """Recommendation split over the Facebook reviews in the input."""
    facebook = [r for r in reviews if r.platform is Platform.FACEBOOK]
    total = len(facebook)
    if total == 0:
        return RecommendationMetrics()
    recommended = sum(1 for r in facebook if r.extra("is_recommended"))
    return RecommendationMetrics(
        total_reviews=total,
        recommended_count=recommended,
        not_recommended_count=total - recommended,
        recommendation_rate=recommended / total * 100,
    )


def recommendation_rate_to_star_equivalent(recommendation_rate: float) -> float:
    """Linear 0% -> 1 star, 100% -> 5 stars. Display only."""
    return 1 + (recommendation_rate / 100) * 4


@dataclass(frozen=True)
class TagFrequency:
    tag: str
    count: int
    recommendation_rate: float
    average_sentiment: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class _TagStats:
    count: int = 0
    recommended: int = 0
    sentiments: List[float] = field(default_factory=list)


def tag_frequency(reviews: Sequence[CanonicalReview], limit: int = 20) -> List[TagFrequency]:
    """Facebook tag counts with per-tag recommendation rate and mean sentiment."""
    stats: Dict[str, _TagStats] = {}
    for review in reviews:
        for tag in review.extra("tags") or ():
            normalized = tag.strip().lower()
            if not normalized:
                continue
            entry = stats.setdefault(normalized, _TagStats())
            entry.count += 1
            if review.extra("is_recommended"):
                entry.recommended += 1
            if review.sentiment is not None:
                entry.sentiments.append(review.sentiment)

    ranked = sorted(stats.items(), key=lambda item: item[1].count, reverse=True)
    return [
        TagFrequency(
            tag=tag,
            count=entry.count,
            recommendation_rate=entry.recommended / entry.count * 100,
            average_sentiment=_mean(entry.sentiments),
        )
        for tag, entry in ranked[:limit]
    ]
