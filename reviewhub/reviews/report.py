"""
Aggregate report - one immutable snapshot over a caller-supplied review set.

Reports are rebuilt from scratch on every call; nothing here is cached or
updated incrementally.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from reviewhub.lib.settings import settings
from reviewhub.reviews import calculators, keywords as keyword_ops
from reviewhub.reviews.adapters import to_utc
from reviewhub.reviews.calculators import (
    BOOKING_SUB_RATINGS,
    TRIPADVISOR_SUB_RATINGS,
    ContentMetrics,
    EngagementMetrics,
    ResponseMetrics,
    SentimentBasis,
    SentimentDistribution,
    StatusMetrics,
)
from reviewhub.reviews.canonical import (
    PLATFORM_SCALES,
    CanonicalReview,
    Platform,
    RatingScale,
)
from reviewhub.reviews.keywords import KeywordCount


@dataclass(frozen=True)
class KeywordSummary:
    top: Tuple[KeywordCount, ...] = ()
    total_unique: int = 0
    source: str = "tagged"  # "tagged" or "text"

    def to_dict(self) -> dict:
        return {
            "top": [k.to_dict() for k in self.top],
            "total_unique": self.total_unique,
            "source": self.source,
        }


@dataclass(frozen=True)
class AggregateReport:
    total_reviews: int
    rating_scale: str
    rating_distribution: Dict[int, int]
    rating_percentages: Dict[int, float]
    average_rating: Optional[float]
    sentiment: SentimentDistribution
    responses: ResponseMetrics
    content: ContentMetrics
    engagement: EngagementMetrics
    keywords: KeywordSummary
    status: StatusMetrics
    platform_breakdowns: Dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_reviews": self.total_reviews,
            "rating_scale": self.rating_scale,
            "rating_distribution": {str(k): v for k, v in self.rating_distribution.items()},
            "rating_percentages": {str(k): v for k, v in self.rating_percentages.items()},
            "average_rating": self.average_rating,
            "sentiment": self.sentiment.to_dict(),
            "responses": self.responses.to_dict(),
            "content": self.content.to_dict(),
            "engagement": self.engagement.to_dict(),
            "keywords": self.keywords.to_dict(),
            "status": self.status.to_dict(),
            "platform_breakdowns": self.platform_breakdowns,
        }


def _single_platform(reviews: Sequence[CanonicalReview]) -> Optional[Platform]:
    platforms = {r.platform for r in reviews}
    if len(platforms) == 1:
        return next(iter(platforms))
    return None


def report_average_rating(
    reviews: Sequence[CanonicalReview],
    platform: Optional[Platform] = None,
) -> Tuple[Optional[float], RatingScale]:
    """
    Average rating and the scale it is expressed on.

    A single-platform set averages native ratings (Booking stays on 1-10).
    A mixed set averages the normalized 1-5 projection and leaves Facebook
    out, since its 5/1 recommendation mapping is not a star rating.
    """
    platform = platform or _single_platform(reviews)
    if platform is not None:
        ratings = [r.rating for r in reviews if r.platform is platform]
        return calculators.average_rating(ratings), PLATFORM_SCALES[platform]
    ratings = [r.normalized_rating for r in reviews if r.platform is not Platform.FACEBOOK]
    return calculators.average_rating(ratings), RatingScale.FIVE_STAR


def keyword_summary(reviews: Sequence[CanonicalReview], limit: int) -> KeywordSummary:
    """Pre-tagged keywords when any review has them, otherwise mined from text."""
    tagged = [r.keywords for r in reviews]
    if any(tagged):
        return KeywordSummary(
            top=tuple(keyword_ops.top_keywords(tagged, limit)),
            total_unique=keyword_ops.unique_keyword_count(tagged),
            source="tagged",
        )
    texts = [r.text for r in reviews if r.has_text]
    mined = keyword_ops.extract_text_keywords(texts, limit)
    unique = {token for text in texts for token in keyword_ops.tokenize(text)}
    return KeywordSummary(top=tuple(mined), total_unique=len(unique), source="text")


def _tripadvisor_breakdown(reviews: Sequence[CanonicalReview]) -> dict:
    return {
        "trip_types": calculators.trip_type_distribution(reviews),
        "sub_ratings": calculators.sub_rating_averages(reviews, TRIPADVISOR_SUB_RATINGS),
        "room_tips": calculators.count_room_tips(reviews),
        **calculators.helpful_votes_metrics(reviews),
    }


def _booking_breakdown(reviews: Sequence[CanonicalReview]) -> dict:
    return {
        "guest_types": calculators.guest_type_distribution(reviews),
        "sub_ratings": calculators.sub_rating_averages(reviews, BOOKING_SUB_RATINGS),
        "stay_length": calculators.stay_length_metrics(reviews).to_dict(),
        "top_nationalities": calculators.top_values(reviews, "nationality"),
        "popular_room_types": calculators.top_values(reviews, "room_type"),
    }


def _facebook_breakdown(reviews: Sequence[CanonicalReview]) -> dict:
    return {
        "recommendation": calculators.recommendation_metrics(reviews).to_dict(),
        "top_tags": [t.to_dict() for t in calculators.tag_frequency(reviews)],
    }


def _google_breakdown(reviews: Sequence[CanonicalReview]) -> dict:
    return {
        "local_guides": sum(1 for r in reviews if r.extra("is_local_guide")),
    }


_BREAKDOWNS = {
    Platform.GOOGLE: _google_breakdown,
    Platform.FACEBOOK: _facebook_breakdown,
    Platform.TRIPADVISOR: _tripadvisor_breakdown,
    Platform.BOOKING: _booking_breakdown,
}


def platform_breakdowns(reviews: Sequence[CanonicalReview]) -> Dict[str, dict]:
    """Platform-specific metrics for every platform present in the input."""
    breakdowns = {}
    for platform, build in _BREAKDOWNS.items():
        subset = [r for r in reviews if r.platform is platform]
        if subset:
            breakdowns[platform.value] = build(subset)
    return breakdowns


def build_report(
    reviews: Sequence[CanonicalReview],
    platform: Optional[Platform] = None,
    basis: SentimentBasis = SentimentBasis.SCORE,
    detailed: bool = False,
) -> AggregateReport:
    """
    Compute the full aggregate report over `reviews`.

    Args:
        reviews: Review set (never mutated)
        platform: Report scope; inferred when every review shares a platform
        basis: Sentiment basis used for every review in the report
        detailed: Return the longer keyword list
    """
    reviews = list(reviews)
    keyword_limit = settings.keyword_limit_detailed if detailed else settings.keyword_limit
    distribution = calculators.rating_distribution(r.rating_bucket for r in reviews)
    average, scale = report_average_rating(reviews, platform)

    return AggregateReport(
        total_reviews=len(reviews),
        rating_scale=scale.value[0],
        rating_distribution=distribution,
        rating_percentages=calculators.rating_percentages(distribution),
        average_rating=average,
        sentiment=calculators.sentiment_distribution(reviews, basis),
        responses=calculators.response_metrics(reviews),
        content=calculators.content_metrics(reviews),
        engagement=calculators.engagement_metrics(reviews),
        keywords=keyword_summary(reviews, keyword_limit),
        status=calculators.status_metrics(reviews),
        platform_breakdowns=platform_breakdowns(reviews),
    )


# ===== Rolling periods =====

# (name, days back from as_of; None = all time)
PERIOD_DEFINITIONS: Tuple[Tuple[str, Optional[int]], ...] = (
    ("last_1_day", 1),
    ("last_3_days", 3),
    ("last_7_days", 7),
    ("last_30_days", 30),
    ("last_180_days", 180),
    ("last_365_days", 365),
    ("all_time", None),
)


@dataclass(frozen=True)
class PeriodSummary:
    period: str
    days: Optional[int]
    review_count: int
    average_rating: Optional[float]
    response_rate: float
    positive: int
    neutral: int
    negative: int

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "days": self.days,
            "review_count": self.review_count,
            "average_rating": self.average_rating,
            "response_rate": self.response_rate,
            "sentiment": {
                "positive": self.positive,
                "neutral": self.neutral,
                "negative": self.negative,
            },
        }


def period_summaries(
    reviews: Sequence[CanonicalReview],
    as_of: datetime,
    platform: Optional[Platform] = None,
    basis: SentimentBasis = SentimentBasis.SCORE,
) -> List[PeriodSummary]:
    """
    Summaries for the trailing windows in PERIOD_DEFINITIONS.

    A window of N days covers (as_of - N days, as_of]. Reviews without a
    publish date only count toward "all_time". A naive `as_of` is taken as UTC.
    """
    as_of = to_utc(as_of)
    summaries = []
    for name, days in PERIOD_DEFINITIONS:
        if days is None:
            window = list(reviews)
        else:
            start = as_of - timedelta(days=days)
            window = [
                r for r in reviews
                if r.published_at is not None and start < r.published_at <= as_of
            ]
        average, _ = report_average_rating(window, platform)
        sentiment = calculators.sentiment_distribution(window, basis)
        summaries.append(PeriodSummary(
            period=name,
            days=days,
            review_count=len(window),
            average_rating=average,
            response_rate=calculators.response_metrics(window).response_rate,
            positive=sentiment.positive,
            neutral=sentiment.neutral,
            negative=sentiment.negative,
        ))
    return summaries
