"""
Trend bucketer - gap-filled, chronologically ordered review series.

Every variant shares one skeleton:
1. create one empty bucket per period from start to end inclusive
2. truncate each review's published_at to its UTC date and assign it to the
   period containing that date
3. build each bucket's payload from the reviews assigned to it
4. emit buckets in ascending date order

Reviews without published_at cannot be placed; they are counted in
`dropped`. Reviews dated outside the range are counted in `out_of_range`.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from reviewhub.lib.errors import SourceError
from reviewhub.lib.logging import get_logger
from reviewhub.lib.metrics import get_metrics_collector
from reviewhub.reviews.calculators import SentimentBasis, classify_review
from reviewhub.reviews.canonical import CanonicalReview, Platform, SentimentLabel


logger = get_logger(__name__)

DateLike = Union[date, datetime]


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"  # ISO week, starting Monday
    MONTH = "month"


def utc_date(value: DateLike) -> date:
    """Calendar date in UTC; naive datetimes are taken to be UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def period_start(day: date, granularity: Granularity) -> date:
    if granularity is Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    if granularity is Granularity.MONTH:
        return day.replace(day=1)
    return day


def next_period(start: date, granularity: Granularity) -> date:
    if granularity is Granularity.WEEK:
        return start + timedelta(days=7)
    if granularity is Granularity.MONTH:
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)
    return start + timedelta(days=1)


def period_starts(start: date, end: date, granularity: Granularity) -> List[date]:
    """Every period start from the period containing `start` to the one containing `end`."""
    current = period_start(start, granularity)
    last = period_start(end, granularity)
    starts = []
    while current <= last:
        starts.append(current)
        current = next_period(current, granularity)
    return starts


# ===== Buckets =====

@dataclass(frozen=True)
class TrendBucket:
    """Rating payload: count, average rating and a three-way sentiment split."""
    period_start: date
    count: int = 0
    average_rating: Optional[float] = None
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    def to_dict(self) -> dict:
        return {
            "date": self.period_start.isoformat(),
            "count": self.count,
            "average_rating": self.average_rating,
            "sentiment": {
                "positive": self.positive,
                "neutral": self.neutral,
                "negative": self.negative,
            },
        }


@dataclass(frozen=True)
class RecommendationBucket:
    """Facebook payload: recommended / not recommended instead of ratings."""
    period_start: date
    count: int = 0
    recommended: int = 0
    not_recommended: int = 0

    @property
    def recommendation_rate(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.recommended / self.count * 100

    def to_dict(self) -> dict:
        return {
            "date": self.period_start.isoformat(),
            "count": self.count,
            "recommended": self.recommended,
            "not_recommended": self.not_recommended,
            "recommendation_rate": self.recommendation_rate,
        }


Bucket = Union[TrendBucket, RecommendationBucket]


@dataclass(frozen=True)
class TrendSeries:
    granularity: Granularity
    start_date: date
    end_date: date
    buckets: Tuple[Bucket, ...] = ()
    dropped: int = 0
    out_of_range: int = 0
    source_errors: Tuple[SourceError, ...] = ()

    @property
    def peak(self) -> Optional[Bucket]:
        """First bucket with the highest count."""
        if not self.buckets:
            return None
        return max(self.buckets, key=lambda b: b.count)

    @property
    def lowest(self) -> Optional[Bucket]:
        """First bucket with the lowest count."""
        if not self.buckets:
            return None
        return min(self.buckets, key=lambda b: b.count)

    @property
    def total(self) -> int:
        return sum(b.count for b in self.buckets)

    def to_dict(self) -> dict:
        return {
            "granularity": self.granularity.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "buckets": [b.to_dict() for b in self.buckets],
            "total": self.total,
            "dropped": self.dropped,
            "out_of_range": self.out_of_range,
            "source_errors": [e.to_dict() for e in self.source_errors],
            "peak": self.peak.to_dict() if self.peak else None,
            "lowest": self.lowest.to_dict() if self.lowest else None,
        }


# ===== Skeleton =====

@dataclass(frozen=True)
class _Assignment:
    periods: Dict[date, List[CanonicalReview]]
    dropped: int
    out_of_range: int


def _assign(
    reviews: Sequence[CanonicalReview],
    start: date,
    end: date,
    granularity: Granularity,
) -> _Assignment:
    periods = {p: [] for p in period_starts(start, end, granularity)}
    dropped: Dict[Platform, int] = {}
    out_of_range = 0

    for review in reviews:
        if review.published_at is None:
            dropped[review.platform] = dropped.get(review.platform, 0) + 1
            continue
        day = utc_date(review.published_at)
        if day < start or day > end:
            out_of_range += 1
            continue
        periods[period_start(day, granularity)].append(review)

    if dropped:
        metrics = get_metrics_collector()
        for platform, count in dropped.items():
            metrics.increment_dropped(platform.value, amount=count)
        logger.warning(
            "Dropped reviews without published_at from trend",
            extra={"dropped": {p.value: n for p, n in dropped.items()}},
        )

    return _Assignment(
        periods=periods,
        dropped=sum(dropped.values()),
        out_of_range=out_of_range,
    )


def _series(
    reviews: Sequence[CanonicalReview],
    start_date: DateLike,
    end_date: DateLike,
    granularity: Union[Granularity, str],
    build_bucket: Callable[[date, List[CanonicalReview]], Bucket],
) -> TrendSeries:
    granularity = Granularity(granularity)
    start, end = utc_date(start_date), utc_date(end_date)
    if end < start:
        logger.warning(
            "Trend range is inverted, returning empty series",
            extra={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
        return TrendSeries(granularity=granularity, start_date=start, end_date=end)

    assignment = _assign(reviews, start, end, granularity)
    buckets = tuple(
        build_bucket(period, assignment.periods[period])
        for period in sorted(assignment.periods)
    )
    return TrendSeries(
        granularity=granularity,
        start_date=start,
        end_date=end,
        buckets=buckets,
        dropped=assignment.dropped,
        out_of_range=assignment.out_of_range,
    )


# ===== Rating variant =====

def _rating_value(reviews: Sequence[CanonicalReview]) -> Callable[[CanonicalReview], Optional[float]]:
    """
    Pick the rating used for bucket averages, once per series.

    Single-platform series average native ratings. Mixed series average the
    1-5 projection and leave Facebook out of the average (it still counts).
    """
    platforms = {r.platform for r in reviews}
    if len(platforms) <= 1:
        return lambda review: review.rating
    return lambda review: None if review.platform is Platform.FACEBOOK else review.normalized_rating


def bucket_by_period(
    reviews: Sequence[CanonicalReview],
    start_date: DateLike,
    end_date: DateLike,
    granularity: Union[Granularity, str] = Granularity.DAY,
    basis: SentimentBasis = SentimentBasis.RATING,
) -> TrendSeries:
    """
    Gap-filled rating trend.

    Args:
        reviews: Canonical reviews (never mutated)
        start_date: First day, inclusive
        end_date: Last day, inclusive
        granularity: day, week or month
        basis: Sentiment basis applied to every review in the series

    Raises:
        ValueError: Unknown granularity
    """
    rating_of = _rating_value(reviews)

    def build(period: date, assigned: List[CanonicalReview]) -> TrendBucket:
        ratings = [v for v in (rating_of(r) for r in assigned) if v is not None]
        labels = [classify_review(r, basis) for r in assigned]
        return TrendBucket(
            period_start=period,
            count=len(assigned),
            average_rating=sum(ratings) / len(ratings) if ratings else None,
            positive=labels.count(SentimentLabel.POSITIVE),
            neutral=labels.count(SentimentLabel.NEUTRAL),
            negative=labels.count(SentimentLabel.NEGATIVE),
        )

    return _series(reviews, start_date, end_date, granularity, build)


def bucket_by_day(
    reviews: Sequence[CanonicalReview],
    start_date: DateLike,
    end_date: DateLike,
    basis: SentimentBasis = SentimentBasis.RATING,
) -> TrendSeries:
    """One bucket per calendar day from start_date to end_date inclusive."""
    return bucket_by_period(reviews, start_date, end_date, Granularity.DAY, basis)


# ===== Recommendation variant =====

def _build_recommendation_bucket(period: date, assigned: List[CanonicalReview]) -> RecommendationBucket:
    recommended = sum(1 for r in assigned if r.extra("is_recommended"))
    return RecommendationBucket(
        period_start=period,
        count=len(assigned),
        recommended=recommended,
        not_recommended=len(assigned) - recommended,
    )


def bucket_recommendations_by_period(
    reviews: Sequence[CanonicalReview],
    start_date: DateLike,
    end_date: DateLike,
    granularity: Union[Granularity, str] = Granularity.DAY,
) -> TrendSeries:
    """Recommendation trend; only Facebook reviews carry a recommendation."""
    facebook = [r for r in reviews if r.platform is Platform.FACEBOOK]
    return _series(facebook, start_date, end_date, granularity, _build_recommendation_bucket)


def bucket_recommendations_by_day(
    reviews: Sequence[CanonicalReview],
    start_date: DateLike,
    end_date: DateLike,
) -> TrendSeries:
    return bucket_recommendations_by_period(reviews, start_date, end_date, Granularity.DAY)
