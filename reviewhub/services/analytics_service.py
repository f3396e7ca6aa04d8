"""
ReviewAnalyticsService - per-platform analytics, trends and review status.

Every call reloads reviews from the store and recomputes from scratch.
"""
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Union

from reviewhub.lib.errors import NotFoundException, ValidationException
from reviewhub.lib.logging import correlation_scope, get_logger
from reviewhub.reviews.calculators import SentimentBasis
from reviewhub.reviews.canonical import ALL_PLATFORMS, Platform
from reviewhub.reviews.filters import DateRange, ReviewQueryFilter
from reviewhub.reviews.report import AggregateReport, PeriodSummary, build_report, period_summaries
from reviewhub.reviews.store import BusinessProfileRecord, ReviewStore
from reviewhub.reviews.trends import (
    Granularity,
    TrendSeries,
    bucket_by_period,
    bucket_recommendations_by_period,
)
from reviewhub.services.fetcher import fetch_platform, fetch_platforms


logger = get_logger(__name__)


class ReviewAnalyticsService:
    """
    Analytics over one tenant's review store.

    Sentiment in reports is classified from the NLP score; trend buckets
    classify from the rating, since every review has one.
    """

    def __init__(
        self,
        store: ReviewStore,
        report_basis: SentimentBasis = SentimentBasis.SCORE,
        trend_basis: SentimentBasis = SentimentBasis.RATING,
    ):
        self.store = store
        self.report_basis = report_basis
        self.trend_basis = trend_basis

    async def require_business_profile(self, platform: Platform) -> BusinessProfileRecord:
        """
        Raises:
            NotFoundException: The tenant has no profile on this platform
        """
        profile = await self.store.get_business_profile(platform)
        if profile is None:
            raise NotFoundException("Business profile", platform.value)
        return profile

    async def get_analytics(
        self,
        platform: Union[Platform, str],
        date_range: Optional[DateRange] = None,
        detailed: bool = False,
    ) -> AggregateReport:
        """
        Aggregate report for one platform.

        Args:
            platform: Platform to report on
            date_range: Optional publish-date window
            detailed: Longer keyword list

        Returns:
            AggregateReport; an empty review set gives zero counts and None averages

        Raises:
            NotFoundException: No business profile for the platform
        """
        platform = Platform(platform)
        await self.require_business_profile(platform)

        with correlation_scope():
            reviews = await fetch_platform(self.store, platform, ReviewQueryFilter(date_range=date_range))
            logger.info(f"Building {platform.value} analytics over {len(reviews)} reviews")
        return build_report(reviews, platform=platform, basis=self.report_basis, detailed=detailed)

    async def get_trend(
        self,
        platform: Optional[Union[Platform, str]],
        date_range: DateRange,
        granularity: Union[Granularity, str] = Granularity.DAY,
    ) -> TrendSeries:
        """
        Gap-filled trend for one platform, or every platform when `platform` is None.

        Facebook alone gets the recommendation variant. A unified trend
        survives failing platforms and lists them in source_errors.

        Raises:
            NotFoundException: No business profile for the platform
            ValidationException: Open date range or unknown granularity
        """
        if date_range.start is None or date_range.end is None:
            raise ValidationException(
                "Trend requires both start and end dates",
                errors={"date_range": "start and end are required"},
            )
        try:
            granularity = Granularity(granularity)
        except ValueError:
            raise ValidationException(
                f"Unknown granularity: {granularity}",
                errors={"granularity": [g.value for g in Granularity]},
            )

        # Buckets are whole days, so the fetch must cover the last day to its end
        query_filter = ReviewQueryFilter(date_range=date_range.covering_days())

        if platform is None:
            with correlation_scope():
                fetched = await fetch_platforms(self.store, ALL_PLATFORMS, query_filter)
            series = bucket_by_period(
                fetched.reviews, date_range.start, date_range.end, granularity, self.trend_basis
            )
            return replace(series, source_errors=fetched.source_errors)

        platform = Platform(platform)
        await self.require_business_profile(platform)
        reviews = await fetch_platform(self.store, platform, query_filter)
        if platform is Platform.FACEBOOK:
            return bucket_recommendations_by_period(
                reviews, date_range.start, date_range.end, granularity
            )
        return bucket_by_period(reviews, date_range.start, date_range.end, granularity, self.trend_basis)

    async def get_period_summaries(
        self,
        platform: Union[Platform, str],
        as_of: Optional[datetime] = None,
    ) -> List[PeriodSummary]:
        """Rolling 1/3/7/30/180/365-day and all-time summaries for one platform."""
        platform = Platform(platform)
        await self.require_business_profile(platform)
        reviews = await fetch_platform(self.store, platform, ReviewQueryFilter())
        return period_summaries(
            reviews,
            as_of or datetime.now(timezone.utc),
            platform=platform,
            basis=self.report_basis,
        )

    async def update_review_status(
        self,
        platform: Union[Platform, str],
        review_id: str,
        is_read: Optional[bool] = None,
        is_important: Optional[bool] = None,
    ) -> None:
        """
        Mark a review read/unread or important/not important.

        Writes the review's metadata row; canonical projections are rebuilt
        on the next read.

        Raises:
            ValidationException: Neither flag given
            NotFoundException: No such review
        """
        platform = Platform(platform)
        if is_read is None and is_important is None:
            raise ValidationException(
                "Nothing to update",
                errors={"fields": ["is_read", "is_important"]},
            )
        updated = await self.store.update_review_metadata(
            platform, review_id, is_read=is_read, is_important=is_important
        )
        if not updated:
            raise NotFoundException("Review", review_id)
        logger.info(
            f"Updated {platform.value} review {review_id} status",
            extra={"is_read": is_read, "is_important": is_important},
        )
