"""
SqlReviewStore - ReviewStore on the SQLAlchemy async ORM.

Translates a ReviewQueryFilter into a per-platform SELECT. Column names and
rating scales differ per platform; 1-5 rating buckets go through
native_rating_criteria so the SQL agrees with the canonical projection.
Each call opens its own AsyncSession, so concurrent platform queries never
share one.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from sqlalchemy import and_, false, func, not_, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from reviewhub.lib.db import get_session
from reviewhub.lib.logging import get_logger
from reviewhub.models import (
    BookingReview,
    BusinessProfile,
    FacebookReview,
    GoogleReview,
    ReviewMetadata,
    TripAdvisorReview,
)
from reviewhub.reviews.adapters import native_rating_criteria
from reviewhub.reviews.calculators import NEGATIVE_SCORE_THRESHOLD, POSITIVE_SCORE_THRESHOLD
from reviewhub.reviews.canonical import Platform, SentimentLabel
from reviewhub.reviews.filters import ReviewQueryFilter, SortOrder
from reviewhub.reviews.raw import RawReviewRow
from reviewhub.reviews.store import BusinessProfileRecord, ReviewStore


logger = get_logger(__name__)


@dataclass(frozen=True)
class PlatformColumns:
    """Where each filterable field lives on one platform's table."""
    model: Type
    published: ColumnElement
    rating: Optional[ColumnElement]
    search: Tuple[ColumnElement, ...]
    owner_response_flag: Optional[ColumnElement] = None


PLATFORM_COLUMNS: Dict[Platform, PlatformColumns] = {
    Platform.GOOGLE: PlatformColumns(
        model=GoogleReview,
        published=GoogleReview.published_at_date,
        rating=GoogleReview.stars,
        search=(GoogleReview.text, GoogleReview.name),
    ),
    Platform.FACEBOOK: PlatformColumns(
        model=FacebookReview,
        published=FacebookReview.date,
        rating=None,
        search=(FacebookReview.text, FacebookReview.user_name),
    ),
    Platform.TRIPADVISOR: PlatformColumns(
        model=TripAdvisorReview,
        published=TripAdvisorReview.published_date,
        rating=TripAdvisorReview.rating,
        search=(TripAdvisorReview.text, TripAdvisorReview.reviewer_name),
        owner_response_flag=TripAdvisorReview.has_owner_response,
    ),
    Platform.BOOKING: PlatformColumns(
        model=BookingReview,
        published=BookingReview.published_date,
        rating=BookingReview.rating,
        search=(
            BookingReview.text,
            BookingReview.liked_text,
            BookingReview.disliked_text,
            BookingReview.reviewer_name,
        ),
        owner_response_flag=BookingReview.has_owner_response,
    ),
}


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _non_empty(column: ColumnElement) -> ColumnElement:
    return and_(column.isnot(None), column != "")


def rating_condition(platform: Platform, buckets: Tuple[int, ...]) -> ColumnElement:
    """SQL condition selecting native ratings that fall in the 1-5 buckets."""
    criteria = native_rating_criteria(platform, buckets)
    if criteria.matches_nothing:
        return false()

    if criteria.recommended is not None:
        column = FacebookReview.is_recommended
        conditions = [column == value for value in sorted(criteria.recommended)]
        if False in criteria.recommended:
            # a missing recommendation reads as "not recommended"
            conditions.append(column.is_(None))
        return or_(*conditions)

    column = PLATFORM_COLUMNS[platform].rating
    conditions = []
    for low, high in criteria.ranges:
        bounds = []
        if low is not None:
            bounds.append(column >= low)
        if high is not None:
            bounds.append(column < high)
        if low is None:
            # a missing rating is clamped into the lowest bucket
            conditions.append(or_(column.is_(None), and_(*bounds) if bounds else true()))
        else:
            conditions.append(and_(*bounds) if bounds else true())
    return or_(*conditions)


def sentiment_condition(label: SentimentLabel) -> ColumnElement:
    score = ReviewMetadata.sentiment
    if label is SentimentLabel.POSITIVE:
        return score >= POSITIVE_SCORE_THRESHOLD
    if label is SentimentLabel.NEUTRAL:
        return and_(score >= NEGATIVE_SCORE_THRESHOLD, score < POSITIVE_SCORE_THRESHOLD)
    return score < NEGATIVE_SCORE_THRESHOLD


def response_condition(columns: PlatformColumns) -> ColumnElement:
    """A review counts as replied when either reply text or the owner-response flag is set."""
    conditions = [
        _non_empty(columns.model.response_from_owner_text),
        _non_empty(ReviewMetadata.reply),
    ]
    if columns.owner_response_flag is not None:
        conditions.append(columns.owner_response_flag == True)  # noqa: E712
    return or_(*conditions)


class SqlReviewStore(ReviewStore):
    """
    Review store for one team.

    Usage:
        store = SqlReviewStore(create_session_factory(engine), team_id="team-1")
        rows = await store.query(Platform.BOOKING, ReviewQueryFilter(rating_in=[5]))
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], team_id: str):
        self.session_factory = session_factory
        self.team_id = team_id

    def build_statement(self, platform: Platform, filter: ReviewQueryFilter):
        """Translate `filter` into a SELECT over the platform's table."""
        platform = Platform(platform)
        columns = PLATFORM_COLUMNS[platform]
        model = columns.model

        stmt = (
            select(model)
            .outerjoin(ReviewMetadata, model.review_metadata_id == ReviewMetadata.id)
            .where(model.team_id == self.team_id)
        )

        if filter.rating_in is not None:
            stmt = stmt.where(rating_condition(platform, filter.rating_in))

        if filter.sentiment is not None:
            stmt = stmt.where(sentiment_condition(filter.sentiment))

        if filter.text_contains is not None:
            pattern = _like_pattern(filter.text_contains)
            stmt = stmt.where(or_(*(c.ilike(pattern, escape="\\") for c in columns.search)))

        if filter.date_range is not None:
            if filter.date_range.start is not None:
                stmt = stmt.where(columns.published >= filter.date_range.start)
            if filter.date_range.end is not None:
                stmt = stmt.where(columns.published <= filter.date_range.end)

        # No metadata row means unread and not important
        if filter.is_read is not None:
            stmt = stmt.where(func.coalesce(ReviewMetadata.is_read, false()) == filter.is_read)
        if filter.is_important is not None:
            stmt = stmt.where(func.coalesce(ReviewMetadata.is_important, false()) == filter.is_important)

        if filter.has_response is not None:
            replied = response_condition(columns)
            stmt = stmt.where(replied if filter.has_response else not_(replied))

        published = columns.published
        if filter.sort_order is SortOrder.ASC:
            stmt = stmt.order_by(published.asc(), model.id.asc())
        else:
            stmt = stmt.order_by(published.desc(), model.id.asc())

        if filter.offset:
            stmt = stmt.offset(filter.offset)
        if filter.limit is not None:
            stmt = stmt.limit(filter.limit)
        return stmt

    async def query(self, platform: Platform, filter: ReviewQueryFilter) -> List[RawReviewRow]:
        stmt = self.build_statement(platform, filter)
        async with get_session(self.session_factory) as session:
            result = await session.execute(stmt)
            # metadata is selectin-loaded, so rows convert without further I/O
            return [model.to_row() for model in result.scalars().unique().all()]

    async def get_business_profile(self, platform: Platform) -> Optional[BusinessProfileRecord]:
        stmt = select(BusinessProfile).where(
            BusinessProfile.team_id == self.team_id,
            BusinessProfile.platform == Platform(platform).value,
        )
        async with get_session(self.session_factory) as session:
            result = await session.execute(stmt)
            profile = result.scalar_one_or_none()
            return profile.to_record() if profile else None

    async def update_review_metadata(
        self,
        platform: Platform,
        review_id: str,
        *,
        is_read: Optional[bool] = None,
        is_important: Optional[bool] = None,
    ) -> bool:
        model = PLATFORM_COLUMNS[Platform(platform)].model
        stmt = select(model).where(model.id == review_id, model.team_id == self.team_id)

        async with get_session(self.session_factory) as session:
            result = await session.execute(stmt)
            review = result.scalar_one_or_none()
            if review is None:
                logger.warning(f"Review {review_id} not found on {Platform(platform).value}")
                return False

            metadata = review.review_metadata
            if metadata is None:
                metadata = ReviewMetadata(is_read=False, is_important=False, keywords=[])
                session.add(metadata)
                review.review_metadata = metadata
            if is_read is not None:
                metadata.is_read = is_read
            if is_important is not None:
                metadata.is_important = is_important
            return True
