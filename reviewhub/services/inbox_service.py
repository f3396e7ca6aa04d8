"""
UnifiedInboxService - merged, paginated review list across platforms.

Order of work for one call:
1. translate InboxFilters into one immutable ReviewQueryFilter
2. fetch every enabled platform concurrently (failures become SourceErrors)
3. normalize rows into CanonicalReview
4. sort the concatenated list with a fixed tie-break
5. compute stats over the whole sorted list
6. slice out the requested page
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from reviewhub.lib.errors import SourceError
from reviewhub.lib.logging import correlation_scope, get_logger
from reviewhub.reviews.calculators import SentimentBasis
from reviewhub.reviews.canonical import ALL_PLATFORMS, CanonicalReview
from reviewhub.reviews.filters import InboxFilters, Pagination, SortKey, SortOrder
from reviewhub.reviews.report import AggregateReport, build_report
from reviewhub.reviews.store import ReviewStore
from reviewhub.services.fetcher import fetch_platforms


logger = get_logger(__name__)


@dataclass(frozen=True)
class PaginationInfo:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }


@dataclass(frozen=True)
class InboxStats:
    """Counts over the full filtered list, not the current page."""
    total: int
    unread: int
    important: int
    with_reply: int
    by_platform: Dict[str, int]
    report: AggregateReport

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "unread": self.unread,
            "important": self.important,
            "with_reply": self.with_reply,
            "by_platform": dict(self.by_platform),
            "report": self.report.to_dict(),
        }


@dataclass(frozen=True)
class UnifiedInboxResult:
    reviews: Tuple[CanonicalReview, ...]
    stats: InboxStats
    pagination: PaginationInfo
    source_errors: Tuple[SourceError, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.source_errors)

    def to_dict(self) -> dict:
        return {
            "reviews": [r.to_dict() for r in self.reviews],
            "stats": self.stats.to_dict(),
            "pagination": self.pagination.to_dict(),
            "source_errors": [e.to_dict() for e in self.source_errors],
        }


_SORT_KEYS: Dict[SortKey, Callable[[CanonicalReview], object]] = {
    SortKey.DATE: lambda r: r.published_at,
    SortKey.RATING: lambda r: r.normalized_rating,
    SortKey.SENTIMENT: lambda r: r.sentiment if r.sentiment is not None else 0.0,
    SortKey.PLATFORM: lambda r: r.platform.value,
}


def sort_reviews(
    reviews: Sequence[CanonicalReview],
    sort_by: SortKey = SortKey.DATE,
    sort_order: SortOrder = SortOrder.DESC,
) -> List[CanonicalReview]:
    """
    Sort reviews for the inbox.

    Ties always fall back to platform name ascending, then id ascending,
    whatever the direction. Reviews without a publish date go last when
    sorting by date.
    """
    key = _SORT_KEYS[SortKey(sort_by)]
    # Stable sorts: the tie-break order survives the primary sort, reversed or not
    ordered = sorted(reviews, key=lambda r: (r.platform.value, r.id))
    keyed = [r for r in ordered if key(r) is not None]
    missing = [r for r in ordered if key(r) is None]
    keyed.sort(key=key, reverse=SortOrder(sort_order) is SortOrder.DESC)
    return keyed + missing


def inbox_stats(reviews: Sequence[CanonicalReview], basis: SentimentBasis) -> InboxStats:
    by_platform = {platform.value: 0 for platform in ALL_PLATFORMS}
    for review in reviews:
        by_platform[review.platform.value] += 1
    return InboxStats(
        total=len(reviews),
        unread=sum(1 for r in reviews if not r.is_read),
        important=sum(1 for r in reviews if r.is_important),
        with_reply=sum(1 for r in reviews if r.has_reply),
        by_platform=by_platform,
        report=build_report(reviews, basis=basis),
    )


class UnifiedInboxService:
    """
    Cross-platform inbox over one tenant's review store.
    """

    def __init__(self, store: ReviewStore, basis: SentimentBasis = SentimentBasis.SCORE):
        """
        Args:
            store: Tenant-scoped review store
            basis: Sentiment basis for the inbox report
        """
        self.store = store
        self.basis = basis

    async def get_unified_inbox(
        self,
        filters: Optional[InboxFilters] = None,
        pagination: Optional[Pagination] = None,
        now: Optional[datetime] = None,
    ) -> UnifiedInboxResult:
        """
        Build one page of the unified inbox.

        Args:
            filters: Inbox filters (default: every platform, no filtering)
            pagination: Page and limit (default: first page)
            now: Reference time for date presets (default: current UTC time)

        Returns:
            UnifiedInboxResult; failed platforms are listed in source_errors
        """
        filters = filters or InboxFilters()
        pagination = pagination or Pagination()
        query_filter = filters.to_query_filter(now or datetime.now(timezone.utc))

        with correlation_scope():
            fetched = await fetch_platforms(self.store, filters.platforms, query_filter)
            ordered = sort_reviews(fetched.reviews, filters.sort_by, filters.sort_order)
            stats = inbox_stats(ordered, self.basis)
            page = ordered[pagination.offset:pagination.offset + pagination.limit]

            logger.info(
                f"Unified inbox: {len(ordered)} reviews from {len(filters.platforms)} platforms, "
                f"page {pagination.page} has {len(page)}",
                extra={"failed_platforms": [p.value for p in fetched.failed_platforms]},
            )

        return UnifiedInboxResult(
            reviews=tuple(page),
            stats=stats,
            pagination=PaginationInfo(page=pagination.page, limit=pagination.limit, total=len(ordered)),
            source_errors=fetched.source_errors,
        )
