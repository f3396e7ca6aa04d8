"""
Concurrent platform fetch shared by the inbox and analytics services.

One task per enabled platform runs under asyncio.gather. A platform that
fails contributes no reviews and a SourceError; the other platforms are
unaffected.
"""
import asyncio
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from reviewhub.lib.errors import SourceError
from reviewhub.lib.logging import get_logger
from reviewhub.lib.metrics import get_metrics_collector
from reviewhub.reviews.adapters import normalize
from reviewhub.reviews.canonical import CanonicalReview, Platform
from reviewhub.reviews.filters import ReviewQueryFilter
from reviewhub.reviews.store import ReviewStore


logger = get_logger(__name__)


@dataclass(frozen=True)
class FetchResult:
    reviews: Tuple[CanonicalReview, ...] = ()
    source_errors: Tuple[SourceError, ...] = ()

    @property
    def failed_platforms(self) -> Tuple[Platform, ...]:
        return tuple(Platform(e.platform) for e in self.source_errors)


async def fetch_platform(
    store: ReviewStore,
    platform: Platform,
    query_filter: ReviewQueryFilter,
) -> List[CanonicalReview]:
    """
    Query one platform and normalize its rows.

    Raises whatever the store raises.
    """
    rows = await store.query(platform, query_filter)
    reviews = [normalize(row, platform) for row in rows]

    metrics = get_metrics_collector()
    metrics.increment_fetches(platform.value, status="ok")
    metrics.increment_normalized(platform.value, len(reviews))
    logger.debug(f"Fetched {len(reviews)} {platform.value} reviews")
    return reviews


async def _fetch_or_error(
    store: ReviewStore,
    platform: Platform,
    query_filter: ReviewQueryFilter,
) -> Union[List[CanonicalReview], SourceError]:
    try:
        return await fetch_platform(store, platform, query_filter)
    except Exception as exc:
        logger.warning(
            f"Fetching {platform.value} reviews failed: {exc}",
            exc_info=True,
            extra={"platform": platform.value, "error_type": type(exc).__name__},
        )
        get_metrics_collector().increment_fetches(platform.value, status="error")
        return SourceError.from_exception(platform.value, exc)


async def fetch_platforms(
    store: ReviewStore,
    platforms: Sequence[Platform],
    query_filter: ReviewQueryFilter,
) -> FetchResult:
    """
    Fetch every platform in `platforms` concurrently.

    Platforms not listed are never queried. Reviews come back concatenated
    in platform order; callers sort them.
    """
    platforms = [Platform(p) for p in platforms]
    if not platforms:
        return FetchResult()

    outcomes = await asyncio.gather(
        *(_fetch_or_error(store, platform, query_filter) for platform in platforms)
    )

    reviews: List[CanonicalReview] = []
    errors: List[SourceError] = []
    for outcome in outcomes:
        if isinstance(outcome, SourceError):
            errors.append(outcome)
        else:
            reviews.extend(outcome)
    return FetchResult(reviews=tuple(reviews), source_errors=tuple(errors))
