"""
Review store interface.

A store is scoped to one tenant (team). It is the only I/O boundary of the
review core: services await it, everything behind it is synchronous.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from reviewhub.reviews.adapters import normalize
from reviewhub.reviews.canonical import Platform
from reviewhub.reviews.filters import ReviewQueryFilter
from reviewhub.reviews.raw import RawReviewRow, ReviewMetadataRow


@dataclass(frozen=True)
class BusinessProfileRecord:
    """A tenant's connected business profile on one platform."""
    id: str
    platform: Platform
    name: str
    url: Optional[str] = None
    average_rating: Optional[float] = None
    total_reviews: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "platform": self.platform.value,
            "name": self.name,
            "url": self.url,
            "average_rating": self.average_rating,
            "total_reviews": self.total_reviews,
        }


class ReviewStore(ABC):
    """Abstract, tenant-scoped source of raw platform rows."""

    @abstractmethod
    async def query(self, platform: Platform, filter: ReviewQueryFilter) -> List[RawReviewRow]:
        """
        Fetch raw rows of one platform matching `filter`.

        Rating buckets in the filter are 1-5; implementations translate them
        to the platform's native scale.
        """

    @abstractmethod
    async def get_business_profile(self, platform: Platform) -> Optional[BusinessProfileRecord]:
        """The tenant's business profile on `platform`, or None."""

    @abstractmethod
    async def update_review_metadata(
        self,
        platform: Platform,
        review_id: str,
        *,
        is_read: Optional[bool] = None,
        is_important: Optional[bool] = None,
    ) -> bool:
        """Update read/important state; False when the review does not exist."""


class InMemoryReviewStore(ReviewStore):
    """
    Store backed by in-process rows.

    Filtering runs against the canonical projection of each row, so it
    agrees with how the rest of the core reads a review. That projection is
    built quietly; clamps are reported once, when the fetcher normalizes.
    """

    def __init__(
        self,
        rows: Optional[Dict[Platform, Iterable[RawReviewRow]]] = None,
        profiles: Optional[Dict[Platform, BusinessProfileRecord]] = None,
    ):
        self._rows: Dict[Platform, List[RawReviewRow]] = {
            Platform(platform): list(platform_rows)
            for platform, platform_rows in (rows or {}).items()
        }
        self._profiles = {Platform(p): profile for p, profile in (profiles or {}).items()}

    def add(self, *rows: RawReviewRow) -> None:
        for row in rows:
            self._rows.setdefault(row.platform, []).append(row)

    def add_profile(self, profile: BusinessProfileRecord) -> None:
        self._profiles[profile.platform] = profile

    async def query(self, platform: Platform, filter: ReviewQueryFilter) -> List[RawReviewRow]:
        platform = Platform(platform)
        matched = [
            row for row in self._rows.get(platform, [])
            if filter.matches(normalize(row, report_clamps=False))
        ]
        end = filter.offset + filter.limit if filter.limit is not None else None
        return matched[filter.offset:end]

    async def get_business_profile(self, platform: Platform) -> Optional[BusinessProfileRecord]:
        return self._profiles.get(Platform(platform))

    async def update_review_metadata(
        self,
        platform: Platform,
        review_id: str,
        *,
        is_read: Optional[bool] = None,
        is_important: Optional[bool] = None,
    ) -> bool:
        rows = self._rows.get(Platform(platform), [])
        for index, row in enumerate(rows):
            if row.id != review_id:
                continue
            metadata = row.metadata or ReviewMetadataRow()
            changes = {}
            if is_read is not None:
                changes["is_read"] = is_read
            if is_important is not None:
                changes["is_important"] = is_important
            rows[index] = replace(row, metadata=replace(metadata, **changes))
            return True
        return False
