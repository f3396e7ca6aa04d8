"""
Review filters and pagination.

InboxFilters is what a caller asks for (status presets, date presets, loose
boolean strings). It is translated once into an immutable ReviewQueryFilter,
which every platform store receives by value.
"""
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from reviewhub.lib.settings import settings
from reviewhub.reviews.calculators import classify_score
from reviewhub.reviews.canonical import ALL_PLATFORMS, CanonicalReview, Platform, SentimentLabel


def safe_boolean(value: Any) -> Optional[bool]:
    """
    Normalize a boolean-looking input.

    None and "" mean "not given". "true"/"false" (any case, trimmed) map to
    their boolean, any other string is False, anything else goes through bool().
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized == "":
            return None
        return normalized == "true"
    return bool(value)


class SortKey(str, Enum):
    DATE = "date"
    RATING = "rating"
    SENTIMENT = "sentiment"
    PLATFORM = "platform"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class InboxStatus(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    READ = "read"
    IMPORTANT = "important"
    REPLIED = "replied"
    NOT_REPLIED = "not-replied"


class DateRangePreset(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DateRange(BaseModel):
    """Inclusive datetime range; a missing bound is open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _aware(value)

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def covering_days(self) -> "DateRange":
        """
        Widen to whole UTC days: midnight of the first day through the last
        microsecond of the last day. Open bounds stay open.
        """
        start = end = None
        if self.start is not None:
            start = datetime.combine(self.start.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)
        if self.end is not None:
            end = datetime.combine(self.end.astimezone(timezone.utc).date(), time.max, tzinfo=timezone.utc)
        return DateRange(start=start, end=end)

    def contains(self, moment: Optional[datetime]) -> bool:
        if moment is None:
            return self.is_open
        moment = _aware(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


_PRESET_DAYS = {
    DateRangePreset.WEEK: 7,
    DateRangePreset.MONTH: 30,
    DateRangePreset.YEAR: 365,
}


def resolve_date_range(preset: DateRangePreset, now: Optional[datetime] = None) -> DateRange:
    """
    Turn a date preset into a concrete range ending at `now`.

    "today" starts at UTC midnight, "week"/"month"/"year" reach back 7/30/365
    days, "all" is unbounded.
    """
    preset = DateRangePreset(preset)
    if preset is DateRangePreset.ALL:
        return DateRange()
    now = _aware(now) or datetime.now(timezone.utc)
    if preset is DateRangePreset.TODAY:
        midnight = datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)
        return DateRange(start=midnight, end=now)
    return DateRange(start=now - timedelta(days=_PRESET_DAYS[preset]), end=now)


def _ratings(value: Any) -> Optional[Tuple[int, ...]]:
    if value is None:
        return None
    if isinstance(value, (int, str)):
        value = [value]
    buckets = []
    for item in value:
        bucket = int(item)
        if not 1 <= bucket <= 5:
            raise ValueError(f"Rating filter must be between 1 and 5, got {bucket}")
        if bucket not in buckets:
            buckets.append(bucket)
    return tuple(sorted(buckets))


class ReviewQueryFilter(BaseModel):
    """
    Immutable per-platform store query.

    `rating_in` holds 1-5 buckets; stores translate them to their native
    scale. `sentiment` is matched against the NLP score.
    """
    rating_in: Optional[Tuple[int, ...]] = None
    sentiment: Optional[SentimentLabel] = None
    text_contains: Optional[str] = None
    date_range: Optional[DateRange] = None
    is_read: Optional[bool] = None
    is_important: Optional[bool] = None
    has_response: Optional[bool] = None
    sort_by: SortKey = SortKey.DATE
    sort_order: SortOrder = SortOrder.DESC
    offset: int = Field(default=0, ge=0)
    limit: Optional[int] = Field(default=None, ge=1)

    model_config = {"frozen": True}

    @field_validator("rating_in", mode="before")
    @classmethod
    def normalize_ratings(cls, value):
        return _ratings(value)

    @field_validator("is_read", "is_important", "has_response", mode="before")
    @classmethod
    def normalize_boolean(cls, value):
        return safe_boolean(value)

    @field_validator("text_contains", mode="before")
    @classmethod
    def blank_search_is_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def matches(self, review: CanonicalReview) -> bool:
        """Apply the filter to a canonical projection."""
        if self.rating_in is not None and review.rating_bucket not in self.rating_in:
            return False
        if self.sentiment is not None:
            if review.sentiment is None or classify_score(review.sentiment) is not self.sentiment:
                return False
        if self.text_contains is not None:
            needle = self.text_contains.lower()
            haystacks = (review.text or "", review.author or "")
            if not any(needle in h.lower() for h in haystacks):
                return False
        if self.date_range is not None and not self.date_range.is_open:
            if not self.date_range.contains(review.published_at):
                return False
        if self.is_read is not None and review.is_read != self.is_read:
            return False
        if self.is_important is not None and review.is_important != self.is_important:
            return False
        if self.has_response is not None and review.has_reply != self.has_response:
            return False
        return True


# status preset -> (field, value)
_STATUS_FLAGS = {
    InboxStatus.UNREAD: ("is_read", False),
    InboxStatus.READ: ("is_read", True),
    InboxStatus.IMPORTANT: ("is_important", True),
    InboxStatus.REPLIED: ("has_response", True),
    InboxStatus.NOT_REPLIED: ("has_response", False),
}


class InboxFilters(BaseModel):
    """Caller-facing inbox filters."""
    platforms: Tuple[Platform, ...] = ALL_PLATFORMS
    status: InboxStatus = InboxStatus.ALL
    date_preset: Optional[DateRangePreset] = None
    date_range: Optional[DateRange] = None
    rating: Optional[Tuple[int, ...]] = None
    sentiment: Optional[SentimentLabel] = None
    search: Optional[str] = None
    is_read: Optional[bool] = None
    is_important: Optional[bool] = None
    has_response: Optional[bool] = None
    sort_by: SortKey = SortKey.DATE
    sort_order: SortOrder = SortOrder.DESC

    model_config = {"frozen": True}

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, value):
        if value is None:
            return ALL_PLATFORMS
        if isinstance(value, (str, Platform)):
            value = [value]
        unique = []
        for item in value:
            platform = Platform(item.lower() if isinstance(item, str) else item)
            if platform not in unique:
                unique.append(platform)
        return tuple(unique)

    @field_validator("rating", mode="before")
    @classmethod
    def normalize_ratings(cls, value):
        return _ratings(value)

    @field_validator("is_read", "is_important", "has_response", mode="before")
    @classmethod
    def normalize_boolean(cls, value):
        return safe_boolean(value)

    def to_query_filter(self, now: Optional[datetime] = None) -> ReviewQueryFilter:
        """
        Build the per-platform query filter.

        An explicit date_range wins over date_preset, and explicit boolean
        flags win over the status preset.
        """
        flags = {
            "is_read": self.is_read,
            "is_important": self.is_important,
            "has_response": self.has_response,
        }
        if self.status in _STATUS_FLAGS:
            name, value = _STATUS_FLAGS[self.status]
            if flags[name] is None:
                flags[name] = value

        date_range = self.date_range
        if date_range is None and self.date_preset is not None:
            date_range = resolve_date_range(self.date_preset, now)

        return ReviewQueryFilter(
            rating_in=self.rating,
            sentiment=self.sentiment,
            text_contains=self.search,
            date_range=date_range,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
            **flags,
        )


class Pagination(BaseModel):
    """Page-based pagination; limit is capped at settings.inbox_max_limit."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default_factory=lambda: settings.inbox_default_limit, ge=1)

    model_config = {"frozen": True}

    @field_validator("limit")
    @classmethod
    def cap_limit(cls, value: int) -> int:
        return min(value, settings.inbox_max_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
