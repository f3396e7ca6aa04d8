"""
Canonical review model - the platform-agnostic review record.

Ratings stay on the platform's native scale inside CanonicalReview. The 1-5
projection used for cross-platform aggregation is derived on demand
(rating_bucket / normalized_rating) and never written back.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class Platform(str, Enum):
    """Supported review platforms."""
    GOOGLE = "google"
    FACEBOOK = "facebook"
    TRIPADVISOR = "tripadvisor"
    BOOKING = "booking"


ALL_PLATFORMS: Tuple[Platform, ...] = (
    Platform.GOOGLE,
    Platform.FACEBOOK,
    Platform.TRIPADVISOR,
    Platform.BOOKING,
)


class SentimentLabel(str, Enum):
    """Three-way sentiment classification."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RatingScale(Enum):
    """
    Native rating scales.

    value = (name, minimum, maximum, sentiment scale)
    """
    FIVE_STAR = ("five_star", 1.0, 5.0, 5)
    TEN_POINT = ("ten_point", 1.0, 10.0, 10)
    RECOMMENDATION = ("recommendation", 1.0, 5.0, 5)  # boolean mapped onto 5 / 1

    @property
    def minimum(self) -> float:
        return self.value[1]

    @property
    def maximum(self) -> float:
        return self.value[2]

    @property
    def sentiment_scale(self) -> int:
        return self.value[3]

    def contains(self, rating: float) -> bool:
        return self.minimum <= rating <= self.maximum

    def clamp(self, rating: float) -> float:
        return max(self.minimum, min(self.maximum, rating))


PLATFORM_SCALES = {
    Platform.GOOGLE: RatingScale.FIVE_STAR,
    Platform.FACEBOOK: RatingScale.RECOMMENDATION,
    Platform.TRIPADVISOR: RatingScale.FIVE_STAR,
    Platform.BOOKING: RatingScale.TEN_POINT,
}

# Facebook has no stars: recommended -> 5, not recommended -> 1
RECOMMENDED_RATING = 5.0
NOT_RECOMMENDED_RATING = 1.0

ANONYMOUS_AUTHOR = "Anonymous"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def to_five_point_bucket(rating: float, scale: RatingScale) -> int:
    """
    Project a native rating onto an integer 1..5 bucket.

    Ten-point ratings are halved before rounding: 9 -> 5, 5 -> 3, 2 -> 1.
    """
    if scale is RatingScale.TEN_POINT:
        rating = rating / 2
    return int(clamp(round_half_up(rating), 1, 5))


def to_five_point(rating: float, scale: RatingScale) -> float:
    """Project a native rating onto a continuous 1..5 value."""
    if scale is RatingScale.TEN_POINT:
        rating = rating / 2
    return clamp(rating, 1.0, 5.0)


@dataclass(frozen=True)
class CanonicalReview:
    """
    Normalized review record, created per request from persisted platform rows.

    Platform-specific extension fields (sub_ratings, trip_type, guest_type,
    helpful_votes, likes_count, ...) live in `extras`.
    """
    id: str
    platform: Platform
    rating: float
    published_at: Optional[datetime]
    author: str = ANONYMOUS_AUTHOR
    author_image_url: Optional[str] = None
    text: Optional[str] = None
    images: Tuple[str, ...] = ()
    reply_text: Optional[str] = None
    reply_at: Optional[datetime] = None
    has_reply: bool = False
    sentiment: Optional[float] = None
    keywords: Tuple[str, ...] = ()
    is_read: bool = False
    is_important: bool = False
    source_url: Optional[str] = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only view so a shared canonical record cannot be mutated downstream
        if not isinstance(self.extras, MappingProxyType):
            object.__setattr__(self, "extras", MappingProxyType(dict(self.extras)))

    @property
    def scale(self) -> RatingScale:
        return PLATFORM_SCALES[self.platform]

    @property
    def rating_bucket(self) -> int:
        """Integer 1..5 bucket for cross-platform rating distributions."""
        return to_five_point_bucket(self.rating, self.scale)

    @property
    def normalized_rating(self) -> float:
        """Continuous 1..5 rating for cross-platform averages and sorting."""
        return to_five_point(self.rating, self.scale)

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    def extra(self, name: str, default: Any = None) -> Any:
        return self.extras.get(name, default)

    def to_dict(self) -> dict:
        """Plain, JSON-ready representation."""
        return {
            "id": self.id,
            "platform": self.platform.value,
            "author": self.author,
            "author_image_url": self.author_image_url,
            "rating": self.rating,
            "rating_bucket": self.rating_bucket,
            "text": self.text,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "images": list(self.images),
            "reply_text": self.reply_text,
            "reply_at": self.reply_at.isoformat() if self.reply_at else None,
            "has_reply": self.has_reply,
            "sentiment": self.sentiment,
            "keywords": list(self.keywords),
            "is_read": self.is_read,
            "is_important": self.is_important,
            "source_url": self.source_url,
            "extras": _plain(dict(self.extras)),
        }


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value
