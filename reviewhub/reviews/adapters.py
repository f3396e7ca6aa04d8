"""
Platform adapters - raw platform rows to CanonicalReview.

Rules per platform:
- Google / TripAdvisor: 1-5 ratings pass through unchanged.
- Facebook: no stars. is_recommended True -> 5, False -> 1. This is lossy on
  purpose (there is no "no opinion" value) and callers must not read more into
  a Facebook rating than recommended / not recommended.
- Booking: native 1-10 rating kept as is; the 1-5 bucket is derived on the
  canonical record (clamp(round(native / 2), 1, 5)).

Adapters never perform I/O and never raise on missing optional fields.
Ratings outside the native scale are clamped and logged.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from reviewhub.lib.logging import get_logger
from reviewhub.lib.metrics import get_metrics_collector
from reviewhub.reviews.canonical import (
    ANONYMOUS_AUTHOR,
    NOT_RECOMMENDED_RATING,
    PLATFORM_SCALES,
    RECOMMENDED_RATING,
    CanonicalReview,
    Platform,
    clamp,
)
from reviewhub.reviews.raw import (
    BookingReviewRow,
    FacebookReviewRow,
    GoogleReviewRow,
    RawReviewRow,
    ReviewMetadataRow,
    TripAdvisorReviewRow,
)


logger = get_logger(__name__)

_EMPTY_METADATA = ReviewMetadataRow()


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _native_rating(
    platform: Platform,
    value: Optional[float],
    review_id: str,
    report_clamps: bool = True,
) -> float:
    scale = PLATFORM_SCALES[platform]
    rating = float(value) if value is not None else 0.0
    if scale.contains(rating):
        return rating
    clamped = scale.clamp(rating)
    if not report_clamps:
        return clamped
    logger.warning(
        "Rating outside native scale, clamping",
        extra={
            "platform": platform.value,
            "review_id": review_id,
            "rating": value,
            "clamped_to": clamped,
        },
    )
    get_metrics_collector().increment_clamped(platform.value)
    return clamped


def _sentiment(metadata: ReviewMetadataRow) -> Optional[float]:
    if metadata.sentiment is None:
        return None
    return clamp(float(metadata.sentiment), -1.0, 1.0)


def _keywords(metadata: ReviewMetadataRow) -> Tuple[str, ...]:
    seen = []
    for keyword in metadata.keywords or ():
        if keyword and keyword not in seen:
            seen.append(keyword)
    return tuple(seen)


def _author(name: Optional[str]) -> str:
    if name and name.strip():
        return name
    return ANONYMOUS_AUTHOR


def _reply(row, metadata: ReviewMetadataRow) -> Tuple[Optional[str], Optional[datetime]]:
    text = row.response_from_owner_text or metadata.reply
    at = row.response_from_owner_date or metadata.reply_date
    return text, to_utc(at)


def _sub_ratings(values: Dict[str, Optional[float]]) -> Dict[str, float]:
    return {name: float(v) for name, v in (values or {}).items() if v is not None}


def from_google(row: GoogleReviewRow, report_clamps: bool = True) -> CanonicalReview:
    metadata = row.metadata or _EMPTY_METADATA
    reply_text, reply_at = _reply(row, metadata)
    return CanonicalReview(
        id=row.id,
        platform=Platform.GOOGLE,
        author=_author(row.name),
        author_image_url=row.reviewer_photo_url,
        rating=_native_rating(Platform.GOOGLE, row.stars, row.id, report_clamps),
        text=row.text,
        published_at=to_utc(row.published_at_date),
        images=tuple(row.review_image_urls or ()),
        reply_text=reply_text,
        reply_at=reply_at,
        has_reply=bool(reply_text),
        sentiment=_sentiment(metadata),
        keywords=_keywords(metadata),
        is_read=metadata.is_read,
        is_important=metadata.is_important,
        source_url=row.review_url,
        extras={
            "likes_count": row.likes_count or 0,
            "is_local_guide": bool(row.is_local_guide),
        },
    )


def from_facebook(row: FacebookReviewRow, report_clamps: bool = True) -> CanonicalReview:
    metadata = row.metadata or _EMPTY_METADATA
    reply_text, reply_at = _reply(row, metadata)
    recommended = bool(row.is_recommended)
    photos = tuple(row.photos or ())
    return CanonicalReview(
        id=row.id,
        platform=Platform.FACEBOOK,
        author=_author(row.user_name),
        author_image_url=row.user_profile_pic,
        rating=RECOMMENDED_RATING if recommended else NOT_RECOMMENDED_RATING,
        text=row.text,
        published_at=to_utc(row.date),
        images=photos,
        reply_text=reply_text,
        reply_at=reply_at,
        has_reply=bool(reply_text),
        sentiment=_sentiment(metadata),
        keywords=_keywords(metadata),
        is_read=metadata.is_read,
        is_important=metadata.is_important,
        source_url=row.url,
        extras={
            "is_recommended": recommended,
            "likes_count": row.likes_count or 0,
            "comments_count": row.comments_count or 0,
            "photo_count": metadata.photo_count if metadata.photo_count is not None else len(photos),
            "tags": tuple(t for t in (row.tags or ()) if t),
        },
    )


def from_tripadvisor(row: TripAdvisorReviewRow, report_clamps: bool = True) -> CanonicalReview:
    metadata = row.metadata or _EMPTY_METADATA
    reply_text, reply_at = _reply(row, metadata)
    return CanonicalReview(
        id=row.id,
        platform=Platform.TRIPADVISOR,
        author=_author(row.reviewer_name),
        author_image_url=row.reviewer_photo_url,
        rating=_native_rating(Platform.TRIPADVISOR, row.rating, row.id, report_clamps),
        text=row.text,
        published_at=to_utc(row.published_date),
        images=tuple(row.photos or ()),
        reply_text=reply_text,
        reply_at=reply_at,
        has_reply=bool(reply_text) or bool(row.has_owner_response),
        sentiment=_sentiment(metadata),
        keywords=_keywords(metadata),
        is_read=metadata.is_read,
        is_important=metadata.is_important,
        source_url=row.review_url,
        extras={
            "title": row.title,
            "trip_type": row.trip_type,
            "helpful_votes": row.helpful_votes or 0,
            "room_tip": row.room_tip,
            "sub_ratings": _sub_ratings(row.sub_ratings),
        },
    )


def _booking_text(row: BookingReviewRow) -> Optional[str]:
    if row.text and row.text.strip():
        return row.text
    parts = [p.strip() for p in (row.liked_text, row.disliked_text) if p and p.strip()]
    return "\n".join(parts) if parts else None


def from_booking(row: BookingReviewRow, report_clamps: bool = True) -> CanonicalReview:
    metadata = row.metadata or _EMPTY_METADATA
    reply_text, reply_at = _reply(row, metadata)
    return CanonicalReview(
        id=row.id,
        platform=Platform.BOOKING,
        author=_author(row.reviewer_name),
        rating=_native_rating(Platform.BOOKING, row.rating, row.id, report_clamps),
        text=_booking_text(row),
        published_at=to_utc(row.published_date),
        reply_text=reply_text,
        reply_at=reply_at,
        has_reply=bool(reply_text) or bool(row.has_owner_response),
        sentiment=_sentiment(metadata),
        keywords=_keywords(metadata),
        is_read=metadata.is_read,
        is_important=metadata.is_important,
        extras={
            "title": row.title,
            "guest_type": row.guest_type,
            "length_of_stay": row.length_of_stay,
            "nationality": row.nationality,
            "room_type": row.room_type,
            "sub_ratings": _sub_ratings(row.sub_ratings),
        },
    )


ADAPTERS: Dict[Platform, Callable[..., CanonicalReview]] = {
    Platform.GOOGLE: from_google,
    Platform.FACEBOOK: from_facebook,
    Platform.TRIPADVISOR: from_tripadvisor,
    Platform.BOOKING: from_booking,
}


def normalize(
    row: RawReviewRow,
    platform: Optional[Platform] = None,
    report_clamps: bool = True,
) -> CanonicalReview:
    """
    Convert one raw platform row into a CanonicalReview.

    Args:
        row: Raw row; its `platform` tag selects the adapter
        platform: Optional expected platform, checked against the row's tag
        report_clamps: Log and count off-scale ratings (off for filtering-only passes)

    Raises:
        ValueError: If `platform` contradicts the row type
    """
    if platform is not None and Platform(platform) is not row.platform:
        raise ValueError(
            f"{type(row).__name__} cannot be normalized as {Platform(platform).value}"
        )
    return ADAPTERS[row.platform](row, report_clamps)


def normalize_many(rows: Iterable[RawReviewRow]) -> List[CanonicalReview]:
    """Normalize rows in order."""
    return [normalize(row) for row in rows]


# ===== Rating filter translation =====

@dataclass(frozen=True)
class NativeRatingCriteria:
    """
    A 1-5 rating filter expressed on one platform's native scale.

    `ranges` are half-open [low, high) intervals of native ratings, None
    meaning unbounded (bucket 1 and 5 also take clamped off-scale values);
    `recommended` (Facebook only) lists accepted is_recommended values.
    """
    ranges: Tuple[Tuple[Optional[float], Optional[float]], ...] = ()
    recommended: Optional[FrozenSet[bool]] = None

    @property
    def matches_nothing(self) -> bool:
        if self.recommended is not None:
            return not self.recommended
        return not self.ranges


def native_rating_criteria(platform: Platform, buckets: Sequence[int]) -> NativeRatingCriteria:
    """
    Translate 1-5 rating buckets into native criteria for a platform.

    A native rating falls in bucket b exactly when the canonical record's
    rating_bucket would be b, so store-side filtering agrees with the
    in-memory projection:
        five-star: [b - 0.5, b + 0.5)
        Booking:   [2b - 1, 2b + 1)   (bucket 3 -> native 5 and 6)
        Facebook:  5 -> recommended, 1 -> not recommended, others match nothing
    """
    wanted = sorted({int(b) for b in buckets if 1 <= int(b) <= 5})
    platform = Platform(platform)

    if platform is Platform.FACEBOOK:
        accepted = set()
        if int(RECOMMENDED_RATING) in wanted:
            accepted.add(True)
        if int(NOT_RECOMMENDED_RATING) in wanted:
            accepted.add(False)
        return NativeRatingCriteria(recommended=frozenset(accepted))

    ranges = []
    for b in wanted:
        if platform is Platform.BOOKING:
            low, high = 2.0 * b - 1, 2.0 * b + 1
        else:
            low, high = b - 0.5, b + 0.5
        ranges.append((low if b > 1 else None, high if b < 5 else None))
    return NativeRatingCriteria(ranges=tuple(ranges))
