"""
Raw platform review rows.

The four platforms share no common base shape, so each has its own frozen
row type tagged with a class-level `platform`. RawReviewRow is the union the
review stores return and the adapters dispatch on.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Dict, Optional, Tuple, Union

from reviewhub.reviews.canonical import Platform


@dataclass(frozen=True)
class ReviewMetadataRow:
    """Per-review metadata shared by every platform (read state, NLP output)."""
    is_read: bool = False
    is_important: bool = False
    sentiment: Optional[float] = None
    keywords: Tuple[str, ...] = ()
    reply: Optional[str] = None
    reply_date: Optional[datetime] = None
    photo_count: Optional[int] = None
    emotional: Optional[str] = None


@dataclass(frozen=True)
class GoogleReviewRow:
    platform: ClassVar[Platform] = Platform.GOOGLE

    id: str
    stars: Optional[float] = None
    published_at_date: Optional[datetime] = None
    name: Optional[str] = None
    reviewer_photo_url: Optional[str] = None
    text: Optional[str] = None
    review_image_urls: Tuple[str, ...] = ()
    response_from_owner_text: Optional[str] = None
    response_from_owner_date: Optional[datetime] = None
    review_url: Optional[str] = None
    likes_count: Optional[int] = None
    is_local_guide: bool = False
    metadata: Optional[ReviewMetadataRow] = None


@dataclass(frozen=True)
class FacebookReviewRow:
    platform: ClassVar[Platform] = Platform.FACEBOOK

    id: str
    is_recommended: Optional[bool] = None
    date: Optional[datetime] = None
    user_name: Optional[str] = None
    user_profile_pic: Optional[str] = None
    text: Optional[str] = None
    photos: Tuple[str, ...] = ()
    response_from_owner_text: Optional[str] = None
    response_from_owner_date: Optional[datetime] = None
    url: Optional[str] = None
    likes_count: Optional[int] = None
    comments_count: Optional[int] = None
    tags: Tuple[str, ...] = ()
    metadata: Optional[ReviewMetadataRow] = None


@dataclass(frozen=True)
class TripAdvisorReviewRow:
    platform: ClassVar[Platform] = Platform.TRIPADVISOR

    id: str
    rating: Optional[float] = None
    published_date: Optional[datetime] = None
    reviewer_name: Optional[str] = None
    reviewer_photo_url: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    photos: Tuple[str, ...] = ()
    response_from_owner_text: Optional[str] = None
    response_from_owner_date: Optional[datetime] = None
    has_owner_response: bool = False
    review_url: Optional[str] = None
    trip_type: Optional[str] = None
    helpful_votes: Optional[int] = None
    room_tip: Optional[str] = None
    # service, food, value, atmosphere, cleanliness, location, rooms, sleep_quality
    sub_ratings: Dict[str, Optional[float]] = field(default_factory=dict)
    metadata: Optional[ReviewMetadataRow] = None


@dataclass(frozen=True)
class BookingReviewRow:
    platform: ClassVar[Platform] = Platform.BOOKING

    id: str
    rating: Optional[float] = None  # 1-10
    published_date: Optional[datetime] = None
    reviewer_name: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    liked_text: Optional[str] = None
    disliked_text: Optional[str] = None
    response_from_owner_text: Optional[str] = None
    response_from_owner_date: Optional[datetime] = None
    has_owner_response: bool = False
    guest_type: Optional[str] = None
    length_of_stay: Optional[int] = None
    nationality: Optional[str] = None
    room_type: Optional[str] = None
    # cleanliness, comfort, location, facilities, staff, value, wifi
    sub_ratings: Dict[str, Optional[float]] = field(default_factory=dict)
    metadata: Optional[ReviewMetadataRow] = None


RawReviewRow = Union[GoogleReviewRow, FacebookReviewRow, TripAdvisorReviewRow, BookingReviewRow]

ROW_TYPES = {
    Platform.GOOGLE: GoogleReviewRow,
    Platform.FACEBOOK: FacebookReviewRow,
    Platform.TRIPADVISOR: TripAdvisorReviewRow,
    Platform.BOOKING: BookingReviewRow,
}
