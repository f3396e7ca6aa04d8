"""
Booking.com review model - native ratings on a 1-10 scale.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reviewhub.lib.db import Base
from reviewhub.models.review_metadata import PlatformReviewMixin
from reviewhub.reviews.raw import BookingReviewRow


class BookingReview(PlatformReviewMixin, Base):
    __tablename__ = "booking_reviews"

    # 1-10
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    published_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    reviewer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    liked_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    disliked_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    has_owner_response: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    guest_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    length_of_stay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    room_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # {"cleanliness": 9.0, "wifi": 7.5, ...}
    sub_ratings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(
            "length_of_stay IS NULL OR length_of_stay >= 0",
            name="booking_review_length_of_stay",
        ),
    )

    def to_row(self) -> BookingReviewRow:
        return BookingReviewRow(
            id=self.id,
            rating=self.rating,
            published_date=self.published_date,
            reviewer_name=self.reviewer_name,
            title=self.title,
            text=self.text,
            liked_text=self.liked_text,
            disliked_text=self.disliked_text,
            response_from_owner_text=self.response_from_owner_text,
            response_from_owner_date=self.response_from_owner_date,
            has_owner_response=bool(self.has_owner_response),
            guest_type=self.guest_type,
            length_of_stay=self.length_of_stay,
            nationality=self.nationality,
            room_type=self.room_type,
            sub_ratings=dict(self.sub_ratings or {}),
            metadata=self.metadata_row(),
        )

    def __repr__(self) -> str:
        return f"<BookingReview(id={self.id}, rating={self.rating})>"
