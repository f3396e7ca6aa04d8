"""
TripAdvisor review model.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reviewhub.lib.db import Base
from reviewhub.models.review_metadata import PlatformReviewMixin
from reviewhub.reviews.raw import TripAdvisorReviewRow


class TripAdvisorReview(PlatformReviewMixin, Base):
    __tablename__ = "tripadvisor_reviews"

    # 1-5 bubbles
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    published_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    reviewer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewer_photo_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    photos: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    has_owner_response: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    review_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    trip_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    helpful_votes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    room_tip: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # {"service": 4.0, "food": 5.0, ...}
    sub_ratings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def to_row(self) -> TripAdvisorReviewRow:
        return TripAdvisorReviewRow(
            id=self.id,
            rating=self.rating,
            published_date=self.published_date,
            reviewer_name=self.reviewer_name,
            reviewer_photo_url=self.reviewer_photo_url,
            title=self.title,
            text=self.text,
            photos=tuple(self.photos or ()),
            response_from_owner_text=self.response_from_owner_text,
            response_from_owner_date=self.response_from_owner_date,
            has_owner_response=bool(self.has_owner_response),
            review_url=self.review_url,
            trip_type=self.trip_type,
            helpful_votes=self.helpful_votes,
            room_tip=self.room_tip,
            sub_ratings=dict(self.sub_ratings or {}),
            metadata=self.metadata_row(),
        )

    def __repr__(self) -> str:
        return f"<TripAdvisorReview(id={self.id}, rating={self.rating})>"
