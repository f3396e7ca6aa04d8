"""
Google review model - rows scraped from a Google Business listing.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reviewhub.lib.db import Base
from reviewhub.models.review_metadata import PlatformReviewMixin
from reviewhub.reviews.raw import GoogleReviewRow


class GoogleReview(PlatformReviewMixin, Base):
    __tablename__ = "google_reviews"

    # 1-5 stars
    stars: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    published_at_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewer_photo_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    review_image_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    review_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    likes_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_local_guide: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_row(self) -> GoogleReviewRow:
        return GoogleReviewRow(
            id=self.id,
            stars=self.stars,
            published_at_date=self.published_at_date,
            name=self.name,
            reviewer_photo_url=self.reviewer_photo_url,
            text=self.text,
            review_image_urls=tuple(self.review_image_urls or ()),
            response_from_owner_text=self.response_from_owner_text,
            response_from_owner_date=self.response_from_owner_date,
            review_url=self.review_url,
            likes_count=self.likes_count,
            is_local_guide=bool(self.is_local_guide),
            metadata=self.metadata_row(),
        )

    def __repr__(self) -> str:
        return f"<GoogleReview(id={self.id}, stars={self.stars})>"
