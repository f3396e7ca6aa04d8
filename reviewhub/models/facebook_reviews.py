"""
Facebook review model - recommendations rather than star ratings.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reviewhub.lib.db import Base
from reviewhub.models.review_metadata import PlatformReviewMixin
from reviewhub.reviews.raw import FacebookReviewRow


class FacebookReview(PlatformReviewMixin, Base):
    __tablename__ = "facebook_reviews"

    is_recommended: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_profile_pic: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    photos: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    likes_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    comments_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def to_row(self) -> FacebookReviewRow:
        return FacebookReviewRow(
            id=self.id,
            is_recommended=self.is_recommended,
            date=self.date,
            user_name=self.user_name,
            user_profile_pic=self.user_profile_pic,
            text=self.text,
            photos=tuple(self.photos or ()),
            response_from_owner_text=self.response_from_owner_text,
            response_from_owner_date=self.response_from_owner_date,
            url=self.url,
            likes_count=self.likes_count,
            comments_count=self.comments_count,
            tags=tuple(self.tags or ()),
            metadata=self.metadata_row(),
        )

    def __repr__(self) -> str:
        return f"<FacebookReview(id={self.id}, is_recommended={self.is_recommended})>"
