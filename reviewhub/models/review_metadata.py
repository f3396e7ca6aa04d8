"""
Review metadata model - read state and NLP output shared by all platforms.

Platform review tables point here through review_metadata_id. Marking a
review read or important writes this row only.
"""
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from reviewhub.lib.db import Base
from reviewhub.reviews.raw import ReviewMetadataRow


class ReviewMetadata(Base):
    __tablename__ = "review_metadata"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # NLP score in [-1, 1], None when not analyzed
    sentiment: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    emotional: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    reply: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reply_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    photo_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def to_row(self) -> ReviewMetadataRow:
        return ReviewMetadataRow(
            is_read=bool(self.is_read),
            is_important=bool(self.is_important),
            sentiment=self.sentiment,
            keywords=tuple(self.keywords or ()),
            reply=self.reply,
            reply_date=self.reply_date,
            photo_count=self.photo_count,
            emotional=self.emotional,
        )

    def __repr__(self) -> str:
        return f"<ReviewMetadata(id={self.id}, is_read={self.is_read}, sentiment={self.sentiment})>"


class PlatformReviewMixin:
    """Columns every platform review table has."""

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    team_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_from_owner_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_from_owner_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @declared_attr
    def review_metadata_id(cls) -> Mapped[Optional[str]]:
        return mapped_column(
            String(64),
            ForeignKey("review_metadata.id", ondelete="SET NULL"),
            nullable=True,
        )

    @declared_attr
    def review_metadata(cls) -> Mapped[Optional[ReviewMetadata]]:
        return relationship(ReviewMetadata, lazy="selectin")

    def metadata_row(self) -> Optional[ReviewMetadataRow]:
        if self.review_metadata is None:
            return None
        return self.review_metadata.to_row()
