"""
Business profile model - a tenant's connected listing on one review platform.
"""
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from reviewhub.lib.db import Base
from reviewhub.reviews.canonical import Platform
from reviewhub.reviews.store import BusinessProfileRecord


class BusinessProfile(Base):
    """
    One row per (team, platform). A missing row means the platform is not
    connected for that team.
    """
    __tablename__ = "business_profiles"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    team_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # google, facebook, tripadvisor, booking
    platform: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Platform-reported totals, not recomputed from review rows
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_reviews: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("team_id", "platform", name="business_profile_team_platform"),
    )

    def to_record(self) -> BusinessProfileRecord:
        return BusinessProfileRecord(
            id=self.id,
            platform=Platform(self.platform),
            name=self.name,
            url=self.url,
            average_rating=self.average_rating,
            total_reviews=self.total_reviews,
        )

    def __repr__(self) -> str:
        return f"<BusinessProfile(team_id={self.team_id}, platform={self.platform}, name={self.name})>"
