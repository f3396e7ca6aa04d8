"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from reviewhub.models.business_profiles import BusinessProfile
from reviewhub.models.review_metadata import ReviewMetadata
from reviewhub.models.google_reviews import GoogleReview
from reviewhub.models.facebook_reviews import FacebookReview
from reviewhub.models.tripadvisor_reviews import TripAdvisorReview
from reviewhub.models.booking_reviews import BookingReview

__all__ = [
    "BusinessProfile",
    "ReviewMetadata",
    "GoogleReview",
    "FacebookReview",
    "TripAdvisorReview",
    "BookingReview",
]
