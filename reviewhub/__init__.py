"""
ReviewHub core - review normalization and aggregation across Google,
Facebook, TripAdvisor and Booking.com.
"""
__version__ = "0.1.0"
