"""Per-session question exposure tracking."""

from adaptive_engine.session.exposure_tracker import (
    NoQuestionAvailable,
    SessionExposureTracker,
    SessionKey,
)

__all__ = ["NoQuestionAvailable", "SessionExposureTracker", "SessionKey"]
