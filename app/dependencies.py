"""Shared FastAPI dependencies."""

from app.config import PrivacySettings, privacy


def get_privacy() -> PrivacySettings:
    """Provide the process-wide privacy snapshot to route handlers."""
    return privacy
