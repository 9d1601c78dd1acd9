"""
Shared column helpers
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Python-side timestamp default (microsecond resolution keeps newest-first ordering stable)."""
    return datetime.now(timezone.utc)
