"""
HotelOps Core Session — Public API
====================================
Session validity probe consulted before write bursts.
"""

from core.session.guard import (
    SessionExpiredError,
    SessionGuard,
    StaticSession,
    require_active_session,
)

__all__ = [
    "SessionExpiredError",
    "SessionGuard",
    "StaticSession",
    "require_active_session",
]
