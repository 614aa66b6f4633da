"""
HotelOps Core Session — Write Burst Guard
==========================================
Authentication lives outside HotelOps. Writers only need to know
whether the caller's session is still valid before (and between
retries of) a write burst.

Expired session → abort before the next insert, never continue
with stale credentials.
"""

from __future__ import annotations

from typing import Optional, Protocol


class SessionExpiredError(Exception):
    """The caller's session is no longer valid; re-authenticate."""

    def __init__(self, operation: str = "write") -> None:
        self.operation = operation
        super().__init__(
            f"Session expired before {operation}. Please sign in again."
        )


class SessionGuard(Protocol):
    """Probe for the caller's session validity."""

    def is_active(self) -> bool:
        ...  # pragma: no cover


class StaticSession:
    """
    Session whose validity is set explicitly.

    Used by batch jobs (always active) and tests (expire mid-burst).
    """

    def __init__(self, active: bool = True, user_id: Optional[str] = None) -> None:
        self._active = active
        self._user_id = user_id

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def is_active(self) -> bool:
        return self._active

    def expire(self) -> None:
        self._active = False

    def renew(self) -> None:
        self._active = True


def require_active_session(guard: SessionGuard, operation: str = "write") -> None:
    """Raise SessionExpiredError if the session probe fails."""
    if not guard.is_active():
        raise SessionExpiredError(operation)
