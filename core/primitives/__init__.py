"""
HotelOps Primitives — Public API
==================================
Approval workflow gating record visibility.
"""

from core.primitives.approval import (
    ALLOWED_TRANSITIONS,
    REVIEWER_ROLES,
    ApprovalError,
    ApprovalWorkflow,
    InvalidTransitionError,
    can_transition,
    initial_status,
    is_projection_visible,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "REVIEWER_ROLES",
    "ApprovalError",
    "ApprovalWorkflow",
    "InvalidTransitionError",
    "can_transition",
    "initial_status",
    "is_projection_visible",
]
