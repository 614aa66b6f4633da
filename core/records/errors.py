"""
HotelOps Records — Errors
===========================
Error types for the operational record log. Raw database
exceptions never cross this boundary; the Django store translates
them into the domain errors below.
"""

from __future__ import annotations

from typing import Optional


class RecordError(Exception):
    """Base error for all record log operations."""
    pass


class PayloadDecodeError(RecordError):
    """A record's data payload does not match any known variant."""

    def __init__(self, message: str, payload_type: Optional[str] = None):
        self.payload_type = payload_type
        prefix = f"[{payload_type}] " if payload_type else ""
        super().__init__(f"{prefix}{message}")


class RecordStoreError(RecordError):
    """Base error for storage failures."""
    pass


class DuplicateRecordError(RecordStoreError):
    """A record id or (original_id, version_no) pair already exists."""

    def __init__(self, record_id: str, detail: str = ""):
        self.record_id = record_id
        super().__init__(
            f"Record {record_id} already exists"
            f"{': ' + detail if detail else ''}. "
            "Corrections must be submitted as a new version."
        )


class RecordConstraintError(RecordStoreError):
    """A storage constraint rejected the write."""

    def __init__(self, constraint: str, detail: str = ""):
        self.constraint = constraint
        super().__init__(
            f"Record rejected by constraint '{constraint}'"
            f"{': ' + detail if detail else ''}."
        )


class RecordNotFoundError(RecordStoreError):

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found.")


class RecordStoreUnavailableError(RecordStoreError):
    """Transient storage failure. Safe to retry the same insert."""
    pass
