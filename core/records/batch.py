"""
HotelOps Records — Batch Writer
=================================
Multi-record submissions (a day's stock sheet, a housekeeping round)
are written in chunks.

Write flow:
    1. Session probe (fail fast: nothing is inserted if it fails)
    2. For each chunk: insert, retrying transient store failures
       with linear backoff (base × attempt); the session is
       re-checked before every retry
    3. Constraint violations are not retried
    4. First chunk that cannot be written stops the burst

Already inserted chunks are never rolled back. A partial result is a
valid terminal outcome: callers report it, they do not "recover" it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from core.config import HotelOpsSettings
from core.records.entities import OperationalRecord
from core.records.errors import RecordStoreError, RecordStoreUnavailableError
from core.records.store import RecordStore
from core.session import SessionGuard, require_active_session

logger = logging.getLogger("hotelops.batch")


@dataclass(frozen=True)
class BatchWriteResult:
    inserted_ids: Tuple[str, ...] = ()
    unattempted_ids: Tuple[str, ...] = ()
    failed_ids: Tuple[str, ...] = ()
    error: Optional[str] = None
    session_expired: bool = False

    @property
    def complete(self) -> bool:
        return not self.failed_ids and not self.unattempted_ids and self.error is None

    @property
    def partial(self) -> bool:
        return bool(self.inserted_ids) and not self.complete

    @property
    def inserted_count(self) -> int:
        return len(self.inserted_ids)


class BatchWriter:
    """
    Chunked, retrying writer over a RecordStore.

    `sleep` is injectable so tests do not wait out the backoff.
    """

    def __init__(
        self,
        store: RecordStore,
        session: SessionGuard,
        settings: Optional[HotelOpsSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._session = session
        self._settings = settings or HotelOpsSettings()
        self._sleep = sleep

    def write(self, records: Sequence[OperationalRecord]) -> BatchWriteResult:
        """Write all records; raises SessionExpiredError before any insert."""
        require_active_session(self._session, "batch write")
        if not records:
            return BatchWriteResult()

        size = self._settings.batch_chunk_size
        chunks = [records[i:i + size] for i in range(0, len(records), size)]
        inserted: List[str] = []

        for index, chunk in enumerate(chunks):
            error, expired = self._write_chunk(chunk, index)
            if error is None:
                inserted.extend(r.id for r in chunk)
                continue
            remaining = [r.id for later in chunks[index + 1:] for r in later]
            result = BatchWriteResult(
                inserted_ids=tuple(inserted),
                unattempted_ids=tuple(remaining),
                failed_ids=tuple(r.id for r in chunk),
                error=error,
                session_expired=expired,
            )
            logger.warning(
                "Batch stopped at chunk %d/%d: %d inserted, %d failed, %d not attempted (%s)",
                index + 1, len(chunks), len(result.inserted_ids),
                len(result.failed_ids), len(remaining), error,
            )
            return result

        logger.info("Batch complete: %d records in %d chunks", len(records), len(chunks))
        return BatchWriteResult(inserted_ids=tuple(inserted))

    def _write_chunk(
        self, chunk: Sequence[OperationalRecord], index: int
    ) -> Tuple[Optional[str], bool]:
        """Return (error message or None, session_expired)."""
        attempts = self._settings.batch_max_attempts
        for attempt in range(1, attempts + 1):
            try:
                self._store.insert(chunk)
                return None, False
            except RecordStoreUnavailableError as exc:
                if attempt == attempts:
                    return str(exc), False
                logger.warning(
                    "Chunk %d insert failed (attempt %d/%d): %s",
                    index + 1, attempt, attempts, exc,
                )
                self._sleep(self._settings.batch_backoff_seconds * attempt)
                if not self._session.is_active():
                    return "Session expired during batch write.", True
            except RecordStoreError as exc:
                return str(exc), False
        return "Chunk was not written.", False
