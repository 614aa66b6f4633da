"""
HotelOps Records — Django Record Store
========================================
Database-backed RecordStore over StoredRecord.

Write path:
    insert() is one atomic bulk insert per call. IntegrityError is
    translated into DuplicateRecordError / RecordConstraintError;
    connection-level failures become RecordStoreUnavailableError so
    the batch writer can retry them.

Read path:
    Column filters, string payload paths and the business date range
    run in the database. The business date is the payload `date` text
    (ISO, so it orders lexically) or, when absent, the UTC day of
    created_at. RecordQuery.matches() runs last over the loaded rows
    so the result is identical to InMemoryRecordStore for the same query.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timezone
from typing import List, Optional, Sequence

from django.core.exceptions import ValidationError
from django.db import IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import Q
from django.db.models.fields.json import KeyTextTransform

from core.records.entities import OperationalRecord, RecordStatus
from core.records.errors import (
    DuplicateRecordError,
    RecordConstraintError,
    RecordNotFoundError,
    RecordStoreError,
    RecordStoreUnavailableError,
)
from core.records.models import StoredRecord
from core.records.store import RecordQuery, normalize_payload_value, ordering_key

logger = logging.getLogger("hotelops.records")

VERSION_CONSTRAINT = "uq_record_original_version"


# ══════════════════════════════════════════════════════════════
# ROW MAPPING
# ══════════════════════════════════════════════════════════════

def _uuid(value: str, field_name: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise RecordConstraintError(
            "uuid_format", f"{field_name} '{value}' is not a UUID"
        ) from None


def _to_row(record: OperationalRecord) -> StoredRecord:
    return StoredRecord(
        id=_uuid(record.id, "id"),
        original_id=_uuid(record.original_id, "original_id"),
        version_no=record.version_no,
        previous_version_id=(
            _uuid(record.previous_version_id, "previous_version_id")
            if record.previous_version_id else None
        ),
        entity_type=record.entity_type.value,
        data=record.data,
        financial_amount=record.financial_amount,
        status=record.status.value,
        submitted_by=record.submitted_by,
        reviewed_by=record.reviewed_by,
        reviewed_at=record.reviewed_at,
        rejection_reason=record.rejection_reason,
        created_at=record.created_at,
        deleted_at=record.deleted_at,
    )


def _to_domain(row: StoredRecord) -> OperationalRecord:
    return OperationalRecord(
        id=str(row.id),
        original_id=str(row.original_id),
        version_no=row.version_no,
        entity_type=row.entity_type,
        data=row.data,
        status=row.status,
        created_at=row.created_at,
        financial_amount=row.financial_amount,
        submitted_by=row.submitted_by,
        deleted_at=row.deleted_at,
        previous_version_id=str(row.previous_version_id) if row.previous_version_id else None,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        rejection_reason=row.rejection_reason,
    )


# ══════════════════════════════════════════════════════════════
# INTEGRITY ERROR TRANSLATION
# ══════════════════════════════════════════════════════════════

def _extract_constraint_name(exc: IntegrityError) -> Optional[str]:
    cause = getattr(exc, "__cause__", None)
    diag = getattr(cause, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if isinstance(constraint_name, str) and constraint_name:
        return constraint_name
    return None


def _translate_integrity_error(
    exc: IntegrityError, records: Sequence[OperationalRecord]
) -> RecordStoreError:
    message = str(exc)
    constraint = _extract_constraint_name(exc)

    is_version_clash = constraint == VERSION_CONSTRAINT or (
        VERSION_CONSTRAINT in message
        or ("original_id" in message and "version_no" in message)
    )
    if is_version_clash:
        clashing = _first_version_clash(records)
        return DuplicateRecordError(
            clashing.id if clashing else "(batch)",
            f"version {clashing.version_no} of {clashing.original_id} exists"
            if clashing else "a submitted version already exists",
        )

    existing = StoredRecord.objects.filter(
        id__in=[r.id for r in records]
    ).values_list("id", flat=True)
    existing_ids = sorted(str(i) for i in existing)
    if existing_ids:
        return DuplicateRecordError(existing_ids[0])

    return RecordConstraintError(constraint or "unknown", message)


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _business_date_filter(on_or_after: Optional[date], before: Optional[date]) -> Q:
    """Half-open business date range over a `business_day_text` annotation."""
    dated = Q()
    undated = Q(business_day_text__isnull=True) | Q(business_day_text="")
    if on_or_after is not None:
        dated &= Q(business_day_text__gte=on_or_after.isoformat())
        undated &= Q(created_at__gte=_midnight(on_or_after))
    if before is not None:
        dated &= Q(business_day_text__lt=before.isoformat())
        undated &= Q(created_at__lt=_midnight(before))
    return (Q(business_day_text__gt="") & dated) | undated


def _first_version_clash(records: Sequence[OperationalRecord]) -> Optional[OperationalRecord]:
    for record in records:
        if StoredRecord.objects.filter(
            original_id=record.original_id, version_no=record.version_no
        ).exists():
            return record
    return None


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class DjangoRecordStore:
    """RecordStore backed by the Django ORM."""

    def insert(self, records: Sequence[OperationalRecord]) -> None:
        if not records:
            return
        rows = [_to_row(r) for r in records]
        try:
            with transaction.atomic():
                StoredRecord.objects.bulk_create(rows)
        except IntegrityError as exc:
            error = _translate_integrity_error(exc, records)
            logger.warning("Record insert rejected: %s", error)
            raise error from None
        except (OperationalError, InterfaceError) as exc:
            raise RecordStoreUnavailableError(
                f"Record store unavailable: {exc}"
            ) from exc

    def queryset(self, query: RecordQuery):
        """
        Rows for a query, filtered in the database.

        Returns None when no row can match (original ids that are not
        UUIDs). The result may still be a superset of query.matches();
        query() applies that as the final pass.
        """
        qs = StoredRecord.objects.all()
        if query.entity_types:
            qs = qs.filter(entity_type__in=[e.value for e in query.entity_types])
        if query.statuses:
            qs = qs.filter(status__in=[s.value for s in query.statuses])
        if query.original_ids:
            ids = []
            for original_id in query.original_ids:
                try:
                    ids.append(uuid.UUID(original_id))
                except ValueError:
                    continue
            if not ids:
                return None
            qs = qs.filter(original_id__in=ids)
        if query.payload_types:
            tag_filter = Q()
            for tag in query.payload_types:
                tag_filter |= Q(data__type=tag)
            qs = qs.filter(tag_filter)
        if not query.include_deleted:
            qs = qs.filter(deleted_at__isnull=True)
        for path, expected in query.payload_equals:
            value = normalize_payload_value(expected)
            # non-string JSON equality differs between backends
            if isinstance(value, str):
                qs = qs.filter(**{"data__" + path.replace(".", "__"): value})
        if query.on_or_after is not None or query.before is not None:
            qs = qs.annotate(business_day_text=KeyTextTransform("date", "data"))
            qs = qs.filter(_business_date_filter(query.on_or_after, query.before))
        return qs

    def query(self, query: RecordQuery) -> List[OperationalRecord]:
        qs = self.queryset(query)
        if qs is None:
            return []
        try:
            rows = [_to_domain(row) for row in qs.order_by(
                "original_id", "version_no", "created_at", "id",
            )]
        except (OperationalError, InterfaceError) as exc:
            raise RecordStoreUnavailableError(
                f"Record store unavailable: {exc}"
            ) from exc

        result = [r for r in rows if query.matches(r)]
        result.sort(key=ordering_key)
        if query.limit is not None:
            result = result[: query.limit]
        return result

    def get(self, record_id: str) -> Optional[OperationalRecord]:
        try:
            row = StoredRecord.objects.get(id=record_id)
        except (StoredRecord.DoesNotExist, ValidationError, ValueError):
            return None
        return _to_domain(row)

    def update_status(
        self,
        record_id: str,
        status: RecordStatus,
        *,
        reviewed_by: Optional[str] = None,
        reviewed_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
    ) -> OperationalRecord:
        try:
            row = StoredRecord.objects.get(id=record_id)
        except (StoredRecord.DoesNotExist, ValidationError, ValueError):
            raise RecordNotFoundError(record_id) from None
        row.status = RecordStatus(status).value
        row.reviewed_by = reviewed_by
        row.reviewed_at = reviewed_at
        row.rejection_reason = rejection_reason
        row.save(update_fields=[
            "status", "reviewed_by", "reviewed_at", "rejection_reason", "updated_at",
        ])
        return _to_domain(row)
