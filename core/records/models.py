"""
HotelOps Records — Django Models
==================================
StoredRecord is the database shape of an OperationalRecord.

RULES:
- Rows are inserted, never rewritten or deleted
- Corrections and deletions are new rows under the same original_id
- The only permitted update is the review outcome
  (status, reviewed_by, reviewed_at, rejection_reason)

InventoryCategory / InventoryItem are plain CRUD tables; when a
deployment manages configuration there instead of as records, the
config graph reads them through TableConfigSource.
"""

import uuid

from django.db import models


REVIEW_FIELDS = frozenset({
    "status", "reviewed_by", "reviewed_at", "rejection_reason", "updated_at",
})


class RecordStatusChoices(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    ARCHIVED = "archived", "Archived"


class DepartmentChoices(models.TextChoices):
    FRONT_DESK = "front_desk", "Front Desk"
    SUPERVISOR = "supervisor", "Supervisor"
    MANAGER = "manager", "Manager"
    ADMIN = "admin", "Admin"
    KITCHEN = "kitchen", "Kitchen"
    BAR = "bar", "Bar"
    STOREKEEPER = "storekeeper", "Storekeeper"


# ══════════════════════════════════════════════════════════════
# OPERATIONAL RECORD LOG
# ══════════════════════════════════════════════════════════════

class StoredRecord(models.Model):

    # ── Identity & Versioning ─────────────────────────────────
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    original_id = models.UUIDField(
        help_text="Groups all versions of one logical entity.",
    )
    version_no = models.PositiveIntegerField(default=1)
    previous_version_id = models.UUIDField(null=True, blank=True)

    # ── Classification & Payload ──────────────────────────────
    entity_type = models.CharField(max_length=32, choices=DepartmentChoices.choices)
    data = models.JSONField(
        help_text="Tagged payload; data.type selects the variant.",
    )
    financial_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=0,
    )

    # ── Review ────────────────────────────────────────────────
    status = models.CharField(
        max_length=16,
        choices=RecordStatusChoices.choices,
        default=RecordStatusChoices.PENDING,
    )
    submitted_by = models.CharField(max_length=255, null=True, blank=True)
    reviewed_by = models.CharField(max_length=255, null=True, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(null=True, blank=True)

    # ── Temporal ──────────────────────────────────────────────
    created_at = models.DateTimeField()
    deleted_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "hotelops_operational_records"
        ordering = ["original_id", "version_no", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["original_id", "version_no"],
                name="uq_record_original_version",
            ),
        ]
        indexes = [
            models.Index(fields=["original_id", "version_no"], name="idx_rec_original_version"),
            models.Index(fields=["entity_type", "status"], name="idx_rec_entity_status"),
            models.Index(fields=["created_at"], name="idx_rec_created"),
        ]

    # ══════════════════════════════════════════════════════════
    # IMMUTABILITY GUARDS
    # ══════════════════════════════════════════════════════════

    def save(self, *args, **kwargs):
        """
        GUARD: INSERT, or an update limited to the review columns.
        """
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if not update_fields or not set(update_fields) <= REVIEW_FIELDS:
                raise PermissionError(
                    "Operational records are immutable. Only the review "
                    "outcome may be updated; corrections must be a new version."
                )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError(
            "Operational records are never deleted. "
            "Insert a version with deleted_at set instead."
        )

    def __str__(self):
        return f"[{self.data.get('type')}] {self.id} v{self.version_no} ({self.status})"


# ══════════════════════════════════════════════════════════════
# CONFIGURATION TABLES
# ══════════════════════════════════════════════════════════════

class InventoryCategory(models.Model):
    name = models.CharField(max_length=120, unique=True)
    assigned_to = models.JSONField(
        default=list, blank=True,
        help_text="Role list, or a {role: bool} map.",
    )
    active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "hotelops_inventory_categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class InventoryItem(models.Model):
    item_name = models.CharField(max_length=120, unique=True)
    category = models.ForeignKey(
        InventoryCategory, on_delete=models.PROTECT, related_name="items",
    )
    collection = models.CharField(max_length=60, blank=True, default="")
    unit = models.CharField(max_length=30, blank=True, default="")
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "hotelops_inventory_items"
        ordering = ["item_name"]

    def __str__(self):
        return self.item_name
