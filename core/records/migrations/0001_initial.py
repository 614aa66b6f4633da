import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StoredRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("original_id", models.UUIDField(help_text="Groups all versions of one logical entity.")),
                ("version_no", models.PositiveIntegerField(default=1)),
                ("previous_version_id", models.UUIDField(blank=True, null=True)),
                ("entity_type", models.CharField(
                    choices=[
                        ("front_desk", "Front Desk"), ("supervisor", "Supervisor"),
                        ("manager", "Manager"), ("admin", "Admin"), ("kitchen", "Kitchen"),
                        ("bar", "Bar"), ("storekeeper", "Storekeeper"),
                    ],
                    max_length=32,
                )),
                ("data", models.JSONField(help_text="Tagged payload; data.type selects the variant.")),
                ("financial_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending"), ("approved", "Approved"),
                        ("rejected", "Rejected"), ("archived", "Archived"),
                    ],
                    default="pending",
                    max_length=16,
                )),
                ("submitted_by", models.CharField(blank=True, max_length=255, null=True)),
                ("reviewed_by", models.CharField(blank=True, max_length=255, null=True)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "hotelops_operational_records",
                "ordering": ["original_id", "version_no", "created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="storedrecord",
            constraint=models.UniqueConstraint(
                fields=("original_id", "version_no"),
                name="uq_record_original_version",
            ),
        ),
        migrations.AddIndex(
            model_name="storedrecord",
            index=models.Index(fields=["original_id", "version_no"], name="idx_rec_original_version"),
        ),
        migrations.AddIndex(
            model_name="storedrecord",
            index=models.Index(fields=["entity_type", "status"], name="idx_rec_entity_status"),
        ),
        migrations.AddIndex(
            model_name="storedrecord",
            index=models.Index(fields=["created_at"], name="idx_rec_created"),
        ),
        migrations.CreateModel(
            name="InventoryCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True)),
                ("assigned_to", models.JSONField(blank=True, default=list, help_text="Role list, or a {role: bool} map.")),
                ("active", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "hotelops_inventory_categories",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_name", models.CharField(max_length=120, unique=True)),
                ("collection", models.CharField(blank=True, default="", max_length=60)),
                ("unit", models.CharField(blank=True, default="", max_length=30)),
                ("unit_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("active", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("category", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="items",
                    to="records.inventorycategory",
                )),
            ],
            options={
                "db_table": "hotelops_inventory_items",
                "ordering": ["item_name"],
            },
        ),
    ]
