"""
HotelOps Core — Records App Configuration
===========================================
The append-only operational record log and the first-class
configuration tables.

This app:
- Persists immutable record versions
- Permits review-column updates only (status, reviewer, reason)
- Holds category / item tables as an alternative config source

This app does NOT interpret payloads; engines do.
"""

from django.apps import AppConfig


class RecordsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.records"
    label = "records"
    verbose_name = "HotelOps Operational Records"
