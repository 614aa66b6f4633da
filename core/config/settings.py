"""
HotelOps Core Config — Operational Settings
=============================================
Tunable knobs for the projection engine, read from the Django
``HOTELOPS`` settings dict. Missing keys fall back to defaults;
invalid values fail at load time, not mid-operation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class HotelOpsSettings:
    """
    Operational settings.

    batch_chunk_size          — records per insert call in a write burst
    batch_max_attempts        — attempts per chunk before giving up
    batch_backoff_seconds     — linear backoff base (base × attempt)
    config_cache_size         — config graph versions kept in memory
    checkout_clearance_statuses — housekeeping states that allow checkout
    default_collection        — collection for unassigned storekeeper items
    remote_aggregation_enabled — probe remote stock procedures at all
    """

    batch_chunk_size: int = 50
    batch_max_attempts: int = 3
    batch_backoff_seconds: float = 0.4
    config_cache_size: int = 32
    checkout_clearance_statuses: Tuple[str, ...] = ("clean", "inspected")
    default_collection: str = "Provisions"
    remote_aggregation_enabled: bool = True

    def __post_init__(self) -> None:
        if self.batch_chunk_size < 1:
            raise ValueError("batch_chunk_size must be >= 1.")
        if self.batch_max_attempts < 1:
            raise ValueError("batch_max_attempts must be >= 1.")
        if self.batch_backoff_seconds < 0:
            raise ValueError("batch_backoff_seconds must be >= 0.")
        if self.config_cache_size < 1:
            raise ValueError("config_cache_size must be >= 1.")
        if not self.checkout_clearance_statuses:
            raise ValueError("checkout_clearance_statuses must be non-empty.")
        if not self.default_collection:
            raise ValueError("default_collection must be non-empty.")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "HotelOpsSettings":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(
                f"Unknown HOTELOPS settings: {', '.join(sorted(unknown))}."
            )
        kwargs = dict(values)
        if "checkout_clearance_statuses" in kwargs:
            kwargs["checkout_clearance_statuses"] = tuple(
                kwargs["checkout_clearance_statuses"]
            )
        return cls(**kwargs)


_loaded: Optional[HotelOpsSettings] = None


def load_settings(*, reload: bool = False) -> HotelOpsSettings:
    """Load settings from django.conf.settings.HOTELOPS (cached)."""
    global _loaded
    if _loaded is None or reload:
        from django.conf import settings

        values = getattr(settings, "HOTELOPS", {}) if settings.configured else {}
        _loaded = HotelOpsSettings.from_mapping(values)
    return _loaded


MONEY_QUANT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents."""
    return Decimal(value).quantize(MONEY_QUANT)
