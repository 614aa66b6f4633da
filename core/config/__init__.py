"""
HotelOps Core Config — Public API
===================================
Operational settings loaded from Django settings.
"""

from core.config.settings import (
    HotelOpsSettings,
    load_settings,
    quantize_money,
)

__all__ = [
    "HotelOpsSettings",
    "load_settings",
    "quantize_money",
]
