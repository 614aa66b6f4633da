"""
Tests for core.config — HOTELOPS settings loading.
"""

from decimal import Decimal

import pytest

from core.config import HotelOpsSettings, load_settings, quantize_money


class TestHotelOpsSettings:
    def test_defaults(self):
        settings = HotelOpsSettings()
        assert settings.batch_chunk_size == 50
        assert settings.batch_max_attempts == 3
        assert settings.batch_backoff_seconds == 0.4
        assert settings.checkout_clearance_statuses == ("clean", "inspected")
        assert settings.default_collection == "Provisions"

    def test_from_mapping_coerces_statuses(self):
        settings = HotelOpsSettings.from_mapping({"checkout_clearance_statuses": ["inspected"]})
        assert settings.checkout_clearance_statuses == ("inspected",)

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown HOTELOPS settings: chunk"):
            HotelOpsSettings.from_mapping({"chunk": 5})

    @pytest.mark.parametrize("field, value", [
        ("batch_chunk_size", 0),
        ("batch_max_attempts", 0),
        ("batch_backoff_seconds", -1),
        ("config_cache_size", 0),
        ("checkout_clearance_statuses", ()),
        ("default_collection", ""),
    ])
    def test_invalid_values_fail_at_load(self, field, value):
        with pytest.raises(ValueError, match=field):
            HotelOpsSettings(**{field: value})

    def test_load_from_django_settings(self, settings):
        settings.HOTELOPS = {"batch_chunk_size": 7}
        loaded = load_settings(reload=True)
        assert loaded.batch_chunk_size == 7
        assert loaded.batch_max_attempts == 3
        assert load_settings() is loaded
        settings.HOTELOPS = {}
        assert load_settings(reload=True).batch_chunk_size == 50

    def test_quantize_money(self):
        assert quantize_money(Decimal("2.346")) == Decimal("2.35")
        assert quantize_money(Decimal("3")) == Decimal("3.00")
