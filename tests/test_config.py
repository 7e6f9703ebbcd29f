"""
Tests for Settings and MatchingConfig
"""

import pytest
from pydantic import ValidationError

from invoice_matcher.config import Settings
from invoice_matcher.models import ConfidenceThresholds, MatchingConfig, StrategyId


class TestMatchingConfig:

    def test_defaults(self):
        config = MatchingConfig()

        assert config.weight(StrategyId.EXACT_SHIPMENT_ID) == 100
        assert config.base_confidence(StrategyId.DATE_AMOUNT_MATCH) == 0.75
        assert config.thresholds.excellent == 0.95
        assert config.date_window_days == 3
        assert config.amount_tolerance == 0.10
        assert config.max_confidence == 0.99
        assert "carrierBookingConfirmation.proNumber" in config.paths("tracking_number")
        assert config.limit(StrategyId.REFERENCE_NUMBER_MATCH) == 3

    def test_unknown_concept_has_no_paths(self):
        assert MatchingConfig().paths("nope") == []

    def test_field_paths_extendable_without_code(self):
        paths = MatchingConfig().field_paths
        paths["tracking_number"].append("legacy.awb")

        config = MatchingConfig(field_paths=paths)

        assert config.paths("tracking_number")[-1] == "legacy.awb"
        # Defaults untouched for other instances
        assert "legacy.awb" not in MatchingConfig().paths("tracking_number")

    @pytest.mark.parametrize("kwargs", [
        {"excellent": 0.80, "good": 0.85},  # overlapping ranges
        {"good": 0.70},  # equal to fair
        {"excellent": 1.0},
        {"poor": 0.0},
    ])
    def test_thresholds_must_be_strictly_descending(self, kwargs):
        with pytest.raises(ValidationError):
            ConfidenceThresholds(**kwargs)

    def test_cap_must_stay_below_one(self):
        with pytest.raises(ValidationError):
            MatchingConfig(max_confidence=1.0)

    def test_from_settings(self):
        settings = Settings(
            match_date_window_days=5,
            match_amount_tolerance=0.15,
            match_fuzzy_reference_enabled=True,
            match_max_concurrent_line_items=4,
        )

        config = MatchingConfig.from_settings(settings)

        assert config.date_window_days == 5
        assert config.amount_tolerance == 0.15
        assert config.fuzzy_reference_enabled is True
        assert config.carrier_date_enabled is False
        assert config.max_concurrent_line_items == 4


class TestSettings:

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MATCH_DATE_WINDOW_DAYS", "7")
        monkeypatch.setenv("MATCH_CARRIER_DATE_ENABLED", "true")
        monkeypatch.setenv("SHIPMENTS_COLLECTION", "shipments_v2")

        settings = Settings()

        assert settings.match_date_window_days == 7
        assert settings.match_carrier_date_enabled is True
        assert settings.shipments_collection == "shipments_v2"
