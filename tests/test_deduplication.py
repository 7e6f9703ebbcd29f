"""
Tests for Deduplicator
"""

from invoice_matcher.models import Candidate, MatchingConfig, StrategyConfig, StrategyId
from invoice_matcher.services.matching import Deduplicator


def candidate(shipment_id, strategy_id, field="f", value="v", **extra):
    shipment = {"id": shipment_id, **extra} if shipment_id else dict(extra)
    return Candidate(shipment=shipment, strategy_id=strategy_id, match_field=field, match_value=value)


class TestDeduplicator:

    def test_strongest_strategy_wins(self):
        raw = [
            candidate("s1", StrategyId.DATE_AMOUNT_MATCH),
            candidate("s1", StrategyId.EXACT_BOOKING_REFERENCE),
            candidate("s1", StrategyId.EXACT_TRACKING_NUMBER),
            candidate("s1", StrategyId.REFERENCE_NUMBER_MATCH),
        ]

        unique = Deduplicator().deduplicate(raw)

        assert len(unique) == 1
        assert unique[0].strategy_id == StrategyId.EXACT_TRACKING_NUMBER

    def test_tie_keeps_first_encountered(self):
        raw = [
            candidate("s1", StrategyId.EXACT_TRACKING_NUMBER, field="trackingNumber"),
            candidate("s1", StrategyId.EXACT_TRACKING_NUMBER, field="selectedRate.Barcode"),
        ]

        unique = Deduplicator().deduplicate(raw)

        assert unique[0].match_field == "trackingNumber"

    def test_distinct_shipments_kept_in_first_seen_order(self):
        raw = [
            candidate("s2", StrategyId.REFERENCE_NUMBER_MATCH),
            candidate("s1", StrategyId.EXACT_TRACKING_NUMBER),
            candidate("s2", StrategyId.EXACT_SHIPMENT_ID),
        ]

        unique = Deduplicator().deduplicate(raw)

        assert [c.shipment_key for c in unique] == ["s2", "s1"]
        assert unique[0].strategy_id == StrategyId.EXACT_SHIPMENT_ID

    def test_identity_is_explicit_key_not_document_shape(self):
        # Same shipment returned with differently ordered / extra fields
        raw = [
            candidate("s1", StrategyId.REFERENCE_NUMBER_MATCH, a=1, b=2),
            candidate("s1", StrategyId.EXACT_BOOKING_REFERENCE, b=2, a=1, c=3),
        ]

        assert len(Deduplicator().deduplicate(raw)) == 1

    def test_shipment_number_used_without_document_id(self):
        raw = [
            candidate(None, StrategyId.REFERENCE_NUMBER_MATCH, shipmentID="IC-1"),
            candidate(None, StrategyId.EXACT_BOOKING_REFERENCE, shipmentID="IC-1"),
        ]

        unique = Deduplicator().deduplicate(raw)

        assert len(unique) == 1
        assert unique[0].strategy_id == StrategyId.EXACT_BOOKING_REFERENCE

    def test_candidates_without_identity_dropped(self):
        raw = [candidate(None, StrategyId.EXACT_TRACKING_NUMBER, carrier="UPS")]
        assert Deduplicator().deduplicate(raw) == []

    def test_weights_come_from_config(self):
        config = MatchingConfig(strategies={
            StrategyId.DATE_AMOUNT_MATCH: StrategyConfig(weight=200, base_confidence=0.75),
            StrategyId.EXACT_TRACKING_NUMBER: StrategyConfig(weight=90, base_confidence=0.95),
        })
        raw = [
            candidate("s1", StrategyId.EXACT_TRACKING_NUMBER),
            candidate("s1", StrategyId.DATE_AMOUNT_MATCH),
        ]

        unique = Deduplicator(config).deduplicate(raw)

        assert unique[0].strategy_id == StrategyId.DATE_AMOUNT_MATCH

    def test_empty(self):
        assert Deduplicator().deduplicate([]) == []
