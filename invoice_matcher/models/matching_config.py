"""
MatchingConfig Model
Strategy weights, base confidences, tier thresholds and tolerances for the matching engine.

Supplied at engine construction so thresholds can be tuned (and tested)
without touching the matching code. Defaults reproduce production behaviour.
"""

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from invoice_matcher.config import Settings


class StrategyId(str, Enum):
    """Matching strategies, strongest evidence first"""
    EXACT_SHIPMENT_ID = "EXACT_SHIPMENT_ID"
    EXACT_TRACKING_NUMBER = "EXACT_TRACKING_NUMBER"
    EXACT_BOOKING_REFERENCE = "EXACT_BOOKING_REFERENCE"
    REFERENCE_NUMBER_MATCH = "REFERENCE_NUMBER_MATCH"
    DATE_AMOUNT_MATCH = "DATE_AMOUNT_MATCH"
    FUZZY_REFERENCE_MATCH = "FUZZY_REFERENCE_MATCH"
    CARRIER_DATE_MATCH = "CARRIER_DATE_MATCH"


class StrategyConfig(BaseModel):
    """
    weight: static ranking used by deduplication (higher wins)
    base_confidence: starting score before corroborating bonuses
    """
    weight: int
    base_confidence: float = Field(..., ge=0.0, le=1.0)


DEFAULT_STRATEGIES: Dict[StrategyId, StrategyConfig] = {
    StrategyId.EXACT_SHIPMENT_ID: StrategyConfig(weight=100, base_confidence=0.98),
    StrategyId.EXACT_TRACKING_NUMBER: StrategyConfig(weight=90, base_confidence=0.95),
    StrategyId.EXACT_BOOKING_REFERENCE: StrategyConfig(weight=85, base_confidence=0.92),
    StrategyId.REFERENCE_NUMBER_MATCH: StrategyConfig(weight=70, base_confidence=0.80),
    StrategyId.DATE_AMOUNT_MATCH: StrategyConfig(weight=60, base_confidence=0.75),
    StrategyId.FUZZY_REFERENCE_MATCH: StrategyConfig(weight=40, base_confidence=0.65),
    StrategyId.CARRIER_DATE_MATCH: StrategyConfig(weight=30, base_confidence=0.55),
}

# Shipment documents carry the same concept under several legacy paths
# (booking-API payloads, quick-ship forms, older schema versions).
# Supporting a new legacy path is a change to this table only.
DEFAULT_FIELD_PATHS: Dict[str, List[str]] = {
    "shipment_id": [
        "shipmentID",
        "shipmentId",
        "id",
    ],
    "tracking_number": [
        "trackingNumber",
        "carrierBookingConfirmation.trackingNumber",
        "carrierBookingConfirmation.proNumber",
        "carrierBookingConfirmation.confirmationNumber",
        "selectedRate.TrackingNumber",
        "selectedRate.Barcode",
        "selectedRateRef.TrackingNumber",
        "selectedRateRef.Barcode",
        "bookingReferenceNumber",
    ],
    "booking_reference": [
        "selectedRate.BookingReferenceNumber",
        "selectedRateRef.BookingReferenceNumber",
        "bookingReferenceNumber",
        "carrierBookingConfirmation.bookingReferenceNumber",
        "referenceNumber",
        "shipperReferenceNumber",
    ],
    "reference_number": [
        "shipmentInfo.shipperReferenceNumber",
        "shipmentInfo.customerReference",
        "shipmentInfo.referenceNumber",
        "referenceNumber",
        "shipperReferenceNumber",
    ],
    "booked_at": [
        "bookedAt",
    ],
}


class ConfidenceThresholds(BaseModel):
    """Inclusive lower bounds of each status tier"""
    excellent: float = 0.95  # Auto-apply
    good: float = 0.85  # Review recommended
    fair: float = 0.70  # Manual review required
    poor: float = 0.50  # Likely no match

    @model_validator(mode="after")
    def _check_order(self) -> "ConfidenceThresholds":
        ordered = [self.excellent, self.good, self.fair, self.poor]
        if any(not 0.0 < t < 1.0 for t in ordered):
            raise ValueError("thresholds must lie strictly between 0 and 1")
        if any(a <= b for a, b in zip(ordered, ordered[1:])):
            raise ValueError("thresholds must be strictly descending: excellent > good > fair > poor")
        return self


class ProximityBonus(BaseModel):
    """Two-step bonus: `near_bonus` within `near`, `far_bonus` within `far`."""
    near: float
    near_bonus: float
    far: float
    far_bonus: float

    def bonus_for(self, distance: float) -> float:
        if distance <= self.near:
            return self.near_bonus
        if distance <= self.far:
            return self.far_bonus
        return 0.0


class MatchingConfig(BaseModel):
    """
    Everything the engine needs to decide, in one place.

    Usage:
        config = MatchingConfig(thresholds=ConfidenceThresholds(good=0.80))
        engine = ShipmentMatchingEngine(repository, config=config)
    """
    strategies: Dict[StrategyId, StrategyConfig] = Field(
        default_factory=lambda: dict(DEFAULT_STRATEGIES)
    )
    field_paths: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_FIELD_PATHS.items()}
    )
    thresholds: ConfidenceThresholds = Field(default_factory=ConfidenceThresholds)

    # Bonuses
    date_bonus: ProximityBonus = ProximityBonus(near=1, near_bonus=0.05, far=3, far_bonus=0.02)
    amount_bonus: ProximityBonus = ProximityBonus(near=0.05, near_bonus=0.05, far=0.10, far_bonus=0.02)
    carrier_bonus: float = 0.03
    service_bonus: float = 0.02
    max_confidence: float = Field(0.99, gt=0.0, lt=1.0)
    unknown_strategy_confidence: float = 0.5

    # Candidate generation
    date_window_days: int = Field(3, ge=0)
    amount_tolerance: float = Field(0.10, gt=0.0)
    fuzzy_reference_min_score: float = Field(85.0, ge=0.0, le=100.0)
    query_limits: Dict[StrategyId, int] = Field(default_factory=lambda: {
        StrategyId.EXACT_SHIPMENT_ID: 10,
        StrategyId.EXACT_TRACKING_NUMBER: 5,
        StrategyId.EXACT_BOOKING_REFERENCE: 5,
        StrategyId.REFERENCE_NUMBER_MATCH: 3,
        StrategyId.DATE_AMOUNT_MATCH: 20,
        StrategyId.FUZZY_REFERENCE_MATCH: 20,
        StrategyId.CARRIER_DATE_MATCH: 20,
    })

    # Feature toggles
    fuzzy_reference_enabled: bool = False
    carrier_date_enabled: bool = False
    references_as_shipment_ids: bool = False

    # Orchestration
    max_concurrent_line_items: int = Field(10, ge=1)

    def weight(self, strategy_id: StrategyId) -> int:
        strategy = self.strategies.get(strategy_id)
        return strategy.weight if strategy else 0

    def base_confidence(self, strategy_id: StrategyId) -> float:
        strategy = self.strategies.get(strategy_id)
        return strategy.base_confidence if strategy else self.unknown_strategy_confidence

    def paths(self, concept: str) -> List[str]:
        return self.field_paths.get(concept, [])

    def limit(self, strategy_id: StrategyId, default: int = 5) -> int:
        return self.query_limits.get(strategy_id, default)

    @classmethod
    def from_settings(cls, settings: Optional["Settings"] = None) -> "MatchingConfig":
        """Build config with environment overrides applied."""
        if settings is None:
            from invoice_matcher.config import settings
        return cls(
            date_window_days=settings.match_date_window_days,
            amount_tolerance=settings.match_amount_tolerance,
            max_concurrent_line_items=settings.match_max_concurrent_line_items,
            fuzzy_reference_enabled=settings.match_fuzzy_reference_enabled,
            carrier_date_enabled=settings.match_carrier_date_enabled,
            references_as_shipment_ids=settings.match_references_as_shipment_ids,
        )
