"""
Matching Engine Service Package

Provides candidate strategies, deduplication, confidence scoring, tier
classification and explainability for matching invoice lines to shipments.
"""

from invoice_matcher.services.matching.explainability import ExplainabilityBuilder
from invoice_matcher.services.matching.deduplication import Deduplicator
from invoice_matcher.services.matching.scoring import ConfidenceScorer
from invoice_matcher.services.matching.classifier import MatchClassifier, Classification
from invoice_matcher.services.matching.strategies import (
    MatchingStrategy,
    FieldLookupStrategy,
    DateWindowStrategy,
    ExactShipmentIdStrategy,
    TrackingNumberStrategy,
    BookingReferenceStrategy,
    ReferenceNumberStrategy,
    DateAmountStrategy,
    FuzzyReferenceStrategy,
    CarrierDateStrategy,
    CandidateGenerator,
    GenerationResult,
)

__all__ = [
    # Explainability
    "ExplainabilityBuilder",
    # Pipeline stages
    "CandidateGenerator",
    "GenerationResult",
    "Deduplicator",
    "ConfidenceScorer",
    "MatchClassifier",
    "Classification",
    # Strategies
    "MatchingStrategy",
    "FieldLookupStrategy",
    "DateWindowStrategy",
    "ExactShipmentIdStrategy",
    "TrackingNumberStrategy",
    "BookingReferenceStrategy",
    "ReferenceNumberStrategy",
    "DateAmountStrategy",
    "FuzzyReferenceStrategy",
    "CarrierDateStrategy",
]
