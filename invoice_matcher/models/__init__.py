"""
Domain Models
"""

from invoice_matcher.models.line_item import InvoiceLineItem, LineItemReferences
from invoice_matcher.models.matching_config import (
    MatchingConfig,
    StrategyConfig,
    StrategyId,
    ConfidenceThresholds,
    ProximityBonus,
)
from invoice_matcher.models.match_result import (
    Candidate,
    ScoredCandidate,
    MatchResult,
    MatchStatus,
    BatchStats,
    BatchMatchResult,
    ShipmentRecord,
)

__all__ = [
    "InvoiceLineItem",
    "LineItemReferences",
    "MatchingConfig",
    "StrategyConfig",
    "StrategyId",
    "ConfidenceThresholds",
    "ProximityBonus",
    "Candidate",
    "ScoredCandidate",
    "MatchResult",
    "MatchStatus",
    "BatchStats",
    "BatchMatchResult",
    "ShipmentRecord",
]
