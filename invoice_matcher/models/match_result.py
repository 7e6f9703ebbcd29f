"""
Match Result Models
In-memory results of one matching run; nothing here is persisted by the engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from invoice_matcher.models.line_item import InvoiceLineItem
from invoice_matcher.models.matching_config import StrategyId

ShipmentRecord = Dict[str, Any]


class MatchStatus(str, Enum):
    """Status tier, best first"""
    EXCELLENT = "EXCELLENT_MATCH"  # Auto-apply
    GOOD = "GOOD_MATCH"
    FAIR = "FAIR_MATCH"
    POOR = "POOR_MATCH"
    NO_MATCH = "NO_MATCH"


@dataclass
class Candidate:
    """A shipment proposed by one strategy for one line item."""
    shipment: ShipmentRecord
    strategy_id: StrategyId
    match_field: str
    match_value: str

    @property
    def shipment_key(self) -> Optional[str]:
        """Identity used for deduplication: document id, then shipment number."""
        for key in ("id", "shipmentID", "shipmentId"):
            value = self.shipment.get(key)
            if value not in (None, ""):
                return str(value)
        return None


@dataclass
class ScoredCandidate:
    """Candidate with calibrated confidence and reviewer-facing explanation."""
    candidate: Candidate
    confidence: float
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def shipment(self) -> ShipmentRecord:
        return self.candidate.shipment

    @property
    def strategy_id(self) -> StrategyId:
        return self.candidate.strategy_id

    @property
    def shipment_key(self) -> Optional[str]:
        return self.candidate.shipment_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shipment_key": self.shipment_key,
            "strategy": self.candidate.strategy_id.value,
            "match_field": self.candidate.match_field,
            "match_value": self.candidate.match_value,
            "confidence": self.confidence,
            "details": self.details,
        }


@dataclass
class MatchResult:
    """Outcome for one invoice line item. line_item is None when the payload did not validate."""
    line_item: Optional[InvoiceLineItem]
    candidates: List[ScoredCandidate]
    status: MatchStatus
    review_required: bool
    line_item_index: int = 0
    error: Optional[str] = None
    strategy_failures: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def best_match(self) -> Optional[ScoredCandidate]:
        return self.candidates[0] if self.candidates else None

    @property
    def confidence(self) -> float:
        return self.candidates[0].confidence if self.candidates else 0.0

    def to_dict(self) -> Dict[str, Any]:
        best = self.best_match
        return {
            "line_item_index": self.line_item_index,
            "line_item": self.line_item.model_dump(mode="json") if self.line_item else None,
            "best_match": best.to_dict() if best else None,
            "confidence": self.confidence,
            "status": self.status.value,
            "review_required": self.review_required,
            "candidates": [c.to_dict() for c in self.candidates],
            "strategy_failures": list(self.strategy_failures),
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class BatchStats:
    """Tier counts across one invoice."""
    total_line_items: int = 0
    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0
    no_match: int = 0
    review_required: int = 0
    auto_applicable: int = 0
    failed: int = 0
    average_confidence: float = 0.0

    @classmethod
    def from_results(cls, results: List[MatchResult]) -> "BatchStats":
        stats = cls(total_line_items=len(results))
        tier_fields = {
            MatchStatus.EXCELLENT: "excellent",
            MatchStatus.GOOD: "good",
            MatchStatus.FAIR: "fair",
            MatchStatus.POOR: "poor",
            MatchStatus.NO_MATCH: "no_match",
        }
        for result in results:
            name = tier_fields[result.status]
            setattr(stats, name, getattr(stats, name) + 1)
            if result.review_required:
                stats.review_required += 1
            else:
                stats.auto_applicable += 1
            if result.error:
                stats.failed += 1
        if results:
            stats.average_confidence = round(
                sum(r.confidence for r in results) / len(results), 4
            )
        return stats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_line_items": self.total_line_items,
            "excellent": self.excellent,
            "good": self.good,
            "fair": self.fair,
            "poor": self.poor,
            "no_match": self.no_match,
            "review_required": self.review_required,
            "auto_applicable": self.auto_applicable,
            "failed": self.failed,
            "average_confidence": self.average_confidence,
        }


@dataclass
class BatchMatchResult:
    """
    Result of matching one invoice.
    Either success with every line item's result, or a single failure with no matches.
    """
    success: bool
    matches: List[MatchResult] = field(default_factory=list)
    stats: Optional[BatchStats] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "BatchMatchResult":
        return cls(success=False, matches=[], stats=None, error=error)

    @property
    def requires_review(self) -> bool:
        return any(m.review_required for m in self.matches)

    @property
    def auto_applicable(self) -> int:
        return sum(1 for m in self.matches if not m.review_required)

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error, "matches": []}
        return {
            "success": True,
            "matches": [m.to_dict() for m in self.matches],
            "stats": self.stats.to_dict() if self.stats else BatchStats().to_dict(),
            "requires_review": self.requires_review,
            "auto_applicable": self.auto_applicable,
        }
