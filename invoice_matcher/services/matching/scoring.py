"""
Confidence Scorer

Turns a strategy's fixed base confidence into a calibrated score by adding
independent bonuses for corroborating evidence: booking date close to the
invoice ship date, similar amount, same carrier, same service level.
Scores are capped below 1.0: no heuristic match is ever certain.
"""

from typing import TYPE_CHECKING, List, Optional

import structlog

from invoice_matcher.models.match_result import ScoredCandidate
from invoice_matcher.models.matching_config import MatchingConfig
from invoice_matcher.services.matching.explainability import ExplainabilityBuilder
from invoice_matcher.services.matching.shipment_fields import (
    booked_at,
    service_type,
    text_overlaps,
    to_utc_datetime,
    total_charge,
)

if TYPE_CHECKING:
    from invoice_matcher.models.line_item import InvoiceLineItem
    from invoice_matcher.models.match_result import Candidate

logger = structlog.get_logger(__name__)

SECONDS_PER_DAY = 86400


class ConfidenceScorer:
    """
    Score deduplicated candidates for one line item.

    Usage:
        scorer = ConfidenceScorer(MatchingConfig())
        ranked = scorer.score_all(candidates, line_item)
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        self.config = config or MatchingConfig()

    def score(self, candidate: "Candidate", line_item: "InvoiceLineItem") -> ScoredCandidate:
        config = self.config
        shipment = candidate.shipment
        base = config.base_confidence(candidate.strategy_id)

        bonuses = {
            "date_proximity": 0.0,
            "amount_proximity": 0.0,
            "carrier": 0.0,
            "service_level": 0.0,
        }

        days_apart = None
        booked = booked_at(shipment, self._booked_at_path())
        shipped = to_utc_datetime(line_item.shipment_date)
        if booked is not None and shipped is not None:
            days_apart = abs((booked - shipped).total_seconds()) / SECONDS_PER_DAY
            bonuses["date_proximity"] = config.date_bonus.bonus_for(days_apart)

        amount_difference = None
        shipment_amount = total_charge(shipment)
        if line_item.total_amount and line_item.total_amount > 0 and shipment_amount > 0:
            amount_difference = abs(line_item.total_amount - shipment_amount) / shipment_amount
            bonuses["amount_proximity"] = config.amount_bonus.bonus_for(amount_difference)

        if text_overlaps(line_item.carrier, shipment.get("carrier")):
            bonuses["carrier"] = config.carrier_bonus

        if text_overlaps(line_item.service_type, service_type(shipment)):
            bonuses["service_level"] = config.service_bonus

        raw = base + sum(bonuses.values())
        # Rounding keeps 0.75 + 0.02 + 0.05 at exactly 0.82 for tier comparisons
        confidence = round(min(raw, config.max_confidence), 4)

        details = ExplainabilityBuilder.build(
            candidate=candidate,
            line_item=line_item,
            base_confidence=base,
            bonuses=bonuses,
            final_confidence=confidence,
            shipment_amount=shipment_amount,
            days_apart=days_apart,
            amount_difference=amount_difference,
            capped=raw > config.max_confidence,
        )

        logger.debug("candidate_scored",
                     shipment_key=candidate.shipment_key,
                     strategy=candidate.strategy_id.value,
                     base=base,
                     confidence=confidence,
                     bonuses=bonuses)

        return ScoredCandidate(candidate=candidate, confidence=confidence, details=details)

    def score_all(
        self,
        candidates: List["Candidate"],
        line_item: "InvoiceLineItem"
    ) -> List[ScoredCandidate]:
        """Score and rank, highest confidence first (stable for ties)."""
        scored = [self.score(c, line_item) for c in candidates]
        scored.sort(key=lambda s: s.confidence, reverse=True)
        return scored

    def _booked_at_path(self) -> str:
        paths = self.config.paths("booked_at")
        return paths[0] if paths else "bookedAt"
