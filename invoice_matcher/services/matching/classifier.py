"""
Match Classifier
Maps the best candidate's confidence to a status tier and review decision

- EXCELLENT (>= 0.95): auto-apply
- GOOD (>= 0.85): apply, review recommended
- FAIR (>= 0.70): manual review required
- POOR (>= 0.50): likely no match, manual review
- below POOR, or no candidates: NO_MATCH, manual review
"""

from dataclasses import dataclass
from typing import List, Optional

from invoice_matcher.models.match_result import MatchStatus, ScoredCandidate
from invoice_matcher.models.matching_config import ConfidenceThresholds


@dataclass(frozen=True)
class Classification:
    """Tier decision with context"""
    status: MatchStatus
    confidence: float
    review_required: bool
    reason: str  # Human-readable explanation


class MatchClassifier:
    """
    Pure tier classification; same input always gives the same tier.

    Lower bounds are inclusive: exactly 0.95 is EXCELLENT, not GOOD.
    """

    def __init__(self, thresholds: Optional[ConfidenceThresholds] = None):
        self.thresholds = thresholds or ConfidenceThresholds()

    def tier_for(self, confidence: float) -> MatchStatus:
        t = self.thresholds
        if confidence >= t.excellent:
            return MatchStatus.EXCELLENT
        if confidence >= t.good:
            return MatchStatus.GOOD
        if confidence >= t.fair:
            return MatchStatus.FAIR
        if confidence >= t.poor:
            return MatchStatus.POOR
        return MatchStatus.NO_MATCH

    def classify(self, ranked: List[ScoredCandidate]) -> Classification:
        """
        Classify a ranked candidate list (best first).

        Args:
            ranked: Scored candidates sorted by descending confidence

        Returns:
            Classification with status, best confidence and review flag
        """
        if not ranked:
            return Classification(
                status=MatchStatus.NO_MATCH,
                confidence=0.0,
                review_required=True,
                reason="No candidate shipments found",
            )

        best = ranked[0].confidence
        status = self.tier_for(best)
        review_required = best < self.thresholds.good

        if review_required:
            reason = f"Best confidence {best:.2f} < {self.thresholds.good:.2f} (good threshold)"
        else:
            reason = f"Best confidence {best:.2f} >= {self.thresholds.good:.2f} (good threshold)"

        return Classification(
            status=status,
            confidence=best,
            review_required=review_required,
            reason=reason,
        )
