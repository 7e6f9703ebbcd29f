"""
Explainability Builder

Produces JSON-ready match explanations for billing reviewers.

Each payload says which strategy fired, on which shipment field and value,
the base confidence, and every bonus that moved the score. Reviewers read it
in the AP review screen; developers use it for threshold tuning.
"""

from typing import TYPE_CHECKING, Dict, Optional

from invoice_matcher.services.matching.shipment_fields import (
    company_id,
    get_path,
    shipment_number,
)

if TYPE_CHECKING:
    from invoice_matcher.models.line_item import InvoiceLineItem
    from invoice_matcher.models.match_result import Candidate


class ExplainabilityBuilder:
    """Build explanation payloads for scored candidates."""

    VERSION = "v1.0"  # Track explanation schema version

    @staticmethod
    def build(
        candidate: "Candidate",
        line_item: "InvoiceLineItem",
        base_confidence: float,
        bonuses: Dict[str, float],
        final_confidence: float,
        shipment_amount: float,
        days_apart: Optional[float] = None,
        amount_difference: Optional[float] = None,
        capped: bool = False,
    ) -> dict:
        """
        Build explanation payload.

        Args:
            candidate: Deduplicated candidate being scored
            line_item: Invoice line item it was matched for
            base_confidence: Strategy base confidence
            bonuses: Bonus name -> delta actually applied (0.0 when not earned)
            final_confidence: Score after bonuses and cap
            shipment_amount: Shipment total charge used for the amount check
            days_apart: Fractional days between booking and invoice ship date
            amount_difference: Relative amount difference (0.03 = 3%)
            capped: Whether the max-confidence cap cut the score

        Returns:
            Dict suitable for ScoredCandidate.details

        Example:
            >>> payload = ExplainabilityBuilder.build(candidate, line_item, 0.95,
            ...     {"date_proximity": 0.05}, 0.99, 412.50)
            >>> payload["strategy"]
            'EXACT_TRACKING_NUMBER'
        """
        shipment = candidate.shipment
        return {
            "version": ExplainabilityBuilder.VERSION,
            "strategy": candidate.strategy_id.value,
            "field": candidate.match_field,
            "value": candidate.match_value,
            "base_confidence": base_confidence,
            "bonuses": {name: round(delta, 4) for name, delta in bonuses.items()},
            "final_confidence": final_confidence,
            "capped": capped,
            "shipment_id": shipment_number(shipment),
            "company_id": company_id(shipment),
            "tracking_number": get_path(shipment, "trackingNumber"),
            "amount": shipment_amount,
            "invoice_amount": line_item.total_amount,
            "days_apart": round(days_apart, 2) if days_apart is not None else None,
            "amount_difference": round(amount_difference, 4) if amount_difference is not None else None,
        }
