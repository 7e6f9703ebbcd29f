"""
Carrier Invoice Matcher

Reconciles carrier invoice line items against existing shipment records.
"""

from invoice_matcher.models import (
    InvoiceLineItem,
    MatchingConfig,
    MatchResult,
    MatchStatus,
    BatchMatchResult,
    BatchStats,
)
from invoice_matcher.services.repository import ShipmentRepository, InMemoryShipmentRepository
from invoice_matcher.services.matching_engine import ShipmentMatchingEngine

__all__ = [
    "InvoiceLineItem",
    "MatchingConfig",
    "MatchResult",
    "MatchStatus",
    "BatchMatchResult",
    "BatchStats",
    "ShipmentRepository",
    "InMemoryShipmentRepository",
    "ShipmentMatchingEngine",
]
