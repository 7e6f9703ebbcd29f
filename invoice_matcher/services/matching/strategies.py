"""
Matching Strategy Implementations

Each strategy independently proposes shipments for one invoice line item:
- exact lookups of an invoice value against a list of shipment field paths
- date-window lookups filtered locally (amount, fuzzy reference, carrier)

The CandidateGenerator runs every applicable strategy and concatenates the
raw, possibly duplicated candidates. A failing strategy contributes nothing;
it never aborts generation.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Collection, List, Optional, Tuple

import structlog
from rapidfuzz import fuzz

from invoice_matcher.exceptions import StrategyQueryError
from invoice_matcher.models.match_result import Candidate, ShipmentRecord
from invoice_matcher.models.matching_config import MatchingConfig, StrategyId
from invoice_matcher.services.matching.shipment_fields import (
    get_path,
    is_accessible,
    text_overlaps,
    to_utc_datetime,
    total_charge,
)

if TYPE_CHECKING:
    from invoice_matcher.models.line_item import InvoiceLineItem
    from invoice_matcher.services.repository import ShipmentRepository

logger = structlog.get_logger(__name__)


async def _gather_all(coros: List[Any]) -> List[Any]:
    """Run queries concurrently; re-raise the first failure once all have settled."""
    results = await asyncio.gather(*coros, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class MatchingStrategy(ABC):
    """Base class for candidate strategies."""

    strategy_id: StrategyId

    def __init__(self, repository: "ShipmentRepository", config: MatchingConfig):
        self.repository = repository
        self.config = config

    @property
    def limit(self) -> int:
        return self.config.limit(self.strategy_id)

    @abstractmethod
    def applies_to(self, line_item: "InvoiceLineItem") -> bool:
        """Whether the line item carries the inputs this strategy needs."""
        pass

    @abstractmethod
    async def find(self, line_item: "InvoiceLineItem") -> List[Candidate]:
        """
        Query the repository for candidate shipments.

        Args:
            line_item: Invoice line item to match

        Returns:
            Raw candidates, not yet filtered by access scope
        """
        pass


class FieldLookupStrategy(MatchingStrategy):
    """
    Equality lookups: every invoice value against every field path of one concept.

    Subclasses only declare the concept and which invoice values to try.
    """

    concept: str

    @abstractmethod
    def values(self, line_item: "InvoiceLineItem") -> List[str]:
        pass

    def field_paths(self) -> List[str]:
        return self.config.paths(self.concept)

    def applies_to(self, line_item: "InvoiceLineItem") -> bool:
        return bool(self.values(line_item))

    async def find(self, line_item: "InvoiceLineItem") -> List[Candidate]:
        lookups: List[Tuple[str, str]] = [
            (value, path)
            for value in self.values(line_item)
            for path in self.field_paths()
        ]
        results = await _gather_all([
            self.repository.find_by_field(path, value, self.limit)
            for value, path in lookups
        ])

        candidates = []
        for (value, path), shipments in zip(lookups, results):
            for shipment in shipments:
                candidates.append(Candidate(
                    shipment=shipment,
                    strategy_id=self.strategy_id,
                    match_field=path,
                    match_value=value,
                ))
        return candidates


class ExactShipmentIdStrategy(FieldLookupStrategy):
    """Line item's own shipment id against shipment id field variants."""

    strategy_id = StrategyId.EXACT_SHIPMENT_ID
    concept = "shipment_id"

    def values(self, line_item: "InvoiceLineItem") -> List[str]:
        values = [line_item.own_shipment_id] if line_item.own_shipment_id else []
        if self.config.references_as_shipment_ids:
            # Shippers often print our shipment id in a reference box
            values.extend(ref for ref in line_item.references.lookup_values() if ref not in values)
        return values


class TrackingNumberStrategy(FieldLookupStrategy):
    """Tracking/PRO/barcode number against current and legacy tracking paths."""

    strategy_id = StrategyId.EXACT_TRACKING_NUMBER
    concept = "tracking_number"

    def values(self, line_item: "InvoiceLineItem") -> List[str]:
        return [line_item.tracking_number] if line_item.tracking_number else []


class BookingReferenceStrategy(FieldLookupStrategy):
    """Every invoice reference against booking-reference paths."""

    strategy_id = StrategyId.EXACT_BOOKING_REFERENCE
    concept = "booking_reference"

    def values(self, line_item: "InvoiceLineItem") -> List[str]:
        return line_item.references.lookup_values()


class ReferenceNumberStrategy(FieldLookupStrategy):
    """Every invoice reference against secondary/legacy reference paths (weaker evidence)."""

    strategy_id = StrategyId.REFERENCE_NUMBER_MATCH
    concept = "reference_number"

    def values(self, line_item: "InvoiceLineItem") -> List[str]:
        return line_item.references.lookup_values()


class DateWindowStrategy(MatchingStrategy):
    """
    Range query for shipments booked within +/- date_window_days of the
    invoice ship date, then a local filter decides which ones to keep.
    """

    def window(self, line_item: "InvoiceLineItem") -> Tuple[datetime, datetime]:
        shipped = to_utc_datetime(line_item.shipment_date)
        delta = timedelta(days=self.config.date_window_days)
        return shipped - delta, shipped + delta

    def booked_at_path(self) -> str:
        paths = self.config.paths("booked_at")
        return paths[0] if paths else "bookedAt"

    @abstractmethod
    def keep(
        self,
        line_item: "InvoiceLineItem",
        shipment: ShipmentRecord
    ) -> Optional[Tuple[str, str]]:
        """Return (match_field, match_value) to keep the shipment, None to drop it."""
        pass

    async def find(self, line_item: "InvoiceLineItem") -> List[Candidate]:
        start, end = self.window(line_item)
        shipments = await self.repository.find_in_range(
            self.booked_at_path(), start, end, self.limit
        )

        candidates = []
        for shipment in shipments:
            kept = self.keep(line_item, shipment)
            if kept is None:
                continue
            match_field, match_value = kept
            candidates.append(Candidate(
                shipment=shipment,
                strategy_id=self.strategy_id,
                match_field=match_field,
                match_value=match_value,
            ))
        return candidates


class DateAmountStrategy(DateWindowStrategy):
    """Booked near the ship date with a total charge within amount_tolerance."""

    strategy_id = StrategyId.DATE_AMOUNT_MATCH

    def applies_to(self, line_item: "InvoiceLineItem") -> bool:
        return line_item.shipment_date is not None and (line_item.total_amount or 0) > 0

    def keep(
        self,
        line_item: "InvoiceLineItem",
        shipment: ShipmentRecord
    ) -> Optional[Tuple[str, str]]:
        shipment_amount = total_charge(shipment)
        if shipment_amount <= 0:
            return None
        difference = abs(line_item.total_amount - shipment_amount) / shipment_amount
        if difference >= self.config.amount_tolerance:
            return None
        return (
            f"{self.booked_at_path()} + amount",
            f"{line_item.shipment_date.isoformat()} + ${line_item.total_amount:.2f}",
        )


class FuzzyReferenceStrategy(DateWindowStrategy):
    """
    Near-miss references (OCR slips, dropped dashes) on shipments booked
    near the ship date. Uses RapidFuzz ratio on normalized values.
    """

    strategy_id = StrategyId.FUZZY_REFERENCE_MATCH

    def applies_to(self, line_item: "InvoiceLineItem") -> bool:
        return line_item.shipment_date is not None and bool(line_item.references.lookup_values())

    def reference_paths(self) -> List[str]:
        paths = self.config.paths("booking_reference") + self.config.paths("reference_number")
        return list(dict.fromkeys(paths))

    @staticmethod
    def _normalize(value: Any) -> str:
        return str(value).upper().replace(" ", "").strip()

    def keep(
        self,
        line_item: "InvoiceLineItem",
        shipment: ShipmentRecord
    ) -> Optional[Tuple[str, str]]:
        best: Optional[Tuple[float, str, str]] = None
        for path in self.reference_paths():
            stored = get_path(shipment, path)
            if stored in (None, ""):
                continue
            normalized_stored = self._normalize(stored)
            for reference in line_item.references.lookup_values():
                score = fuzz.ratio(
                    self._normalize(reference), normalized_stored,
                    score_cutoff=self.config.fuzzy_reference_min_score
                )
                if score and (best is None or score > best[0]):
                    best = (score, path, reference)

        if best is None:
            return None
        return best[1], best[2]


class CarrierDateStrategy(DateWindowStrategy):
    """Same carrier, booked near the ship date. Weakest evidence."""

    strategy_id = StrategyId.CARRIER_DATE_MATCH

    def applies_to(self, line_item: "InvoiceLineItem") -> bool:
        return line_item.shipment_date is not None and bool(line_item.carrier)

    def keep(
        self,
        line_item: "InvoiceLineItem",
        shipment: ShipmentRecord
    ) -> Optional[Tuple[str, str]]:
        if not text_overlaps(line_item.carrier, shipment.get("carrier")):
            return None
        return (
            f"{self.booked_at_path()} + carrier",
            f"{line_item.shipment_date.isoformat()} + {line_item.carrier}",
        )


@dataclass
class GenerationResult:
    """Raw candidates for one line item plus any strategy failures."""
    candidates: List[Candidate] = field(default_factory=list)
    failures: List[StrategyQueryError] = field(default_factory=list)


class CandidateGenerator:
    """
    Run every applicable strategy for a line item.

    Usage:
        generator = CandidateGenerator(repository, MatchingConfig())
        generated = await generator.generate(line_item, access_scope=["ACME"])
        generated.candidates  # unordered, may repeat a shipment
    """

    def __init__(self, repository: "ShipmentRepository", config: Optional[MatchingConfig] = None):
        self.repository = repository
        self.config = config or MatchingConfig()
        self.strategies: List[MatchingStrategy] = self._build_strategies()

    def _build_strategies(self) -> List[MatchingStrategy]:
        strategy_classes = [
            ExactShipmentIdStrategy,
            TrackingNumberStrategy,
            BookingReferenceStrategy,
            ReferenceNumberStrategy,
            DateAmountStrategy,
        ]
        if self.config.fuzzy_reference_enabled:
            strategy_classes.append(FuzzyReferenceStrategy)
        if self.config.carrier_date_enabled:
            strategy_classes.append(CarrierDateStrategy)
        return [cls(self.repository, self.config) for cls in strategy_classes]

    async def generate(
        self,
        line_item: "InvoiceLineItem",
        access_scope: Optional[Collection[str]] = None
    ) -> GenerationResult:
        applicable = [s for s in self.strategies if s.applies_to(line_item)]
        outcomes = await asyncio.gather(
            *(s.find(line_item) for s in applicable),
            return_exceptions=True,
        )

        result = GenerationResult()
        for strategy, outcome in zip(applicable, outcomes):
            strategy_name = strategy.strategy_id.value
            if isinstance(outcome, BaseException):
                # A query cancelled or timed out by the repository client counts as a failure
                if not isinstance(outcome, (Exception, asyncio.CancelledError)):
                    raise outcome
                failure = StrategyQueryError(strategy_name, f"{type(outcome).__name__}: {outcome}")
                result.failures.append(failure)
                logger.warning("strategy_query_failed",
                               strategy=strategy_name,
                               line_item=line_item.label,
                               error=str(failure))
                continue

            accessible = [c for c in outcome if is_accessible(c.shipment, access_scope)]
            if len(accessible) < len(outcome):
                logger.debug("candidates_outside_access_scope",
                             strategy=strategy_name,
                             excluded=len(outcome) - len(accessible))

            logger.debug("strategy_completed",
                         strategy=strategy_name,
                         candidates=len(accessible))
            result.candidates.extend(accessible)

        return result
