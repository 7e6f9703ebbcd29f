"""
Shipment Matching Engine

Matches every line item of one carrier invoice against existing shipments:
1. Generate candidates with independent strategies (access-scope filtered)
2. Deduplicate per shipment, keeping the strongest strategy
3. Score with corroborating-evidence bonuses, rank descending
4. Classify the best score into a status tier and review flag
5. Aggregate batch statistics

Line items are independent and processed concurrently. A failure inside one
line item, including a payload that does not validate, is isolated to that
item; only failures before processing starts (line_items not iterable,
unreachable repository) fail the batch. The engine never raises
to its caller: it always returns a BatchMatchResult.
"""

import asyncio
import uuid
from typing import Any, Collection, Iterable, List, Optional, Union

import structlog
from pydantic import ValidationError

from invoice_matcher.exceptions import BatchSetupError, LineItemMatchError
from invoice_matcher.models import (
    BatchMatchResult,
    BatchStats,
    InvoiceLineItem,
    MatchingConfig,
    MatchResult,
    MatchStatus,
)
from invoice_matcher.services.matching import (
    CandidateGenerator,
    ConfidenceScorer,
    Deduplicator,
    MatchClassifier,
)
from invoice_matcher.services.repository import ShipmentRepository

logger = structlog.get_logger(__name__)

LineItemPayload = Union[InvoiceLineItem, dict]


class ShipmentMatchingEngine:
    """
    Invoice-to-shipment matching with confidence tiers.

    Usage:
        engine = ShipmentMatchingEngine(repository)
        result = await engine.match_invoice(
            line_items=[{"trackingNumber": "1Z999AA10123456784", "totalAmount": 412.5}],
            access_scope=["ACME"],
            invoice_number="INV-2024-0042",
        )

        if result.success:
            for match in result.matches:
                if not match.review_required:
                    apply_charges(match.best_match.shipment)
        else:
            notify_billing(result.error)
    """

    def __init__(
        self,
        repository: ShipmentRepository,
        config: Optional[MatchingConfig] = None
    ):
        """
        Initialize matching engine.

        Args:
            repository: Read-only shipment store
            config: Weights, thresholds and tolerances (default: MatchingConfig())
        """
        self.repository = repository
        self.config = config or MatchingConfig()
        self.generator = CandidateGenerator(repository, self.config)
        self.deduplicator = Deduplicator(self.config)
        self.scorer = ConfidenceScorer(self.config)
        self.classifier = MatchClassifier(self.config.thresholds)

        logger.info("matching_engine_initialized",
                    repository=type(repository).__name__,
                    strategies=[s.strategy_id.value for s in self.generator.strategies])

    async def match_line_item(
        self,
        line_item: InvoiceLineItem,
        access_scope: Optional[Collection[str]] = None,
        index: int = 0
    ) -> MatchResult:
        """
        Run the full pipeline for one line item.

        Strategy failures are recorded on the result and do not fail the item.
        """
        log = logger.bind(line_item_index=index, line_item=line_item.label)

        generated = await self.generator.generate(line_item, access_scope)
        unique = self.deduplicator.deduplicate(generated.candidates)
        ranked = self.scorer.score_all(unique, line_item)
        classification = self.classifier.classify(ranked)

        for rank, scored in enumerate(ranked[:3], 1):
            log.debug("match_candidate",
                      rank=rank,
                      shipment_key=scored.shipment_key,
                      strategy=scored.strategy_id.value,
                      confidence=scored.confidence)

        log.info("line_item_matched",
                 raw_candidates=len(generated.candidates),
                 unique_candidates=len(unique),
                 status=classification.status.value,
                 confidence=classification.confidence,
                 review_required=classification.review_required,
                 strategy_failures=len(generated.failures))

        return MatchResult(
            line_item=line_item,
            candidates=ranked,
            status=classification.status,
            review_required=classification.review_required,
            line_item_index=index,
            strategy_failures=[str(f) for f in generated.failures],
        )

    async def match_invoice(
        self,
        line_items: Iterable[LineItemPayload],
        access_scope: Optional[Collection[str]] = None,
        invoice_number: Optional[str] = None
    ) -> BatchMatchResult:
        """
        Match every line item of one invoice.

        Args:
            line_items: InvoiceLineItem instances or raw extraction dicts
            access_scope: Company ids the caller may see; empty/None = all
            invoice_number: Invoice document number (logging only)

        Returns:
            BatchMatchResult: success with per-item results and stats, or a
            single failure with no matches
        """
        batch_id = uuid.uuid4().hex[:12]
        scope = list(access_scope) if access_scope else []

        with structlog.contextvars.bound_contextvars(batch_id=batch_id, invoice_number=invoice_number):
            try:
                payloads = await self._prepare(line_items)
            except BatchSetupError as e:
                logger.error("batch_setup_failed", error=str(e))
                return BatchMatchResult.failure(str(e))

            logger.info("batch_matching_started",
                        line_items=len(payloads),
                        access_scope_size=len(scope))

            semaphore = asyncio.Semaphore(self.config.max_concurrent_line_items)

            async def run(index: int, payload: LineItemPayload) -> MatchResult:
                async with semaphore:
                    return await self._match_isolated(payload, scope, index)

            try:
                matches = list(await asyncio.gather(
                    *(run(i, payload) for i, payload in enumerate(payloads))
                ))
                result = BatchMatchResult(
                    success=True,
                    matches=matches,
                    stats=BatchStats.from_results(matches),
                )
            except Exception as e:
                # Per-item errors are already isolated; anything here is a batch failure
                logger.exception("batch_matching_failed", error=str(e))
                return BatchMatchResult.failure(f"Matching failed: {e}")

            logger.info("batch_matching_completed",
                        requires_review=result.requires_review,
                        **result.stats.to_dict())

            return result

    async def _prepare(self, line_items: Iterable[LineItemPayload]) -> List[LineItemPayload]:
        """Collect payloads and check the repository before any matching starts."""
        try:
            payloads = list(line_items or [])
        except TypeError as e:
            raise BatchSetupError(f"Invalid line items: {e}") from e

        try:
            await self.repository.ping()
        except BatchSetupError:
            raise
        except Exception as e:
            raise BatchSetupError(f"Shipment repository unavailable: {e}") from e

        return payloads

    @staticmethod
    def _parse(item: Any) -> InvoiceLineItem:
        if isinstance(item, InvoiceLineItem):
            return item
        if isinstance(item, dict):
            return InvoiceLineItem.model_validate(item)
        raise TypeError(f"Unsupported line item type: {type(item).__name__}")

    async def _match_isolated(
        self,
        payload: LineItemPayload,
        access_scope: Collection[str],
        index: int
    ) -> MatchResult:
        """One bad line item must not sink the rest of the invoice."""
        try:
            line_item = self._parse(payload)
        except (ValidationError, TypeError) as e:
            failure = LineItemMatchError(index, f"Invalid line item payload: {e}")
            logger.warning("line_item_invalid",
                           line_item_index=index,
                           error=str(failure))
            return self._failed_result(None, index, failure)

        try:
            return await self.match_line_item(line_item, access_scope, index)
        except Exception as e:
            failure = LineItemMatchError(index, f"{type(e).__name__}: {e}")
            logger.exception("line_item_match_failed",
                             line_item_index=index,
                             line_item=line_item.label,
                             error=str(failure))
            return self._failed_result(line_item, index, failure)

    @staticmethod
    def _failed_result(
        line_item: Optional[InvoiceLineItem],
        index: int,
        failure: LineItemMatchError
    ) -> MatchResult:
        return MatchResult(
            line_item=line_item,
            candidates=[],
            status=MatchStatus.NO_MATCH,
            review_required=True,
            line_item_index=index,
            error=str(failure),
        )


__all__ = ["ShipmentMatchingEngine"]
