"""
Candidate Deduplication

The same shipment usually surfaces under several strategies and field
variants. Keep one candidate per shipment: the one from the strongest
strategy by static weight. Ties keep the first candidate seen.
"""

from typing import Dict, List, Optional

import structlog

from invoice_matcher.models.match_result import Candidate
from invoice_matcher.models.matching_config import MatchingConfig

logger = structlog.get_logger(__name__)


class Deduplicator:
    """Collapse raw candidates to at most one per shipment identity."""

    def __init__(self, config: Optional[MatchingConfig] = None):
        self.config = config or MatchingConfig()

    def deduplicate(self, candidates: List[Candidate]) -> List[Candidate]:
        kept: Dict[str, Candidate] = {}
        dropped_without_key = 0

        for candidate in candidates:
            key = candidate.shipment_key
            if key is None:
                dropped_without_key += 1
                continue

            current = kept.get(key)
            if current is None:
                kept[key] = candidate
            elif self.config.weight(candidate.strategy_id) > self.config.weight(current.strategy_id):
                # Replacing keeps the original insertion slot, so output order stays stable
                kept[key] = candidate

        if dropped_without_key:
            logger.warning("candidates_without_identity_dropped", count=dropped_without_key)

        logger.debug("candidates_deduplicated",
                     raw_count=len(candidates),
                     unique_count=len(kept))

        return list(kept.values())
