"""
Shipment Repository

Read-only async port the matching engine queries. Implementations must treat
unknown or missing fields as "no match" rather than failing the caller.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, List, Optional

from invoice_matcher.exceptions import RepositoryUnavailableError
from invoice_matcher.models.match_result import ShipmentRecord
from invoice_matcher.services.matching.shipment_fields import get_path, to_utc_datetime



class ShipmentRepository(ABC):
    """Base class for shipment stores."""

    @abstractmethod
    async def find_by_field(self, field_path: str, value: Any, limit: int) -> List[ShipmentRecord]:
        """
        Equality query on a (possibly dotted) field path.

        Args:
            field_path: Document path, e.g. "carrierBookingConfirmation.proNumber"
            value: Value to compare against
            limit: Maximum documents to return

        Returns:
            Shipment documents, each carrying its document id under "id"
        """
        pass

    @abstractmethod
    async def find_in_range(
        self,
        field_path: str,
        start: datetime,
        end: datetime,
        limit: int
    ) -> List[ShipmentRecord]:
        """Inclusive range query on a date field."""
        pass

    async def ping(self) -> None:
        """Raise RepositoryUnavailableError when the store cannot be reached."""
        return None


class InMemoryShipmentRepository(ShipmentRepository):
    """
    Dict-backed repository.

    Used by tests and for local reconciliation runs over exported shipment
    documents. Returns deep copies so callers can never mutate the store.

    Usage:
        repo = InMemoryShipmentRepository([
            {"id": "abc", "trackingNumber": "1Z999", "companyID": "ACME"},
        ])
        docs = await repo.find_by_field("trackingNumber", "1Z999", limit=5)
    """

    def __init__(self, records: Optional[Iterable[ShipmentRecord]] = None, available: bool = True):
        self._records: List[ShipmentRecord] = [copy.deepcopy(r) for r in (records or [])]
        self.available = available
        self.queries: List[tuple] = []  # (kind, field_path, value) log for assertions

    def add(self, record: ShipmentRecord) -> None:
        self._records.append(copy.deepcopy(record))

    async def ping(self) -> None:
        if not self.available:
            raise RepositoryUnavailableError("In-memory shipment repository marked unavailable")

    async def find_by_field(self, field_path: str, value: Any, limit: int) -> List[ShipmentRecord]:
        self.queries.append(("eq", field_path, value))
        await asyncio.sleep(0)
        matches = [r for r in self._records if get_path(r, field_path) == value]
        return [copy.deepcopy(r) for r in matches[:limit]]

    async def find_in_range(
        self,
        field_path: str,
        start: datetime,
        end: datetime,
        limit: int
    ) -> List[ShipmentRecord]:
        self.queries.append(("range", field_path, (start, end)))
        await asyncio.sleep(0)
        lower = to_utc_datetime(start)
        upper = to_utc_datetime(end)
        matches = []
        for record in self._records:
            stored = to_utc_datetime(get_path(record, field_path))
            if stored is not None and lower <= stored <= upper:
                matches.append(record)
        return [copy.deepcopy(r) for r in matches[:limit]]
