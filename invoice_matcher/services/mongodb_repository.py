"""
MongoDB Shipment Repository
Read-only shipment lookups against the platform's shipments collection
"""

import asyncio
from datetime import datetime
from typing import Any, List, Optional

import structlog
from bson import ObjectId
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from invoice_matcher.exceptions import RepositoryUnavailableError
from invoice_matcher.models.match_result import ShipmentRecord
from invoice_matcher.services.repository import ShipmentRepository

logger = structlog.get_logger(__name__)


class MongoShipmentRepository(ShipmentRepository):
    """
    Shipment repository backed by a pymongo collection.

    pymongo is synchronous, so each query runs in a worker thread via
    asyncio.to_thread; the server-side max_time_ms bounds every query.
    Dotted paths map directly to MongoDB nested-field queries, and a path
    that no document has simply matches nothing.
    """

    def __init__(self, collection: Collection, timeout_seconds: float = 10.0):
        self.collection = collection
        self.timeout_ms = int(timeout_seconds * 1000)

    @classmethod
    def from_settings(cls, settings: Optional[Any] = None) -> "MongoShipmentRepository":
        """Connect using application settings (lazy; nothing is sent until the first query)."""
        if settings is None:
            from invoice_matcher.config import settings

        if not settings.mongodb_url:
            raise RepositoryUnavailableError("mongodb_url not configured")

        client = MongoClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=int(settings.query_timeout_seconds * 1000),
        )
        collection = client[settings.mongodb_database][settings.shipments_collection]
        logger.info("mongodb_repository_configured",
                    database=settings.mongodb_database,
                    collection=settings.shipments_collection)
        return cls(collection, timeout_seconds=settings.query_timeout_seconds)

    @staticmethod
    def _to_record(document: dict) -> ShipmentRecord:
        record = dict(document)
        doc_id = record.pop("_id", None)
        if doc_id is not None:
            record.setdefault("id", str(doc_id))
        return record

    @staticmethod
    def _id_filter(value: Any) -> Any:
        """
        Document ids live under _id, as ObjectId or plain string depending on
        which flow created the shipment. A hex string may be either.
        """
        if isinstance(value, str) and ObjectId.is_valid(value):
            return {"$in": [ObjectId(value), value]}
        return value

    def _find(self, query: dict, limit: int) -> List[ShipmentRecord]:
        cursor = self.collection.find(query).limit(limit).max_time_ms(self.timeout_ms)
        return [self._to_record(doc) for doc in cursor]

    async def ping(self) -> None:
        try:
            await asyncio.to_thread(self.collection.database.client.admin.command, "ping")
        except PyMongoError as e:
            logger.error("mongodb_ping_failed", error=str(e))
            raise RepositoryUnavailableError(f"Shipment store unreachable: {e}") from e

    async def find_by_field(self, field_path: str, value: Any, limit: int) -> List[ShipmentRecord]:
        if field_path == "id":
            return await asyncio.to_thread(self._find, {"_id": self._id_filter(value)}, limit)
        return await asyncio.to_thread(self._find, {field_path: value}, limit)

    async def find_in_range(
        self,
        field_path: str,
        start: datetime,
        end: datetime,
        limit: int
    ) -> List[ShipmentRecord]:
        query = {field_path: {"$gte": start, "$lte": end}}
        return await asyncio.to_thread(self._find, query, limit)
