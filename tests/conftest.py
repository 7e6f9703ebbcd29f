"""
Shared fixtures: shipment documents shaped like the platform's shipments
collection (several legacy schemas) and helpers to build engines over them.
"""

from datetime import datetime, timezone

import pytest

from invoice_matcher.models import InvoiceLineItem, MatchingConfig
from invoice_matcher.services.matching_engine import ShipmentMatchingEngine
from invoice_matcher.services.repository import InMemoryShipmentRepository


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def tracking_shipment():
    """Booked through the carrier API; tracking stored as a PRO number."""
    return {
        "id": "doc-track-1",
        "shipmentID": "IC-ACME-1001",
        "companyID": "A",
        "carrier": "FedEx Freight",
        "carrierBookingConfirmation": {"proNumber": "1Z999AA10123456784"},
    }


@pytest.fixture
def reference_shipment():
    """Quick-ship record with only a customer reference in shipmentInfo."""
    return {
        "id": "doc-ref-1",
        "shipmentID": "IC-ACME-1002",
        "companyID": "A",
        "shipmentInfo": {"customerReference": "PO-12345"},
    }


@pytest.fixture
def dated_shipment():
    """No identifiers in common with invoices; only booking date and charges."""
    return {
        "id": "doc-date-1",
        "shipmentID": "IC-ACME-1003",
        "companyID": "A",
        "bookedAt": utc(2024, 3, 12),
        "totalCharges": 100.0,
    }


@pytest.fixture
def make_engine():
    """Build an engine over the given shipment documents."""
    def _make(records, config=None, repository_cls=InMemoryShipmentRepository):
        repository = repository_cls(records)
        return ShipmentMatchingEngine(repository, config=config or MatchingConfig())
    return _make


@pytest.fixture
def line_item():
    """Build an InvoiceLineItem from extraction-style camelCase keys."""
    def _make(**payload):
        return InvoiceLineItem.model_validate(payload)
    return _make
