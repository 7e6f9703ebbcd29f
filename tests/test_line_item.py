"""
Tests for InvoiceLineItem parsing of extraction output
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from invoice_matcher.models import InvoiceLineItem, LineItemReferences


class TestInvoiceLineItem:
    """Extraction payloads are loose; parsing normalizes them."""

    def test_camel_case_keys(self):
        item = InvoiceLineItem.model_validate({
            "shipmentId": "IC-1",
            "trackingNumber": "1Z999",
            "shipmentDate": "2024-03-10",
            "totalAmount": 412.5,
            "serviceType": "Ground",
            "references": {"customerRef": "PO-1", "invoiceRef": "INV-9", "other": ["X1"]},
        })

        assert item.shipment_id == "IC-1"
        assert item.tracking_number == "1Z999"
        assert item.shipment_date == date(2024, 3, 10)
        assert item.total_amount == 412.5
        assert item.service_type == "Ground"
        assert item.references.customer_ref == "PO-1"

    def test_snake_case_keys(self):
        item = InvoiceLineItem(tracking_number="1Z999", total_amount=10)
        assert item.tracking_number == "1Z999"

    def test_blank_strings_become_none(self):
        item = InvoiceLineItem.model_validate({"trackingNumber": "  ", "carrier": ""})
        assert item.tracking_number is None
        assert item.carrier is None

    def test_numeric_identifiers_become_strings(self):
        item = InvoiceLineItem.model_validate({"trackingNumber": 123456789012})
        assert item.tracking_number == "123456789012"

    def test_datetime_string_reduced_to_date(self):
        item = InvoiceLineItem.model_validate({"shipmentDate": "2024-03-10T15:30:00Z"})
        assert item.shipment_date == date(2024, 3, 10)

    @pytest.mark.parametrize("raw, expected", [
        ("2024-03-05T23:30:00-05:00", date(2024, 3, 6)),
        ("2024-03-06T01:00:00+02:00", date(2024, 3, 5)),
        ("2024-03-05T23:30:00", date(2024, 3, 5)),
        (datetime(2024, 3, 5, 22, 0, tzinfo=timezone(timedelta(hours=-4))), date(2024, 3, 6)),
    ])
    def test_offset_timestamp_uses_utc_calendar_date(self, raw, expected):
        item = InvoiceLineItem.model_validate({"shipmentDate": raw})
        assert item.shipment_date == expected

    def test_non_iso_date_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceLineItem.model_validate({"shipmentDate": "03/05/2024"})

    def test_currency_string_amount(self):
        item = InvoiceLineItem.model_validate({"totalAmount": "$1,234.50"})
        assert item.total_amount == 1234.50

    def test_invalid_amount_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceLineItem.model_validate({"totalAmount": "n/a"})

    def test_null_references(self):
        item = InvoiceLineItem.model_validate({"references": None})
        assert item.references.lookup_values() == []

    def test_shipment_id_falls_back_to_references(self):
        item = InvoiceLineItem.model_validate({"references": {"shipmentID": "IC-7"}})
        assert item.own_shipment_id == "IC-7"


class TestLineItemReferences:

    def test_lookup_order_and_dedup(self):
        refs = LineItemReferences.model_validate({
            "invoiceRef": "B",
            "customerRef": "A",
            "manifestRef": "A",
            "other": ["C", "", None, "B"],
        })
        assert refs.lookup_values() == ["A", "B", "C"]

    def test_single_other_value(self):
        refs = LineItemReferences.model_validate({"other": "Z9"})
        assert refs.other == ["Z9"]
