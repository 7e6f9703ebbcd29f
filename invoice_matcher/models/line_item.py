"""
Pydantic schemas for invoice line items handed over by the extraction step
"""

from datetime import date, datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: Any) -> Any:
    """Extraction output uses "", None and numbers interchangeably for identifiers."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class LineItemReferences(BaseModel):
    """
    Reference numbers printed on a carrier invoice line.
    Accepts the camelCase keys produced by the extraction step.
    """
    customer_ref: Optional[str] = Field(None, alias="customerRef")
    invoice_ref: Optional[str] = Field(None, alias="invoiceRef")
    manifest_ref: Optional[str] = Field(None, alias="manifestRef")
    shipment_id: Optional[str] = Field(None, alias="shipmentID")
    other: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("customer_ref", "invoice_ref", "manifest_ref", "shipment_id", mode="before")
    @classmethod
    def _clean_reference(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("other", mode="before")
    @classmethod
    def _clean_other(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, int, float)):
            value = [value]
        cleaned = [_blank_to_none(v) for v in value]
        return [v for v in cleaned if v]

    def lookup_values(self) -> List[str]:
        """All reference values in lookup order, de-duplicated."""
        ordered = [self.customer_ref, self.invoice_ref, self.manifest_ref, *self.other]
        seen = set()
        result = []
        for ref in ordered:
            if ref and ref not in seen:
                seen.add(ref)
                result.append(ref)
        return result


class InvoiceLineItem(BaseModel):
    """
    One shipment-level entry of a carrier invoice.
    Every field is optional: strategies only run when their inputs are present.
    """
    shipment_id: Optional[str] = Field(None, alias="shipmentId")
    tracking_number: Optional[str] = Field(None, alias="trackingNumber")
    references: LineItemReferences = Field(default_factory=LineItemReferences)
    shipment_date: Optional[date] = Field(None, alias="shipmentDate")
    total_amount: Optional[float] = Field(None, alias="totalAmount")
    carrier: Optional[str] = None
    service_type: Optional[str] = Field(None, alias="serviceType")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("shipment_id", "tracking_number", "carrier", "service_type", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("references", mode="before")
    @classmethod
    def _default_references(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("shipment_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            value = datetime.fromisoformat(text)
        if isinstance(value, datetime):
            # Offset timestamps reduce to the UTC calendar date; naive ones are taken as UTC
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value.date()
        return value

    @field_validator("total_amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            cleaned = value.replace("$", "").replace(",", "").strip()
            return float(cleaned) if cleaned else None
        return value

    @property
    def own_shipment_id(self) -> Optional[str]:
        """Shipment id printed on the line, falling back to the references block."""
        return self.shipment_id or self.references.shipment_id

    @property
    def label(self) -> Optional[str]:
        """Short identifier for log lines."""
        return self.tracking_number or self.references.customer_ref or self.own_shipment_id
