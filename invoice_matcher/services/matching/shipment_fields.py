"""
Shipment Field Accessors

Shipment documents come from several booking flows and schema generations,
so the same fact lives under different paths. These helpers resolve them.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Collection, Mapping, Optional


def get_path(record: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path ("selectedRate.TrackingNumber"); missing -> None."""
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a stored or extracted date to an aware UTC datetime.

    Naive datetimes are taken as UTC (pymongo returns naive UTC).
    Plain dates become midnight UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc_datetime(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def company_id(record: Mapping[str, Any]) -> Optional[str]:
    return record.get("companyID") or record.get("companyId")


def is_accessible(record: Mapping[str, Any], access_scope: Optional[Collection[str]]) -> bool:
    """Empty or missing scope means unrestricted."""
    if not access_scope:
        return True
    return company_id(record) in access_scope


def _as_amount(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def total_charge(record: Mapping[str, Any]) -> float:
    """
    Shipment total in the order billing trusts it:
    marked-up rate, flat total, selected carrier rate, then summed manual rate lines.
    Returns 0.0 when nothing usable is stored.
    """
    for path in ("markupRates.totalCharges", "totalCharges", "selectedRate.totalCharges"):
        amount = _as_amount(get_path(record, path))
        if amount:
            return amount

    manual_rates = record.get("manualRates")
    if isinstance(manual_rates, list):
        amount = sum(
            _as_amount(rate.get("charge")) for rate in manual_rates if isinstance(rate, Mapping)
        )
        if amount:
            return amount
    return 0.0


def booked_at(record: Mapping[str, Any], path: str = "bookedAt") -> Optional[datetime]:
    return to_utc_datetime(get_path(record, path))


def service_type(record: Mapping[str, Any]) -> Optional[str]:
    return get_path(record, "selectedRate.serviceType") or record.get("serviceType")


def shipment_number(record: Mapping[str, Any]) -> Optional[str]:
    return record.get("shipmentID") or record.get("shipmentId") or record.get("id")


def text_overlaps(a: Any, b: Any) -> bool:
    """Case-insensitive containment in either direction ("FedEx" vs "FedEx Freight")."""
    if not a or not b:
        return False
    left = str(a).strip().lower()
    right = str(b).strip().lower()
    if not left or not right:
        return False
    return left in right or right in left
