"""
Application Configuration
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Environment
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Shipment Repository (MongoDB)
    mongodb_url: Optional[str] = None
    mongodb_database: str = "billing"
    shipments_collection: str = "shipments"
    query_timeout_seconds: float = 10.0  # Per query; timed-out queries count as strategy failures

    # Matching Engine Configuration
    match_date_window_days: int = 3  # +/- days around the invoice ship date
    match_amount_tolerance: float = 0.10  # Date+amount correlation: within 10% of shipment charge
    match_max_concurrent_line_items: int = 10

    # Opt-in strategies (off by default)
    match_fuzzy_reference_enabled: bool = False
    match_carrier_date_enabled: bool = False
    match_references_as_shipment_ids: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
