"""
Monitoring Module
Exports for structured logging
"""

from invoice_matcher.services.monitoring.logging import setup_logging, ServiceJsonFormatter

__all__ = [
    "setup_logging",
    "ServiceJsonFormatter",
]
