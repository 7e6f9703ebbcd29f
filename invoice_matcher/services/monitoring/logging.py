"""
Structured JSON Logging
Routes structlog events through stdlib logging and renders them as JSON lines
"""

import logging
import sys
from typing import Optional

import structlog
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "carrier-invoice-matcher"


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every record with service and environment.

    structlog context (batch_id, invoice_number, ...) arrives as extra fields
    and is serialized alongside the standard timestamp/level/name.
    """

    def __init__(self, *args, environment: str = "development", **kwargs):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(self, log_record, record, message_dict):
        """
        Add custom fields to log record.

        Args:
            log_record: Dictionary to be serialized to JSON
            record: Standard logging.LogRecord object
            message_dict: Additional fields from logger call
        """
        super().add_fields(log_record, record, message_dict)
        log_record['service'] = SERVICE_NAME
        log_record['environment'] = self.environment


def setup_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    environment: Optional[str] = None,
) -> logging.Handler:
    """
    Configure structlog + stdlib logging to stdout.

    Defaults come from application settings. With json_output the handler uses
    ServiceJsonFormatter; otherwise structlog's console renderer.

    Returns:
        logging.Handler: The configured handler (for testing)
    """
    from invoice_matcher.config import settings

    level = level or settings.log_level
    json_output = settings.log_json if json_output is None else json_output
    environment = environment or settings.environment

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        # Event dict becomes LogRecord extras; the JSON formatter serializes them
        renderers = [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + renderers,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(ServiceJsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            rename_fields={
                'timestamp': 'asctime',
                'level': 'levelname'
            },
            environment=environment,
        ))

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    return handler
