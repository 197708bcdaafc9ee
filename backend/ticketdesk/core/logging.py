# backend/ticketdesk/core/logging.py
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Dict, Any, Optional
from pythonjsonlogger import jsonlogger

from ticketdesk.core.config import settings

# Set by the request-id middleware for the lifetime of one HTTP request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.utcnow().isoformat()

        if record.name:
            log_record["logger"] = record.name

        log_record["level"] = record.levelname

        # Request / actor context, when the caller passed it through `extra=`
        if hasattr(record, "tenant_id"):
            log_record["tenant_id"] = record.tenant_id

        if hasattr(record, "user_id"):
            log_record["user_id"] = record.user_id

        request_id = getattr(record, "request_id", None) or request_id_ctx.get()
        if request_id:
            log_record["request_id"] = request_id


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging for the `ticketdesk` logger tree"""
    logger = logging.getLogger("ticketdesk")
    logger.setLevel(level)

    if not any(isinstance(h.formatter, CustomJsonFormatter) for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


# Initialize logger
logger = setup_logging(settings.LOG_LEVEL)
