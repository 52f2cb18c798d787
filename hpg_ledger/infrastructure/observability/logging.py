"""Structured JSON logging"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from hpg_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_command(
    request_id: str,
    token: str,
    command: str,
    amount: Optional[int],
    duration_ms: float,
) -> None:
    """Log a committed ledger command"""
    logging.info(
        "Ledger command completed",
        extra={
            "request_id": request_id,
            "token": token,
            "command": command,
            "amount": amount,
            "duration_ms": duration_ms,
        },
    )


def log_rejection(request_id: str, token: str, command: str, error: Exception) -> None:
    """Log a command the ledger refused"""
    logging.warning(
        f"Ledger command rejected: {error}",
        extra={
            "request_id": request_id,
            "token": token,
            "command": command,
            "error_type": type(error).__name__,
        },
    )
