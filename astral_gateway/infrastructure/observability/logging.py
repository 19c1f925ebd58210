"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from astral_gateway.config import settings


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


def log_commit(
    request_id: str,
    user_id: str,
    loan_id: str,
    plan_type: str,
    already_committed: bool,
    duration_ms: float,
) -> None:
    """Log structured commit outcome"""
    logging.info(
        "Plan committed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "loan_id": loan_id,
            "step": "commit_complete",
            "plan_type": plan_type,
            "commit_outcome": "duplicate" if already_committed else "created",
            "duration_ms": duration_ms,
        },
    )


def log_payment(
    request_id: str,
    user_id: str,
    loan_id: str,
    plan_type: str,
    amount: float,
    amount_left: float,
    duration_ms: float,
) -> None:
    """Log structured payment outcome for reconciliation"""
    logging.info(
        "Payment applied",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "loan_id": loan_id,
            "step": "payment_applied",
            "plan_type": plan_type,
            "amount": amount,
            "amount_left": amount_left,
            "duration_ms": duration_ms,
        },
    )
