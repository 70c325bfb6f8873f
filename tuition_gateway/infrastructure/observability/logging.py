"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from tuition_gateway.config import settings


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


def log_payment_recorded(
    request_id: str,
    application_id: str,
    plan: str,
    month_label: Optional[str],
    amount_cents: int,
    plan_complete: bool,
) -> None:
    """Log structured payment outcome for reconciliation analysis"""
    logging.info(
        "Payment recorded",
        extra={
            "request_id": request_id,
            "application_id": application_id,
            "step": "payment_recorded",
            "plan": plan,
            "month": month_label,
            "amount_cents": amount_cents,
            "plan_complete": plan_complete,
        },
    )


def log_payment_rejected(request_id: str, application_id: str, reference: str, reason: str) -> None:
    logging.warning(
        "Payment not recorded",
        extra={
            "request_id": request_id,
            "application_id": application_id,
            "step": "payment_rejected",
            "reference": reference,
            "reason": reason,
        },
    )
