"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from majubersama_pos.config import settings

logger = logging.getLogger("majubersama_pos")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_debt_event(
    event: str,
    debt_id: int,
    customer_id: int,
    amount: int,
    remaining_amount: int,
    status: str,
    request_id: Optional[str] = None,
) -> None:
    """Log structured debt ledger event (debt recorded, payment applied)"""
    logger.info(
        "Ledger event",
        extra={
            "request_id": request_id,
            "step": event,
            "debt_id": debt_id,
            "customer_id": customer_id,
            "amount": amount,
            "remaining_amount": remaining_amount,
            "debt_status": status,
        },
    )


def log_sale(
    sale_id: int,
    payment_type: str,
    total: int,
    line_count: int,
    duration_ms: float,
    request_id: Optional[str] = None,
) -> None:
    """Log structured checkout outcome"""
    logger.info(
        "Checkout completed",
        extra={
            "request_id": request_id,
            "step": "checkout_complete",
            "sale_id": sale_id,
            "payment_type": payment_type,
            "total": total,
            "line_count": line_count,
            "duration_ms": duration_ms,
        },
    )
