"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pythonjsonlogger.json import JsonFormatter

from lendbook.config import settings


class CustomJsonFormatter(JsonFormatter):
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


def log_loan_issued(
    request_id: Optional[str],
    loan_id: str,
    client_id: str,
    principal: Decimal,
    total_repayable: Decimal,
    restructured_from: Optional[str],
) -> None:
    """Log structured issuance outcome for analysis"""
    logging.info(
        "Loan issued",
        extra={
            "request_id": request_id,
            "loan_id": loan_id,
            "client_id": client_id,
            "step": "loan_issued",
            "principal": str(principal),
            "total_repayable": str(total_repayable),
            "restructured_from": restructured_from,
        },
    )


def log_payment(request_id: Optional[str], loan_id: str, amount: Decimal, balance: Decimal, status: str) -> None:
    logging.info(
        "Payment recorded",
        extra={
            "request_id": request_id,
            "loan_id": loan_id,
            "step": "payment_recorded",
            "amount": str(amount),
            "balance": str(balance),
            "status": status,
        },
    )


def log_rejection(request_id: Optional[str], reason: str, detail: str) -> None:
    logging.warning(
        f"Request rejected: {detail}",
        extra={"request_id": request_id, "step": "rejected", "reason": reason},
    )
