"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from member_ledger.config import settings


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


def log_accrual(
    request_id: str,
    member_id: int,
    window_kind: str,
    interest: float,
    skipped_records: int,
) -> None:
    """Log one engine run; records dropped for unreadable dates are flagged"""
    extra = {
        "request_id": request_id,
        "member_id": member_id,
        "step": "accrual_complete",
        "window": window_kind,
        "interest": interest,
        "skipped_records": skipped_records,
    }
    logging.info("Interest accrued", extra=extra)

    if skipped_records:
        logging.warning(
            f"Skipped {skipped_records} record(s) with unreadable dates for member {member_id}",
            extra={"request_id": request_id, "member_id": member_id},
        )


def log_monthly_run(
    request_id: str,
    month_key: str,
    members_calculated: int,
    total_returns: float,
    duration_ms: float,
) -> None:
    """Log structured outcome of a monthly returns run"""
    logging.info(
        "Monthly returns generated",
        extra={
            "request_id": request_id,
            "month": month_key,
            "step": "monthly_returns_complete",
            "members_calculated": members_calculated,
            "total_returns": total_returns,
            "duration_ms": duration_ms,
        },
    )
