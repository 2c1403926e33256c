"""Structured JSON logging for production observability"""

import logging
import sys
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from finsight_gateway.config import settings
from finsight_gateway.utils.date_utils import utcnow


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utcnow().isoformat()
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


def log_insight_computed(
    request_id: str,
    user_id: int,
    statement_id: int,
    insight_id: int,
    risk_flag_count: int,
    duration_ms: float,
) -> None:
    """Log structured insight outcome for analysis"""
    logging.info(
        "Insight computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "statement_id": statement_id,
            "insight_id": insight_id,
            "step": "insight_complete",
            "risk_flag_count": risk_flag_count,
            "duration_ms": duration_ms,
        },
    )


def log_bureau_check(
    request_id: str,
    user_id: int,
    report_id: int,
    status: str,
    credit_score: Optional[int],
    duration_ms: float,
) -> None:
    """Log structured credit check outcome for analysis"""
    logging.info(
        "Bureau check completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "report_id": report_id,
            "step": "bureau_check_complete",
            "report_status": status,
            "credit_score": credit_score,
            "duration_ms": duration_ms,
        },
    )
