"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from layaway_gateway.config import settings
from layaway_gateway.domain.models import InstallmentPlan, PlanStatus


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


def log_plan_event(message: str, plan: InstallmentPlan, actor_id: str, **fields: Any) -> None:
    """Log a plan lifecycle event with the plan's running totals"""
    logging.getLogger("layaway_gateway.plans").info(
        message,
        extra={
            "plan_id": str(plan.id),
            "customer_id": str(plan.customer_id),
            "actor_id": actor_id,
            "status": PlanStatus(plan.status).value,
            "total_cents": plan.total_cents,
            "paid_cents": plan.paid_cents,
            "remaining_cents": plan.remaining_cents,
            "next_payment_due_date": plan.next_payment_due_date.isoformat() if plan.next_payment_due_date else None,
            **fields,
        },
    )
