"""GET /v1/installment-reports/summary - Dashboard figures for layaway sales"""

from dataclasses import asdict
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request

from layaway_gateway.api.dependencies import get_engine, get_request_id, require_capability
from layaway_gateway.api.errors import to_http_exception
from layaway_gateway.api.v1.schemas import SummaryResponse
from layaway_gateway.domain.exceptions import DomainException
from layaway_gateway.domain.models import Actor
from layaway_gateway.services.engine import InstallmentEngine

router = APIRouter()


@router.get("/installment-reports/summary", response_model=SummaryResponse)
def get_summary(
    request: Request,
    today: Optional[date] = Query(None, description="Reference day for payment windows"),
    actor: Actor = Depends(require_capability("plans:read")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """
    Totals financed/paid/pending, counts by status, and payments collected
    today and this week.
    """
    try:
        summary = engine.summary(today)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return SummaryResponse(**asdict(summary))
