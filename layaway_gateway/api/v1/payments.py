"""Payment endpoints - record and list payments on a plan"""

from fastapi import APIRouter, Depends, Request

from layaway_gateway.api.dependencies import get_engine, get_request_id, require_capability
from layaway_gateway.api.errors import to_http_exception
from layaway_gateway.api.v1.plans import parse_plan_id, payment_to_schema
from layaway_gateway.api.v1.schemas import PaymentListResponse, PaymentRequest, PaymentSchema
from layaway_gateway.domain.exceptions import DomainException
from layaway_gateway.domain.models import Actor
from layaway_gateway.services.engine import InstallmentEngine

router = APIRouter()


@router.post("/installment-plans/{plan_id}/payments", response_model=PaymentSchema, status_code=201)
def record_payment(
    plan_id: str,
    request_body: PaymentRequest,
    request: Request,
    actor: Actor = Depends(require_capability("payments:record")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """
    Record a payment against an active or overdue plan.

    The amount may be the suggested installment or any part of the remaining
    balance, but never more than what remains.
    """
    request_id = get_request_id(request)
    plan_uuid = parse_plan_id(plan_id, request_id)

    try:
        payment = engine.record_payment(
            actor,
            plan_uuid,
            amount_cents=request_body.amount_cents,
            payment_method=request_body.payment_method,
            payment_date=request_body.payment_date,
            notes=request_body.notes,
        )
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return payment_to_schema(payment)


@router.get("/installment-plans/{plan_id}/payments", response_model=PaymentListResponse)
def list_payments(
    plan_id: str,
    request: Request,
    actor: Actor = Depends(require_capability("plans:read")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """Payments of a plan in payment-number order"""
    request_id = get_request_id(request)
    plan_uuid = parse_plan_id(plan_id, request_id)

    try:
        payments = engine.list_payments(plan_uuid)
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return PaymentListResponse(plan_id=str(plan_uuid), payments=[payment_to_schema(p) for p in payments])
