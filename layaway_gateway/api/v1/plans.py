"""Installment plan endpoints - create, query, cancel, delete, overdue sweep"""

import logging
import uuid
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from layaway_gateway.api.dependencies import get_engine, get_request_id, require_capability
from layaway_gateway.api.errors import to_http_exception
from layaway_gateway.api.v1.schemas import (
    CancelRequest,
    InstallmentSchema,
    LineItemSchema,
    PaymentSchema,
    PlanCreateRequest,
    PlanDetailResponse,
    PlanListResponse,
    PlanResponse,
    SweepResponse,
)
from layaway_gateway.domain.exceptions import DomainException
from layaway_gateway.domain.installments import generate_installment_schedule
from layaway_gateway.domain.models import (
    Actor,
    Installment,
    InstallmentPayment,
    InstallmentPlan,
    LineItem,
    PlanStatus,
)
from layaway_gateway.domain.money import to_decimal
from layaway_gateway.domain.reporting import progress_percent
from layaway_gateway.services.engine import InstallmentEngine

router = APIRouter()


def plan_to_response(plan: InstallmentPlan) -> PlanResponse:
    return PlanResponse(**_plan_fields(plan))


def payment_to_schema(payment: InstallmentPayment) -> PaymentSchema:
    return PaymentSchema(
        payment_id=str(payment.id),
        plan_id=str(payment.plan_id),
        payment_number=payment.payment_number,
        amount_cents=payment.amount_cents,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        notes=payment.notes,
    )


def _plan_fields(plan: InstallmentPlan) -> dict:
    return dict(
        plan_id=str(plan.id),
        customer_id=str(plan.customer_id),
        status=plan.status,
        cadence=plan.cadence,
        total_cents=plan.total_cents,
        paid_cents=plan.paid_cents,
        remaining_cents=plan.remaining_cents,
        installment_count=plan.installment_count,
        installment_cents=plan.installment_cents,
        final_installment_cents=plan.final_installment_cents,
        paid_installment_count=plan.paid_installment_count,
        total=to_decimal(plan.total_cents),
        paid=to_decimal(plan.paid_cents),
        remaining=to_decimal(plan.remaining_cents),
        start_date=plan.start_date,
        next_payment_due_date=plan.next_payment_due_date,
        progress_percent=progress_percent(plan),
        notes=plan.notes,
        cancellation_reason=plan.cancellation_reason,
        items=[
            LineItemSchema(
                product_id=str(item.product_id),
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                total_cents=item.total_cents,
            )
            for item in plan.line_items
        ],
        created_at=plan.created_at,
    )


def _detail(plan: InstallmentPlan, payments: List[InstallmentPayment], installments: List[Installment]) -> PlanDetailResponse:
    return PlanDetailResponse(
        **_plan_fields(plan),
        payments=[payment_to_schema(p) for p in payments],
        installments=[
            InstallmentSchema(number=i.number, due_date=i.due_date, amount_cents=i.amount_cents, status=i.status)
            for i in installments
        ],
    )


def parse_plan_id(plan_id: str, request_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(plan_id)
    except ValueError:
        logging.warning("Invalid plan ID format", extra={"request_id": request_id, "plan_id": plan_id})
        raise HTTPException(status_code=400, detail="Invalid plan ID format")


@router.post("/installment-plans", response_model=PlanResponse, status_code=201)
def create_plan(
    request_body: PlanCreateRequest,
    request: Request,
    actor: Actor = Depends(require_capability("plans:create")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """
    Open a layaway sale for a known customer.

    Flow:
    1. Snapshot line items and split the total into installments
    2. Resolve customer and products
    3. Persist plan, items and optional down payment in one transaction
    """
    try:
        plan = engine.create_plan(
            actor,
            customer_id=request_body.customer_id,
            line_items=[
                LineItem(product_id=i.product_id, quantity=i.quantity, unit_price_cents=i.unit_price_cents)
                for i in request_body.items
            ],
            cadence=request_body.cadence,
            installment_count=request_body.installment_count,
            start_date=request_body.start_date,
            notes=request_body.notes,
            down_payment_method=request_body.down_payment_method,
        )
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return plan_to_response(plan)


@router.get("/installment-plans", response_model=PlanListResponse)
def list_plans(
    request: Request,
    status: Optional[PlanStatus] = Query(None, description="Filter by plan status"),
    customer_id: Optional[uuid.UUID] = Query(None, description="Filter by customer"),
    actor: Actor = Depends(require_capability("plans:read")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """List plans, newest first"""
    try:
        plans = engine.list_plans(status=status, customer_id=customer_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return PlanListResponse(plans=[plan_to_response(p) for p in plans], count=len(plans))


@router.get("/installment-plans/overdue", response_model=PlanListResponse)
def list_overdue(
    request: Request,
    actor: Actor = Depends(require_capability("plans:read")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """Overdue plans, oldest due date first"""
    try:
        plans = engine.list_overdue()
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return PlanListResponse(plans=[plan_to_response(p) for p in plans], count=len(plans))


@router.get("/installment-plans/due-today", response_model=PlanListResponse)
def list_due_today(
    request: Request,
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    actor: Actor = Depends(require_capability("plans:read")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """Active plans with an installment due on or before as_of"""
    try:
        plans = engine.list_due_today(as_of)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return PlanListResponse(plans=[plan_to_response(p) for p in plans], count=len(plans))


@router.post("/installment-plans/refresh-overdue", response_model=SweepResponse)
def refresh_overdue(
    request: Request,
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    actor: Actor = Depends(require_capability("plans:sweep")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """Mark active plans whose due date has passed as overdue"""
    as_of = as_of or engine.today()
    try:
        changed = engine.refresh_overdue(as_of)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return SweepResponse(as_of=as_of, updated_plan_ids=[str(p.id) for p in changed])


@router.get("/installment-plans/{plan_id}", response_model=PlanDetailResponse)
def get_plan(
    plan_id: str,
    request: Request,
    actor: Actor = Depends(require_capability("plans:read")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """
    Retrieve a plan with its payments and projected schedule.

    Returns:
        Plan totals, payment ledger, and installments marked paid/due/scheduled
    """
    request_id = get_request_id(request)
    plan_uuid = parse_plan_id(plan_id, request_id)

    try:
        plan = engine.get_plan(plan_uuid)
        payments = engine.list_payments(plan_uuid)
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return _detail(plan, payments, generate_installment_schedule(plan))


@router.post("/installment-plans/{plan_id}/cancel", response_model=PlanResponse)
def cancel_plan(
    plan_id: str,
    request_body: CancelRequest,
    request: Request,
    actor: Actor = Depends(require_capability("plans:cancel")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """Cancel an active or overdue plan. Payments already made are kept."""
    request_id = get_request_id(request)
    plan_uuid = parse_plan_id(plan_id, request_id)

    try:
        plan = engine.cancel_plan(actor, plan_uuid, request_body.reason)
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return plan_to_response(plan)


@router.delete("/installment-plans/{plan_id}", status_code=204)
def delete_plan(
    plan_id: str,
    request: Request,
    actor: Actor = Depends(require_capability("plans:delete")),
    engine: InstallmentEngine = Depends(get_engine),
):
    """Purge a plan together with its payments and line items"""
    request_id = get_request_id(request)
    plan_uuid = parse_plan_id(plan_id, request_id)

    try:
        engine.delete_plan(actor, plan_uuid)
    except DomainException as e:
        raise to_http_exception(e, request_id)

    return Response(status_code=204)
