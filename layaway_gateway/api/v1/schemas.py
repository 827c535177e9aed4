"""Pydantic schemas for API request/response validation"""

import uuid
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from layaway_gateway.domain.models import Cadence, PaymentMethod, PlanStatus


class LineItemRequest(BaseModel):
    """Priced product line snapshotted into the plan"""

    product_id: uuid.UUID
    quantity: int = Field(..., gt=0, description="Units of the product")
    unit_price_cents: int = Field(..., ge=0, description="Unit price in minor units")


class PlanCreateRequest(BaseModel):
    """Request body for POST /v1/installment-plans"""

    customer_id: uuid.UUID
    items: List[LineItemRequest] = Field(..., min_length=1)
    cadence: Cadence
    installment_count: int = Field(..., description="Number of installments (2-60)")
    start_date: Optional[date] = None
    notes: str = ""
    down_payment_method: Optional[PaymentMethod] = Field(
        None, description="Collect the first installment at signing with this method"
    )


class PaymentRequest(BaseModel):
    """Request body for POST /v1/installment-plans/{plan_id}/payments"""

    amount_cents: int = Field(..., gt=0, description="Payment amount in minor units")
    payment_method: PaymentMethod
    payment_date: Optional[date] = None
    notes: str = ""


class CancelRequest(BaseModel):
    """Request body for POST /v1/installment-plans/{plan_id}/cancel"""

    reason: str = ""


class LineItemSchema(BaseModel):
    product_id: str
    quantity: int
    unit_price_cents: int
    total_cents: int


class PaymentSchema(BaseModel):
    """Single recorded payment"""

    payment_id: str
    plan_id: str
    payment_number: int
    amount_cents: int
    payment_date: date
    payment_method: PaymentMethod
    notes: str


class InstallmentSchema(BaseModel):
    """Single installment in a repayment schedule"""

    number: int
    due_date: date
    amount_cents: int
    status: str = "scheduled"


class PlanResponse(BaseModel):
    """Installment plan with running totals"""

    plan_id: str
    customer_id: str
    status: PlanStatus
    cadence: Cadence
    total_cents: int
    paid_cents: int
    remaining_cents: int
    installment_count: int
    installment_cents: int
    final_installment_cents: int
    paid_installment_count: int
    total: Decimal = Field(..., description="Display value of total_cents")
    paid: Decimal
    remaining: Decimal
    start_date: date
    next_payment_due_date: Optional[date] = None
    progress_percent: float
    notes: str
    cancellation_reason: Optional[str] = None
    items: List[LineItemSchema]
    created_at: Optional[datetime] = None


class PlanDetailResponse(PlanResponse):
    """Response for GET /v1/installment-plans/{plan_id}"""

    payments: List[PaymentSchema]
    installments: List[InstallmentSchema]


class PlanListResponse(BaseModel):
    plans: List[PlanResponse]
    count: int


class PaymentListResponse(BaseModel):
    plan_id: str
    payments: List[PaymentSchema]


class SweepResponse(BaseModel):
    """Response for POST /v1/installment-plans/refresh-overdue"""

    as_of: date
    updated_plan_ids: List[str]


class SummaryResponse(BaseModel):
    """Response for GET /v1/installment-reports/summary"""

    total_plans: int
    active_count: int
    overdue_count: int
    completed_count: int
    cancelled_count: int
    total_financed_cents: int
    total_paid_cents: int
    total_pending_cents: int
    payments_today: int
    payments_this_week: int
