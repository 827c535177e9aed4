"""Installment plan lifecycle - pure state transitions, no storage access"""

import uuid
from dataclasses import replace
from datetime import date
from typing import List, Optional, Sequence, Tuple

from layaway_gateway.config import settings
from layaway_gateway.domain.exceptions import InvalidStateError, ValidationError
from layaway_gateway.domain.models import (
    Cadence,
    InstallmentPayment,
    InstallmentPlan,
    LineItem,
    PaymentMethod,
    PlanStatus,
)
from layaway_gateway.domain.money import split_installments
from layaway_gateway.utils.date_utils import add_cadence


def validate_line_items(line_items: Sequence[LineItem]) -> None:
    if not line_items:
        raise ValidationError("A layaway plan needs at least one line item", field="line_items")

    for item in line_items:
        if item.quantity <= 0:
            raise ValidationError(f"Quantity must be positive for product {item.product_id}", field="quantity")
        if item.unit_price_cents < 0:
            raise ValidationError(f"Unit price cannot be negative for product {item.product_id}", field="unit_price_cents")


def validate_installment_count(installment_count: int) -> None:
    low, high = settings.min_installments, settings.max_installments
    if not low <= installment_count <= high:
        raise ValidationError(
            f"Installment count must be between {low} and {high}, got {installment_count}",
            field="installment_count",
        )


def build_plan(
    customer_id: uuid.UUID,
    line_items: Sequence[LineItem],
    cadence: Cadence,
    installment_count: int,
    start_date: date,
    notes: str = "",
    created_by: Optional[str] = None,
) -> InstallmentPlan:
    """
    Construct a new active plan.

    Totals are fixed here from the line item snapshot; the regular installment
    is total / count rounded half-up and the last one absorbs the remainder.
    """
    if customer_id is None:
        raise ValidationError("Layaway requires a known customer", field="customer_id")
    validate_line_items(line_items)
    validate_installment_count(installment_count)

    cadence = Cadence(cadence)
    total_cents = sum(item.total_cents for item in line_items)
    if total_cents <= 0:
        raise ValidationError("Plan total must be positive", field="line_items")

    installment_cents, _ = split_installments(total_cents, installment_count)

    return InstallmentPlan(
        id=uuid.uuid4(),
        customer_id=customer_id,
        line_items=list(line_items),
        cadence=cadence,
        installment_count=installment_count,
        installment_cents=installment_cents,
        total_cents=total_cents,
        start_date=start_date,
        next_payment_due_date=add_cadence(start_date, cadence),
        first_due_date=add_cadence(start_date, cadence),
        paid_cents=0,
        remaining_cents=total_cents,
        paid_installment_count=0,
        status=PlanStatus.ACTIVE,
        notes=notes or "",
        created_by=created_by,
    )


def validate_payment(plan: InstallmentPlan, amount_cents: int) -> None:
    if not PlanStatus(plan.status).accepts_payments:
        raise InvalidStateError(f"Plan {plan.id} is {PlanStatus(plan.status).value} and accepts no payments")
    if amount_cents <= 0:
        raise ValidationError("Payment amount must be positive", field="amount_cents")
    if amount_cents > plan.remaining_cents:
        raise ValidationError(
            f"Payment of {amount_cents} exceeds remaining balance of {plan.remaining_cents}",
            field="amount_cents",
        )


def apply_payment(
    plan: InstallmentPlan,
    amount_cents: int,
    payment_method: PaymentMethod,
    payment_date: date,
    payment_number: int,
    today: date,
    notes: str = "",
    created_by: Optional[str] = None,
) -> Tuple[InstallmentPlan, InstallmentPayment]:
    """
    Apply a payment and recompute status.

    Completion is balance-driven: the plan completes when nothing remains,
    regardless of how many payments it took. Otherwise the due date advances
    one cadence step from the previous due date and the plan is overdue if that
    new date is already behind `today`.
    """
    validate_payment(plan, amount_cents)

    payment = InstallmentPayment(
        id=uuid.uuid4(),
        plan_id=plan.id,
        payment_number=payment_number,
        amount_cents=amount_cents,
        payment_date=payment_date,
        payment_method=PaymentMethod(payment_method),
        notes=notes or "",
        created_by=created_by,
    )

    paid_cents = plan.paid_cents + amount_cents
    remaining_cents = plan.total_cents - paid_cents

    if remaining_cents == 0:
        status = PlanStatus.COMPLETED
        next_due = None
    else:
        next_due = add_cadence(plan.next_payment_due_date or plan.start_date, plan.cadence)
        status = PlanStatus.OVERDUE if next_due < today else PlanStatus.ACTIVE

    updated = replace(
        plan,
        paid_cents=paid_cents,
        remaining_cents=remaining_cents,
        paid_installment_count=plan.paid_installment_count + 1,
        next_payment_due_date=next_due,
        status=status,
    )
    return updated, payment


def apply_down_payment(
    plan: InstallmentPlan,
    payment_method: PaymentMethod,
    created_by: Optional[str] = None,
) -> Tuple[InstallmentPlan, InstallmentPayment]:
    """
    Record the first installment at signing.

    The down payment is dated start_date and covers the first installment, so
    the due date computed at creation is kept and the schedule starts on
    start_date.
    """
    if plan.paid_installment_count != 0:
        raise InvalidStateError(f"Plan {plan.id} already has payments")

    updated, payment = apply_payment(
        plan,
        plan.installment_cents,
        payment_method,
        payment_date=plan.start_date,
        payment_number=1,
        today=plan.start_date,
        notes="First installment paid at signing",
        created_by=created_by,
    )
    if updated.status != PlanStatus.COMPLETED:
        updated = replace(updated, next_payment_due_date=plan.next_payment_due_date, status=PlanStatus.ACTIVE)
    updated = replace(updated, first_due_date=plan.start_date)
    return updated, payment


def refresh_overdue_status(plan: InstallmentPlan, as_of: date) -> PlanStatus:
    """
    Status the plan should have on `as_of`.

    Only active -> overdue happens here; overdue -> active happens when a payment
    moves the due date forward. Terminal states never change.
    """
    status = PlanStatus(plan.status)
    if status == PlanStatus.ACTIVE and plan.next_payment_due_date is not None and plan.next_payment_due_date < as_of:
        return PlanStatus.OVERDUE
    return status


def mark_overdue(plans: Sequence[InstallmentPlan], as_of: date) -> List[InstallmentPlan]:
    """Plans whose status changes on `as_of`, with the new status applied"""
    changed = []
    for plan in plans:
        status = refresh_overdue_status(plan, as_of)
        if status != plan.status:
            changed.append(replace(plan, status=status))
    return changed


def cancel(plan: InstallmentPlan, reason: str = "") -> InstallmentPlan:
    """Soft-cancel a plan. Prior payments are kept as-is."""
    status = PlanStatus(plan.status)
    if status.is_terminal:
        raise InvalidStateError(f"Plan {plan.id} is {status.value} and cannot be cancelled")
    return replace(plan, status=PlanStatus.CANCELLED, cancellation_reason=reason or None)
