"""Summary statistics over installment plans for dashboards and reports"""

from datetime import date
from typing import Iterable

from layaway_gateway.domain.models import InstallmentPayment, InstallmentPlan, PlanStatus, PlanSummary
from layaway_gateway.utils.date_utils import week_start


def summarize(
    plans: Iterable[InstallmentPlan],
    payments: Iterable[InstallmentPayment],
    today: date,
) -> PlanSummary:
    """
    Reduce plans and payments into a PlanSummary.

    - Counts by status
    - Financed / paid / pending totals (minor units)
    - Payments dated today, and since the Sunday starting this week
    """
    summary = PlanSummary()

    for plan in plans:
        summary.total_plans += 1
        summary.total_financed_cents += plan.total_cents
        summary.total_paid_cents += plan.paid_cents
        summary.total_pending_cents += plan.remaining_cents

        status = PlanStatus(plan.status)
        if status == PlanStatus.ACTIVE:
            summary.active_count += 1
        elif status == PlanStatus.OVERDUE:
            summary.overdue_count += 1
        elif status == PlanStatus.COMPLETED:
            summary.completed_count += 1
        else:
            summary.cancelled_count += 1

    since = week_start(today)
    for payment in payments:
        if payment.payment_date == today:
            summary.payments_today += 1
        if since <= payment.payment_date <= today:
            summary.payments_this_week += 1

    return summary


def progress_percent(plan: InstallmentPlan) -> float:
    """Share of the total already paid, one decimal"""
    if plan.total_cents <= 0:
        return 0.0
    return round(plan.paid_cents * 100 / plan.total_cents, 1)
