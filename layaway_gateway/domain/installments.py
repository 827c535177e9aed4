"""Installment schedule generation for layaway repayment"""

from datetime import date
from typing import List, Optional

from layaway_gateway.domain.models import Cadence, Installment, InstallmentPlan
from layaway_gateway.domain.money import split_installments
from layaway_gateway.utils.date_utils import add_cadence


def generate_installments(
    total_cents: int,
    installment_count: int,
    cadence: Cadence,
    start_date: date,
    paid_cents: int = 0,
    first_due_date: Optional[date] = None,
) -> List[Installment]:
    """
    Project the full repayment schedule for a plan.

    Requirements:
    - First installment falls on first_due_date, by default one cadence step
      after start_date
    - Each following due date advances by one cadence step from the previous one
    - Last installment absorbs rounding remainder so amounts sum to the total
    - Installments already covered by paid_cents are marked "paid", the first
      uncovered one "due", the rest "scheduled"

    Example:
        100_000 over 3 monthly from 2024-01-31 ->
        [(2024-02-29, 33_333), (2024-03-29, 33_333), (2024-04-29, 33_334)]
    """
    if total_cents <= 0:
        return []

    installment_cents, final_cents = split_installments(total_cents, installment_count)

    installments = []
    due_date = first_due_date or add_cadence(start_date, cadence)
    covered = paid_cents
    marked_due = False
    for number in range(1, installment_count + 1):
        if number > 1:
            due_date = add_cadence(due_date, cadence)
        amount = final_cents if number == installment_count else installment_cents

        if covered >= amount:
            status = "paid"
            covered -= amount
        elif not marked_due:
            status = "due"
            covered = 0
            marked_due = True
        else:
            status = "scheduled"

        installments.append(Installment(due_date=due_date, amount_cents=amount, number=number, status=status))

    return installments


def generate_installment_schedule(plan: InstallmentPlan) -> List[Installment]:
    """Schedule for an existing plan, reflecting what has been paid so far"""
    return generate_installments(
        plan.total_cents,
        plan.installment_count,
        plan.cadence,
        plan.start_date,
        paid_cents=plan.paid_cents,
        first_due_date=plan.first_due_date,
    )
