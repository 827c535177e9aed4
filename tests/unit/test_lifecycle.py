"""Unit tests for plan lifecycle transitions"""

import uuid
import pytest
from dataclasses import replace
from datetime import date
from layaway_gateway.domain import lifecycle
from layaway_gateway.domain.exceptions import InvalidStateError, ValidationError
from layaway_gateway.domain.models import Cadence, LineItem, PaymentMethod, PlanStatus

TODAY = date(2024, 3, 15)


def make_plan(total_cents=1_000_000, installment_count=12, cadence=Cadence.MONTHLY, start_date=TODAY):
    return lifecycle.build_plan(
        customer_id=uuid.uuid4(),
        line_items=[LineItem(product_id=uuid.uuid4(), quantity=1, unit_price_cents=total_cents)],
        cadence=cadence,
        installment_count=installment_count,
        start_date=start_date,
    )


def pay(plan, amount, today=TODAY, number=None):
    return lifecycle.apply_payment(
        plan,
        amount,
        PaymentMethod.CASH,
        payment_date=today,
        payment_number=number or plan.paid_installment_count + 1,
        today=today,
    )


def assert_balanced(plan):
    assert plan.total_cents == plan.paid_cents + plan.remaining_cents
    assert plan.remaining_cents >= 0


def test_build_plan_initial_state():
    plan = lifecycle.build_plan(
        customer_id=uuid.uuid4(),
        line_items=[
            LineItem(product_id=uuid.uuid4(), quantity=2, unit_price_cents=300_000),
            LineItem(product_id=uuid.uuid4(), quantity=4, unit_price_cents=100_000),
        ],
        cadence=Cadence.MONTHLY,
        installment_count=12,
        start_date=date(2024, 1, 31),
        notes="Deliver after last payment",
        created_by="admin-1",
    )

    assert plan.total_cents == 1_000_000
    assert plan.installment_cents == 83_333
    assert plan.final_installment_cents == 83_337
    assert plan.paid_cents == 0
    assert plan.remaining_cents == 1_000_000
    assert plan.paid_installment_count == 0
    assert plan.status == PlanStatus.ACTIVE
    assert plan.next_payment_due_date == date(2024, 2, 29)
    assert plan.created_by == "admin-1"


def test_build_plan_snapshot_is_independent_of_input_list():
    items = [LineItem(product_id=uuid.uuid4(), quantity=1, unit_price_cents=50_000)]
    plan = lifecycle.build_plan(uuid.uuid4(), items, Cadence.WEEKLY, 2, TODAY)
    items.append(LineItem(product_id=uuid.uuid4(), quantity=1, unit_price_cents=1))

    assert len(plan.line_items) == 1


@pytest.mark.parametrize("count", [0, 1, 61, 100])
def test_build_plan_rejects_installment_count_out_of_range(count):
    with pytest.raises(ValidationError) as exc_info:
        make_plan(installment_count=count)
    assert exc_info.value.field == "installment_count"


@pytest.mark.parametrize("count", [2, 60])
def test_build_plan_accepts_installment_count_bounds(count):
    assert make_plan(installment_count=count).installment_count == count


def test_build_plan_rejects_empty_items():
    with pytest.raises(ValidationError) as exc_info:
        lifecycle.build_plan(uuid.uuid4(), [], Cadence.DAILY, 3, TODAY)
    assert exc_info.value.field == "line_items"


def test_build_plan_rejects_non_positive_quantity():
    items = [LineItem(product_id=uuid.uuid4(), quantity=0, unit_price_cents=10_000)]
    with pytest.raises(ValidationError) as exc_info:
        lifecycle.build_plan(uuid.uuid4(), items, Cadence.DAILY, 3, TODAY)
    assert exc_info.value.field == "quantity"


def test_build_plan_requires_customer():
    items = [LineItem(product_id=uuid.uuid4(), quantity=1, unit_price_cents=10_000)]
    with pytest.raises(ValidationError) as exc_info:
        lifecycle.build_plan(None, items, Cadence.DAILY, 3, TODAY)
    assert exc_info.value.field == "customer_id"


def test_apply_payment_updates_totals_and_advances_due_date():
    plan = make_plan()
    updated, payment = pay(plan, 83_333)

    assert payment.payment_number == 1
    assert payment.amount_cents == 83_333
    assert updated.paid_cents == 83_333
    assert updated.remaining_cents == 916_667
    assert updated.paid_installment_count == 1
    assert updated.next_payment_due_date == date(2024, 5, 15)
    assert updated.status == PlanStatus.ACTIVE
    assert_balanced(updated)
    # Input plan untouched
    assert plan.paid_cents == 0


def test_apply_payment_exact_remaining_completes_plan():
    plan = make_plan(total_cents=100_000, installment_count=2)
    plan, _ = pay(plan, 40_000)
    completed, _ = pay(plan, plan.remaining_cents)

    assert completed.status == PlanStatus.COMPLETED
    assert completed.remaining_cents == 0
    assert completed.next_payment_due_date is None
    assert_balanced(completed)


def test_apply_payment_completion_ignores_payment_count():
    """Three uneven payments on a two-installment plan"""
    plan = make_plan(total_cents=100_000, installment_count=2)
    plan, _ = pay(plan, 30_000)
    plan, _ = pay(plan, 30_000)
    assert plan.status == PlanStatus.ACTIVE
    assert plan.paid_installment_count == 2

    plan, _ = pay(plan, 40_000)
    assert plan.status == PlanStatus.COMPLETED
    assert plan.paid_installment_count == 3


def test_apply_payment_over_remaining_rejected():
    plan = make_plan(total_cents=100_000, installment_count=2)
    with pytest.raises(ValidationError) as exc_info:
        pay(plan, 100_001)
    assert exc_info.value.field == "amount_cents"
    assert "exceeds remaining balance" in exc_info.value.message


@pytest.mark.parametrize("amount", [0, -5])
def test_apply_payment_non_positive_rejected(amount):
    with pytest.raises(ValidationError):
        pay(make_plan(), amount)


@pytest.mark.parametrize("status", [PlanStatus.COMPLETED, PlanStatus.CANCELLED])
def test_apply_payment_on_closed_plan_rejected(status):
    plan = replace(make_plan(), status=status)
    with pytest.raises(InvalidStateError):
        pay(plan, 1_000)


def test_apply_payment_stays_overdue_when_new_due_date_still_past():
    plan = replace(make_plan(start_date=date(2023, 12, 15)), status=PlanStatus.OVERDUE)
    # Due 2024-01-15; paying moves it to 2024-02-15, still behind TODAY
    updated, _ = pay(plan, 83_333)

    assert updated.next_payment_due_date == date(2024, 2, 15)
    assert updated.status == PlanStatus.OVERDUE


def test_apply_payment_returns_overdue_plan_to_active():
    plan = replace(make_plan(start_date=date(2024, 1, 15)), status=PlanStatus.OVERDUE)
    # Due 2024-02-15; paying moves it to 2024-03-15 which is TODAY
    updated, _ = pay(plan, 83_333)

    assert updated.next_payment_due_date == date(2024, 3, 15)
    assert updated.status == PlanStatus.ACTIVE


def test_apply_down_payment_keeps_due_date():
    plan = make_plan(start_date=date(2024, 1, 31))
    updated, payment = lifecycle.apply_down_payment(plan, PaymentMethod.NEQUI, created_by="admin-1")

    assert payment.payment_number == 1
    assert payment.amount_cents == 83_333
    assert payment.payment_date == date(2024, 1, 31)
    assert updated.next_payment_due_date == date(2024, 2, 29)
    assert updated.status == PlanStatus.ACTIVE
    assert updated.paid_installment_count == 1
    assert_balanced(updated)


def test_refresh_overdue_status_marks_past_due_active_plan():
    plan = make_plan(total_cents=50_000, installment_count=2, cadence=Cadence.DAILY, start_date=date(2024, 3, 13))
    assert plan.next_payment_due_date == date(2024, 3, 14)  # yesterday

    assert lifecycle.refresh_overdue_status(plan, TODAY) == PlanStatus.OVERDUE
    assert plan.remaining_cents == 50_000


def test_refresh_overdue_status_due_today_is_not_overdue():
    plan = make_plan(cadence=Cadence.DAILY, start_date=date(2024, 3, 14))
    assert lifecycle.refresh_overdue_status(plan, TODAY) == PlanStatus.ACTIVE


@pytest.mark.parametrize("status", [PlanStatus.COMPLETED, PlanStatus.CANCELLED, PlanStatus.OVERDUE])
def test_refresh_overdue_status_leaves_other_states(status):
    plan = replace(make_plan(start_date=date(2020, 1, 1)), status=status)
    assert lifecycle.refresh_overdue_status(plan, TODAY) == status


def test_mark_overdue_returns_only_changed_plans():
    late = make_plan(cadence=Cadence.DAILY, start_date=date(2024, 3, 1))
    current = make_plan(cadence=Cadence.MONTHLY, start_date=TODAY)

    changed = lifecycle.mark_overdue([late, current], TODAY)

    assert [p.id for p in changed] == [late.id]
    assert changed[0].status == PlanStatus.OVERDUE
    assert changed[0].paid_cents == late.paid_cents


@pytest.mark.parametrize("status", [PlanStatus.ACTIVE, PlanStatus.OVERDUE])
def test_cancel_from_open_states(status):
    plan, _ = pay(make_plan(), 83_333)
    plan = replace(plan, status=status)

    cancelled = lifecycle.cancel(plan, "Customer withdrew")

    assert cancelled.status == PlanStatus.CANCELLED
    assert cancelled.cancellation_reason == "Customer withdrew"
    assert cancelled.paid_cents == 83_333


@pytest.mark.parametrize("status", [PlanStatus.COMPLETED, PlanStatus.CANCELLED])
def test_cancel_terminal_states_rejected(status):
    with pytest.raises(InvalidStateError):
        lifecycle.cancel(replace(make_plan(), status=status))


def test_balance_invariant_over_full_schedule():
    plan = make_plan()
    for number in range(1, 12):
        plan, _ = pay(plan, plan.installment_cents, number=number)
        assert_balanced(plan)

    assert plan.remaining_cents == plan.final_installment_cents == 83_337
    plan, _ = pay(plan, plan.final_installment_cents, number=12)
    assert plan.status == PlanStatus.COMPLETED
    assert_balanced(plan)
