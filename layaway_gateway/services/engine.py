"""Installment engine - store-backed layaway operations with optimistic concurrency"""

import logging
import uuid
from datetime import date
from typing import Callable, List, Optional, Sequence

from layaway_gateway.config import settings
from layaway_gateway.domain import lifecycle
from layaway_gateway.domain.exceptions import ConflictError, InvalidStateError, NotFoundError
from layaway_gateway.domain.installments import generate_installment_schedule
from layaway_gateway.domain.models import (
    Actor,
    Cadence,
    Installment,
    InstallmentPayment,
    InstallmentPlan,
    LineItem,
    PaymentMethod,
    PlanStatus,
    PlanSummary,
)
from layaway_gateway.domain.reporting import summarize
from layaway_gateway.infrastructure.database.repositories import PlanRepository
from layaway_gateway.infrastructure.observability.logging import log_plan_event
from layaway_gateway.infrastructure.observability.metrics import (
    conflict_counter,
    record_payment_metrics,
    record_status_change,
    plans_created_counter,
)
from layaway_gateway.utils.date_utils import week_start

logger = logging.getLogger(__name__)


class InstallmentEngine:
    """
    Operations over layaway plans.

    Every mutation runs read-validate-write inside one store transaction and
    writes plan totals guarded by the plan version. A version mismatch rolls
    the attempt back and re-runs it, up to max_retries attempts.
    """

    def __init__(
        self,
        store: PlanRepository,
        today: Callable[[], date] = date.today,
        max_retries: Optional[int] = None,
    ):
        self.store = store
        self.today = today
        if max_retries is None:
            max_retries = settings.conflict_max_retries
        self.max_retries = max_retries

    def create_plan(
        self,
        actor: Actor,
        customer_id: uuid.UUID,
        line_items: Sequence[LineItem],
        cadence: Cadence,
        installment_count: int,
        start_date: Optional[date] = None,
        notes: str = "",
        down_payment_method: Optional[PaymentMethod] = None,
    ) -> InstallmentPlan:
        """
        Create a plan and persist it with its line items atomically.

        When down_payment_method is given the first installment is recorded on
        start_date in the same transaction.
        """
        start_date = start_date or self.today()
        plan = lifecycle.build_plan(
            customer_id,
            line_items,
            cadence,
            installment_count,
            start_date,
            notes=notes,
            created_by=actor.id,
        )

        down_payment = None
        if down_payment_method is not None:
            plan, down_payment = lifecycle.apply_down_payment(plan, down_payment_method, created_by=actor.id)

        with self.store.transaction():
            if not self.store.customer_exists(customer_id):
                raise NotFoundError(f"Customer {customer_id} not found", field="customer_id")

            missing = self.store.missing_products(item.product_id for item in line_items)
            if missing:
                ids = ", ".join(sorted(str(product_id) for product_id in missing))
                raise NotFoundError(f"Products not found: {ids}", field="line_items")

            self.store.insert_plan(plan)
            if down_payment is not None:
                self.store.insert_payment(down_payment)

        plans_created_counter.labels(cadence=Cadence(plan.cadence).value).inc()
        if down_payment is not None:
            record_payment_metrics(down_payment.payment_method, down_payment.amount_cents)
        log_plan_event(
            "Plan created",
            plan,
            actor_id=actor.id,
            installment_cents=plan.installment_cents,
            installment_count=plan.installment_count,
        )
        return plan

    def record_payment(
        self,
        actor: Actor,
        plan_id: uuid.UUID,
        amount_cents: int,
        payment_method: PaymentMethod,
        payment_date: Optional[date] = None,
        notes: str = "",
    ) -> InstallmentPayment:
        """Record a payment and recompute totals, due date and status"""
        payment_date = payment_date or self.today()

        def attempt():
            plan = self._load(plan_id)
            payment_number = self.store.count_payments(plan_id) + 1
            updated, payment = lifecycle.apply_payment(
                plan,
                amount_cents,
                payment_method,
                payment_date=payment_date,
                payment_number=payment_number,
                today=self.today(),
                notes=notes,
                created_by=actor.id,
            )
            self.store.insert_payment(payment)
            self.store.update_plan_totals(updated, expected_version=plan.version)
            return plan, updated, payment

        before, after, payment = self._with_retry("record_payment", plan_id, attempt)

        record_payment_metrics(payment.payment_method, payment.amount_cents)
        if before.status != after.status:
            record_status_change(after.status)
        log_plan_event(
            "Payment recorded",
            after,
            actor_id=actor.id,
            payment_number=payment.payment_number,
            amount_cents=payment.amount_cents,
            payment_method=PaymentMethod(payment.payment_method).value,
        )
        return payment

    def cancel_plan(self, actor: Actor, plan_id: uuid.UUID, reason: str = "") -> InstallmentPlan:
        """Soft-cancel; payments already recorded are kept"""

        def attempt():
            plan = self._load(plan_id)
            cancelled = lifecycle.cancel(plan, reason)
            cancelled.version = self.store.update_plan_totals(cancelled, expected_version=plan.version)
            return cancelled

        cancelled = self._with_retry("cancel_plan", plan_id, attempt)

        record_status_change(cancelled.status)
        log_plan_event("Plan cancelled", cancelled, actor_id=actor.id, reason=reason)
        return cancelled

    def delete_plan(self, actor: Actor, plan_id: uuid.UUID) -> None:
        """Hard delete of a plan together with its payments and line items"""
        with self.store.transaction():
            if not self.store.delete_plan_cascade(plan_id):
                raise NotFoundError(f"Plan {plan_id} not found", field="plan_id")

        logger.warning("Plan deleted", extra={"plan_id": str(plan_id), "actor_id": actor.id})

    def refresh_overdue(self, as_of: Optional[date] = None) -> List[InstallmentPlan]:
        """
        Batch sweep: move active plans whose due date has passed to overdue.

        A plan changed concurrently is left for the next sweep.
        """
        as_of = as_of or self.today()
        with self.store.transaction():
            candidates = self.store.list_plans(status=PlanStatus.ACTIVE)

        changed = []
        for plan in lifecycle.mark_overdue(candidates, as_of):
            try:
                with self.store.transaction():
                    plan.version = self.store.update_plan_totals(plan, expected_version=plan.version)
            except ConflictError:
                conflict_counter.labels(operation="refresh_overdue").inc()
                logger.info("Skipped plan changed during sweep", extra={"plan_id": str(plan.id)})
                continue
            record_status_change(plan.status)
            changed.append(plan)

        logger.info("Overdue sweep finished", extra={"as_of": as_of.isoformat(), "changed": len(changed)})
        return changed

    # Queries

    def get_plan(self, plan_id: uuid.UUID) -> InstallmentPlan:
        with self.store.transaction():
            return self._load(plan_id)

    def list_plans(
        self,
        status: Optional[PlanStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
    ) -> List[InstallmentPlan]:
        with self.store.transaction():
            return self.store.list_plans(status=status, customer_id=customer_id)

    def list_overdue(self) -> List[InstallmentPlan]:
        with self.store.transaction():
            return self.store.list_plans(status=PlanStatus.OVERDUE, order_by_due=True)

    def list_due_today(self, as_of: Optional[date] = None) -> List[InstallmentPlan]:
        """Active plans whose next installment is due on or before as_of"""
        as_of = as_of or self.today()
        with self.store.transaction():
            return self.store.list_plans(status=PlanStatus.ACTIVE, due_on_or_before=as_of, order_by_due=True)

    def list_payments(self, plan_id: uuid.UUID) -> List[InstallmentPayment]:
        with self.store.transaction():
            self._load(plan_id)
            return self.store.list_payments(plan_id)

    def schedule(self, plan_id: uuid.UUID) -> List[Installment]:
        return generate_installment_schedule(self.get_plan(plan_id))

    def summary(self, today: Optional[date] = None) -> PlanSummary:
        today = today or self.today()
        with self.store.transaction():
            plans = self.store.list_plans()
            payments = self.store.list_payments_since(week_start(today))
        return summarize(plans, payments, today)

    # Internals

    def _load(self, plan_id: uuid.UUID) -> InstallmentPlan:
        plan = self.store.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found", field="plan_id")
        return plan

    def _with_retry(self, operation: str, plan_id: uuid.UUID, attempt: Callable):
        conflicted = False
        for attempt_number in range(1, self.max_retries + 1):
            try:
                with self.store.transaction():
                    return attempt()
            except ConflictError:
                conflicted = True
                conflict_counter.labels(operation=operation).inc()
                logger.warning(
                    "Concurrent update on plan, retrying",
                    extra={"plan_id": str(plan_id), "attempt": attempt_number},
                )
            except InvalidStateError as e:
                if conflicted:
                    # The concurrent writer closed the plan the caller was acting on
                    raise ConflictError(f"Plan {plan_id} was closed by a concurrent update") from e
                raise

        raise ConflictError(f"Plan {plan_id} kept changing; gave up after {self.max_retries} attempts")
