"""Data access layer for layaway entities"""

import uuid
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, List, Optional, Set

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from layaway_gateway.domain.exceptions import ConflictError, StoreError
from layaway_gateway.domain.models import (
    Cadence,
    InstallmentPayment,
    InstallmentPlan,
    LineItem,
    PaymentMethod,
    PlanStatus,
)
from layaway_gateway.infrastructure.database.models import (
    Customer,
    InstallmentPaymentRow,
    InstallmentSale,
    InstallmentSaleItem,
    Product,
)


def _to_plan(row: InstallmentSale) -> InstallmentPlan:
    return InstallmentPlan(
        id=row.id,
        customer_id=row.customer_id,
        line_items=[
            LineItem(product_id=item.product_id, quantity=item.quantity, unit_price_cents=item.unit_price_cents)
            for item in row.items
        ],
        cadence=Cadence(row.installment_type),
        installment_count=row.installment_count,
        installment_cents=row.installment_cents,
        total_cents=row.total_cents,
        start_date=row.start_date,
        first_due_date=row.first_payment_date,
        next_payment_due_date=row.next_payment_date,
        paid_cents=row.paid_cents,
        remaining_cents=row.remaining_cents,
        paid_installment_count=row.paid_installments,
        status=PlanStatus(row.status),
        notes=row.notes or "",
        created_by=row.created_by,
        cancellation_reason=row.cancellation_reason,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_payment(row: InstallmentPaymentRow) -> InstallmentPayment:
    return InstallmentPayment(
        id=row.id,
        plan_id=row.installment_sale_id,
        payment_number=row.payment_number,
        amount_cents=row.amount_cents,
        payment_date=row.payment_date,
        payment_method=PaymentMethod(row.payment_method),
        notes=row.notes or "",
        created_by=row.created_by,
        created_at=row.created_at,
    )


class PlanRepository:
    """
    Repository for installment plans and their payments.

    Writes are only flushed; the surrounding transaction() commits or rolls
    back the whole unit of work.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator["PlanRepository"]:
        """Commit on success, roll back on any error"""
        try:
            yield self
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Racing writers collide on (installment_sale_id, payment_number)
            raise ConflictError(f"Concurrent write rejected: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Database error: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    # Catalog lookups

    def customer_exists(self, customer_id: uuid.UUID) -> bool:
        return self.db.get(Customer, customer_id) is not None

    def missing_products(self, product_ids: Iterable[uuid.UUID]) -> Set[uuid.UUID]:
        """Product ids from the input that have no catalog row"""
        wanted = set(product_ids)
        if not wanted:
            return set()
        found = self.db.scalars(select(Product.id).where(Product.id.in_(wanted))).all()
        return wanted - set(found)

    # Plans

    def insert_plan(self, plan: InstallmentPlan) -> uuid.UUID:
        """Insert plan and its line item snapshot"""
        db_plan = InstallmentSale(
            id=plan.id,
            customer_id=plan.customer_id,
            total_cents=plan.total_cents,
            paid_cents=plan.paid_cents,
            remaining_cents=plan.remaining_cents,
            installment_type=Cadence(plan.cadence).value,
            installment_cents=plan.installment_cents,
            installment_count=plan.installment_count,
            paid_installments=plan.paid_installment_count,
            start_date=plan.start_date,
            first_payment_date=plan.first_due_date,
            next_payment_date=plan.next_payment_due_date,
            status=PlanStatus(plan.status).value,
            notes=plan.notes,
            version=plan.version,
            created_by=plan.created_by,
        )
        self.db.add(db_plan)

        for position, item in enumerate(plan.line_items):
            self.db.add(
                InstallmentSaleItem(
                    installment_sale_id=plan.id,
                    position=position,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price_cents=item.unit_price_cents,
                    total_price_cents=item.total_cents,
                )
            )

        self.db.flush()
        return db_plan.id

    def get_plan(self, plan_id: uuid.UUID) -> Optional[InstallmentPlan]:
        """Fetch plan with line items, bypassing stale identity-map state"""
        row = self.db.scalars(
            select(InstallmentSale)
            .options(selectinload(InstallmentSale.items))
            .where(InstallmentSale.id == plan_id)
            .execution_options(populate_existing=True)
        ).first()
        return _to_plan(row) if row else None

    def update_plan_totals(self, plan: InstallmentPlan, expected_version: int) -> int:
        """
        Write running totals and status if nobody else has since.

        Returns the new version. Raises ConflictError when the stored version
        no longer matches expected_version.
        """
        new_version = expected_version + 1
        result = self.db.execute(
            update(InstallmentSale)
            .where(InstallmentSale.id == plan.id, InstallmentSale.version == expected_version)
            .values(
                paid_cents=plan.paid_cents,
                remaining_cents=plan.remaining_cents,
                paid_installments=plan.paid_installment_count,
                status=PlanStatus(plan.status).value,
                next_payment_date=plan.next_payment_due_date,
                cancellation_reason=plan.cancellation_reason,
                version=new_version,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(f"Plan {plan.id} was modified concurrently (expected version {expected_version})")
        return new_version

    def list_plans(
        self,
        status: Optional[PlanStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
        due_on_or_before: Optional[date] = None,
        order_by_due: bool = False,
    ) -> List[InstallmentPlan]:
        query = select(InstallmentSale).options(selectinload(InstallmentSale.items))
        if status is not None:
            query = query.where(InstallmentSale.status == PlanStatus(status).value)
        if customer_id is not None:
            query = query.where(InstallmentSale.customer_id == customer_id)
        if due_on_or_before is not None:
            query = query.where(InstallmentSale.next_payment_date <= due_on_or_before)

        if order_by_due:
            query = query.order_by(InstallmentSale.next_payment_date.asc())
        else:
            query = query.order_by(InstallmentSale.created_at.desc())

        rows = self.db.scalars(query.execution_options(populate_existing=True)).all()
        return [_to_plan(row) for row in rows]

    def delete_plan_cascade(self, plan_id: uuid.UUID) -> bool:
        """Remove payments, then items, then the plan. Returns False if absent."""
        self.db.execute(delete(InstallmentPaymentRow).where(InstallmentPaymentRow.installment_sale_id == plan_id))
        self.db.execute(delete(InstallmentSaleItem).where(InstallmentSaleItem.installment_sale_id == plan_id))
        result = self.db.execute(delete(InstallmentSale).where(InstallmentSale.id == plan_id))
        return result.rowcount == 1

    # Payments

    def count_payments(self, plan_id: uuid.UUID) -> int:
        return self.db.scalar(
            select(func.count()).select_from(InstallmentPaymentRow).where(InstallmentPaymentRow.installment_sale_id == plan_id)
        )

    def insert_payment(self, payment: InstallmentPayment) -> uuid.UUID:
        db_payment = InstallmentPaymentRow(
            id=payment.id,
            installment_sale_id=payment.plan_id,
            payment_number=payment.payment_number,
            amount_cents=payment.amount_cents,
            payment_date=payment.payment_date,
            payment_method=PaymentMethod(payment.payment_method).value,
            notes=payment.notes,
            created_by=payment.created_by,
        )
        self.db.add(db_payment)
        self.db.flush()
        return db_payment.id

    def list_payments(self, plan_id: uuid.UUID) -> List[InstallmentPayment]:
        rows = self.db.scalars(
            select(InstallmentPaymentRow)
            .where(InstallmentPaymentRow.installment_sale_id == plan_id)
            .order_by(InstallmentPaymentRow.payment_number.asc())
        ).all()
        return [_to_payment(row) for row in rows]

    def list_payments_since(self, since: date) -> List[InstallmentPayment]:
        rows = self.db.scalars(
            select(InstallmentPaymentRow)
            .where(InstallmentPaymentRow.payment_date >= since)
            .order_by(InstallmentPaymentRow.payment_date.asc())
        ).all()
        return [_to_payment(row) for row in rows]
