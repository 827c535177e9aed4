"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class Cadence(str, Enum):
    """Interval between scheduled installments"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PlanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (PlanStatus.COMPLETED, PlanStatus.CANCELLED)

    @property
    def accepts_payments(self) -> bool:
        return self in (PlanStatus.ACTIVE, PlanStatus.OVERDUE)


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    NEQUI = "nequi"
    DAVIPLATA = "daviplata"
    BANCOLOMBIA = "bancolombia"


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Actor:
    """Authenticated user performing an operation"""

    id: str
    role: Role = Role.EMPLOYEE


@dataclass(frozen=True)
class LineItem:
    """Product snapshot taken when the plan is created"""

    product_id: uuid.UUID
    quantity: int
    unit_price_cents: int

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass
class InstallmentPlan:
    """Layaway agreement financed over several scheduled payments"""

    id: uuid.UUID
    customer_id: uuid.UUID
    line_items: List[LineItem]
    cadence: Cadence
    installment_count: int
    installment_cents: int
    total_cents: int
    start_date: date
    next_payment_due_date: Optional[date]
    first_due_date: Optional[date] = None
    paid_cents: int = 0
    remaining_cents: int = 0
    paid_installment_count: int = 0
    status: PlanStatus = PlanStatus.ACTIVE
    notes: str = ""
    created_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def final_installment_cents(self) -> int:
        return self.total_cents - self.installment_cents * (self.installment_count - 1)


@dataclass(frozen=True)
class InstallmentPayment:
    """Single payment recorded against a plan; immutable once created"""

    id: uuid.UUID
    plan_id: uuid.UUID
    payment_number: int
    amount_cents: int
    payment_date: date
    payment_method: PaymentMethod
    notes: str = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Installment:
    """Single scheduled slot in a repayment plan"""

    due_date: date
    amount_cents: int
    number: int = 1
    status: str = "scheduled"  # "paid" | "due" | "scheduled"


@dataclass
class PlanSummary:
    """Aggregate figures over a set of plans, used by dashboards"""

    total_plans: int = 0
    active_count: int = 0
    overdue_count: int = 0
    completed_count: int = 0
    cancelled_count: int = 0
    total_financed_cents: int = 0
    total_paid_cents: int = 0
    total_pending_cents: int = 0
    payments_today: int = 0
    payments_this_week: int = 0
