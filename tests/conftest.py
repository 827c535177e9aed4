"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import date
from typing import Callable, Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from layaway_gateway.api.main import create_app
from layaway_gateway.api.dependencies import get_current_actor, get_engine
from layaway_gateway.infrastructure.database.models import Base, Customer, Product
from layaway_gateway.infrastructure.database.repositories import PlanRepository
from layaway_gateway.infrastructure.database.session import get_db
from layaway_gateway.domain.models import Actor, Cadence, LineItem, Role
from layaway_gateway.services.engine import InstallmentEngine


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed "today" so due-date and overdue checks are deterministic
TODAY = date(2024, 3, 15)

ADMIN = Actor(id="admin-1", role=Role.ADMIN)
EMPLOYEE = Actor(id="employee-1", role=Role.EMPLOYEE)


class FailingPaymentRepository(PlanRepository):
    """Store whose payment inserts fail like a lost database connection"""

    def insert_payment(self, payment):
        raise OperationalError("INSERT INTO installment_payments", {}, Exception("server closed the connection"))


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def customer(db: Session) -> Customer:
    row = Customer(id=uuid.uuid4(), name="Ana Gomez", document_number="1020304050")
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def products(db: Session) -> List[Product]:
    rows = [
        Product(id=uuid.uuid4(), name="Refrigerator", price_cents=800_000),
        Product(id=uuid.uuid4(), name="Microwave", price_cents=200_000),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def line_items(products: List[Product]) -> List[LineItem]:
    """Two products totalling 1,000,000"""
    return [
        LineItem(product_id=products[0].id, quantity=1, unit_price_cents=800_000),
        LineItem(product_id=products[1].id, quantity=1, unit_price_cents=200_000),
    ]


@pytest.fixture
def plan_engine(db: Session) -> InstallmentEngine:
    return InstallmentEngine(PlanRepository(db), today=lambda: TODAY)


@pytest.fixture
def make_plan(plan_engine: InstallmentEngine, customer: Customer, line_items: List[LineItem]) -> Callable:
    """Factory for persisted plans, defaults: 1,000,000 over 12 monthly from TODAY"""

    def _make(**overrides):
        params = dict(
            customer_id=customer.id,
            line_items=line_items,
            cadence=Cadence.MONTHLY,
            installment_count=12,
            start_date=TODAY,
        )
        params.update(overrides)
        return plan_engine.create_plan(ADMIN, **params)

    return _make


def _build_client(db: Session, actor: Actor) -> TestClient:
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: InstallmentEngine(PlanRepository(db), today=lambda: TODAY)
    app.dependency_overrides[get_current_actor] = lambda: actor
    return TestClient(app)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database, authenticated as admin"""
    return _build_client(db, ADMIN)


@pytest.fixture
def employee_client(db: Session) -> TestClient:
    """Test client authenticated as an employee"""
    return _build_client(db, EMPLOYEE)
