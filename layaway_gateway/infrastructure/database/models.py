"""SQLAlchemy ORM models for layaway sales"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Date,
    DateTime,
    Integer,
    ForeignKey,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Customer(Base):
    """Customer row owned by the catalog; read here to resolve plan owners"""

    __tablename__ = "customers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    document_number = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Product(Base):
    """Product row owned by the catalog; read here to resolve line items"""

    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    price_cents = Column(BigInteger, nullable=False)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InstallmentSale(Base):
    """Layaway plan with running totals"""

    __tablename__ = "installment_sales"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = Column(Uuid, ForeignKey("customers.id"), nullable=False, index=True)
    total_cents = Column(BigInteger, nullable=False)
    paid_cents = Column(BigInteger, nullable=False, default=0)
    remaining_cents = Column(BigInteger, nullable=False)
    installment_type = Column(String(10), nullable=False)
    installment_cents = Column(BigInteger, nullable=False)
    installment_count = Column(Integer, nullable=False)
    paid_installments = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    first_payment_date = Column(Date, nullable=True)
    next_payment_date = Column(Date, nullable=True, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    notes = Column(Text, nullable=False, default="")
    cancellation_reason = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "InstallmentSaleItem",
        back_populates="sale",
        order_by="InstallmentSaleItem.position",
    )
    payments = relationship(
        "InstallmentPaymentRow",
        back_populates="sale",
        order_by="InstallmentPaymentRow.payment_number",
    )


class InstallmentSaleItem(Base):
    """Line item snapshot taken when the plan was created"""

    __tablename__ = "installment_sale_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    installment_sale_id = Column(Uuid, ForeignKey("installment_sales.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price_cents = Column(BigInteger, nullable=False)
    total_price_cents = Column(BigInteger, nullable=False)

    sale = relationship("InstallmentSale", back_populates="items")


class InstallmentPaymentRow(Base):
    """Payment recorded against a layaway plan"""

    __tablename__ = "installment_payments"
    __table_args__ = (
        UniqueConstraint("installment_sale_id", "payment_number", name="uq_installment_payment_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    installment_sale_id = Column(Uuid, ForeignKey("installment_sales.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_number = Column(Integer, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)
    notes = Column(Text, nullable=False, default="")
    created_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    sale = relationship("InstallmentSale", back_populates="payments")
