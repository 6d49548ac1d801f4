"""
Finance ORM models: membership payments, expenses and other income.
"""

from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class PaymentPeriodType(str, enum.Enum):
    monthly = "monthly"
    bimonthly = "bimonthly"
    quarterly = "quarterly"
    semiannual = "semiannual"
    annual = "annual"
    custom = "custom"


class PaymentMethod(str, enum.Enum):
    cash = "cash"
    card = "card"
    transfer = "transfer"
    sinpe = "sinpe"
    other = "other"


class ExpenseCategory(str, enum.Enum):
    rent = "rent"
    utilities = "utilities"
    salaries = "salaries"
    equipment = "equipment"
    maintenance = "maintenance"
    marketing = "marketing"
    supplies = "supplies"
    insurance = "insurance"
    taxes = "taxes"
    other = "other"


class IncomeCategory(str, enum.Enum):
    product_sale = "product_sale"
    service = "service"
    rental = "rental"
    event = "event"
    donation = "donation"
    other = "other"


class MembershipPayment(Base, UUIDMixin, TimestampMixin):
    """A manual payment covering a membership period."""

    __tablename__ = "membership_payments"
    __table_args__ = (
        CheckConstraint("period_months >= 1 AND period_months <= 36", name="period_months_range"),
        CheckConstraint("period_end_date > period_start_date", name="valid_period_dates"),
    )

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("membership_plans.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, name="payment_method", create_type=False),
        nullable=False,
        default=PaymentMethod.cash,
    )
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    period_type: Mapped[PaymentPeriodType] = mapped_column(
        Enum(PaymentPeriodType, name="payment_period_type", create_type=False),
        nullable=False,
        default=PaymentPeriodType.monthly,
    )
    period_months: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    period_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class Expense(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "expenses"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    category: Mapped[ExpenseCategory] = mapped_column(
        Enum(ExpenseCategory, name="expense_category", create_type=False),
        nullable=False,
        default=ExpenseCategory.other,
    )
    expense_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    vendor: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class Income(Base, UUIDMixin, TimestampMixin):
    """Income not tied to a membership (product sales, events...)."""

    __tablename__ = "income"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    category: Mapped[IncomeCategory] = mapped_column(
        Enum(IncomeCategory, name="income_category", create_type=False),
        nullable=False,
        default=IncomeCategory.other,
    )
    income_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
