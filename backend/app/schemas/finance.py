"""
Finance schemas.

Membership payments, expenses, other income and the period summary.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.finance import ExpenseCategory, IncomeCategory, PaymentMethod, PaymentPeriodType

# Months covered by each fixed period type
PERIOD_MONTHS: dict[PaymentPeriodType, int] = {
    PaymentPeriodType.monthly: 1,
    PaymentPeriodType.bimonthly: 2,
    PaymentPeriodType.quarterly: 3,
    PaymentPeriodType.semiannual: 6,
    PaymentPeriodType.annual: 12,
}


# ---------------------------------------------------------------------------
# Membership payments
# ---------------------------------------------------------------------------

class MembershipPaymentCreateRequest(BaseModel):
    """Request body for POST /organizations/{slug}/finances/membership-payments."""

    member_id: UUID
    plan_id: UUID | None = None
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="MXN", min_length=3, max_length=3)
    payment_method: PaymentMethod = PaymentMethod.cash
    reference_number: str | None = Field(default=None, max_length=100)
    period_type: PaymentPeriodType = PaymentPeriodType.monthly
    period_months: int | None = Field(default=None, ge=1, le=36)
    start_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def custom_period_needs_months(self) -> MembershipPaymentCreateRequest:
        if self.period_type == PaymentPeriodType.custom and self.period_months is None:
            raise ValueError("period_months is required for a custom period")
        return self

    def resolved_months(self) -> int:
        if self.period_type == PaymentPeriodType.custom:
            return self.period_months or 1
        return PERIOD_MONTHS[self.period_type]


class MembershipPaymentResponse(BaseModel):
    id: UUID
    org_id: UUID
    member_id: UUID
    plan_id: UUID | None
    amount: float
    currency: str
    payment_method: PaymentMethod
    reference_number: str | None
    period_type: PaymentPeriodType
    period_months: int
    period_start_date: date
    period_end_date: date
    notes: str | None
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MembershipPaymentsListResponse(BaseModel):
    payments: list[MembershipPaymentResponse]
    total: int
    page: int
    per_page: int


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

class ExpenseCreateRequest(BaseModel):
    description: str = Field(min_length=3, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="MXN", min_length=3, max_length=3)
    category: ExpenseCategory = ExpenseCategory.other
    expense_date: datetime
    vendor: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)
    is_recurring: bool = False


class ExpenseUpdateRequest(BaseModel):
    description: str | None = Field(default=None, min_length=3, max_length=255)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category: ExpenseCategory | None = None
    expense_date: datetime | None = None
    vendor: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)
    is_recurring: bool | None = None


class ExpenseResponse(BaseModel):
    id: UUID
    org_id: UUID
    description: str
    amount: float
    currency: str
    category: ExpenseCategory
    expense_date: datetime
    vendor: str | None
    notes: str | None
    is_recurring: bool
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExpensesListResponse(BaseModel):
    expenses: list[ExpenseResponse]
    total: int
    page: int
    per_page: int


# ---------------------------------------------------------------------------
# Income
# ---------------------------------------------------------------------------

class IncomeCreateRequest(BaseModel):
    description: str = Field(min_length=3, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="MXN", min_length=3, max_length=3)
    category: IncomeCategory = IncomeCategory.other
    income_date: datetime
    notes: str | None = Field(default=None, max_length=500)


class IncomeUpdateRequest(BaseModel):
    description: str | None = Field(default=None, min_length=3, max_length=255)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category: IncomeCategory | None = None
    income_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=500)


class IncomeResponse(BaseModel):
    id: UUID
    org_id: UUID
    description: str
    amount: float
    currency: str
    category: IncomeCategory
    income_date: datetime
    notes: str | None
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class IncomeListResponse(BaseModel):
    income: list[IncomeResponse]
    total: int
    page: int
    per_page: int


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

class FinanceSummaryResponse(BaseModel):
    """Totals for a date range. ``net`` = membership + other income - expenses."""

    start_date: date
    end_date: date
    total_membership_income: float
    total_other_income: float
    total_income: float
    total_expenses: float
    net: float
    expenses_by_category: dict[str, float]
