"""
Finance endpoints: membership payments, expenses, other income, summary.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_redis, require_any_permission, require_permission
from app.core.rbac import Permission
from app.models.finance import ExpenseCategory, IncomeCategory
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.finance import (
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpensesListResponse,
    ExpenseUpdateRequest,
    FinanceSummaryResponse,
    IncomeCreateRequest,
    IncomeListResponse,
    IncomeResponse,
    IncomeUpdateRequest,
    MembershipPaymentCreateRequest,
    MembershipPaymentResponse,
    MembershipPaymentsListResponse,
)
from app.services.finance_service import FinanceService

router = APIRouter()

_VIEW_FINANCES = require_any_permission(Permission.view_gym_finances, Permission.manage_gym_finances)
_MANAGE_FINANCES = require_permission(Permission.manage_gym_finances)


def get_finance_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> FinanceService:
    return FinanceService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Membership payments
# ---------------------------------------------------------------------------

@router.post(
    "/{slug}/finances/membership-payments",
    response_model=MembershipPaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a membership payment",
)
async def record_membership_payment(
    data: MembershipPaymentCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    current_user: User = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
) -> MembershipPaymentResponse:
    """
    Record a payment and extend the member's membership.

    - Continues from the current end date when it has not lapsed
    - Otherwise starts today (or at ``start_date`` when given)
    """
    org, _ = org_and_member
    return await service.record_membership_payment(org, data, current_user)


@router.get(
    "/{slug}/finances/membership-payments",
    response_model=MembershipPaymentsListResponse,
    summary="List membership payments",
)
async def list_membership_payments(
    member_id: UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(_VIEW_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> MembershipPaymentsListResponse:
    org, _ = org_and_member
    return await service.list_membership_payments(org, member_id, start_date, end_date, page, per_page)


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

@router.get("/{slug}/finances/expenses", response_model=ExpensesListResponse, summary="List expenses")
async def list_expenses(
    category: ExpenseCategory | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(_VIEW_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> ExpensesListResponse:
    org, _ = org_and_member
    return await service.list_expenses(org, category, start_date, end_date, page, per_page)


@router.post(
    "/{slug}/finances/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
)
async def create_expense(
    data: ExpenseCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    current_user: User = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
) -> ExpenseResponse:
    org, _ = org_and_member
    return await service.create_expense(org.id, data, current_user)


@router.patch(
    "/{slug}/finances/expenses/{expense_id}",
    response_model=ExpenseResponse,
    summary="Update an expense",
)
async def update_expense(
    expense_id: UUID,
    data: ExpenseUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> ExpenseResponse:
    org, _ = org_and_member
    return await service.update_expense(org.id, expense_id, data)


@router.delete(
    "/{slug}/finances/expenses/{expense_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete an expense",
)
async def delete_expense(
    expense_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_expense(org.id, expense_id)
    return {}


# ---------------------------------------------------------------------------
# Other income
# ---------------------------------------------------------------------------

@router.get("/{slug}/finances/income", response_model=IncomeListResponse, summary="List other income")
async def list_income(
    category: IncomeCategory | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(_VIEW_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> IncomeListResponse:
    org, _ = org_and_member
    return await service.list_income(org, category, start_date, end_date, page, per_page)


@router.post(
    "/{slug}/finances/income",
    response_model=IncomeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record other income",
)
async def create_income(
    data: IncomeCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    current_user: User = Depends(get_current_user),
    service: FinanceService = Depends(get_finance_service),
) -> IncomeResponse:
    org, _ = org_and_member
    return await service.create_income(org.id, data, current_user)


@router.patch(
    "/{slug}/finances/income/{income_id}",
    response_model=IncomeResponse,
    summary="Update an income entry",
)
async def update_income(
    income_id: UUID,
    data: IncomeUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> IncomeResponse:
    org, _ = org_and_member
    return await service.update_income(org.id, income_id, data)


@router.delete(
    "/{slug}/finances/income/{income_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete an income entry",
)
async def delete_income(
    income_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_FINANCES),
    service: FinanceService = Depends(get_finance_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_income(org.id, income_id)
    return {}


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/finances/summary",
    response_model=FinanceSummaryResponse,
    summary="Income, expenses and net for a date range",
)
async def finance_summary(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_gym_finances)
    ),
    service: FinanceService = Depends(get_finance_service),
) -> FinanceSummaryResponse:
    """Defaults to the current month up to today, in the gym's timezone."""
    org, _ = org_and_member
    return await service.summary(org, start_date, end_date)
