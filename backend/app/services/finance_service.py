"""
Finance business logic.

Membership payments extend a member's membership; expenses and other
income are plain ledgers; the summary aggregates a date range.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import add_months, local_day_bounds, today_in
from app.models.finance import Expense, Income, MembershipPayment
from app.models.member import Member, MembershipStatus
from app.models.organization import Organization
from app.models.plan import MembershipPlan
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


def resolve_period(
    current_end: date | None,
    months: int,
    today: date,
    start_date: date | None = None,
) -> tuple[date, date, bool]:
    """
    Compute the period a payment covers.

    Returns (start, end, is_extension). Without an explicit start the
    period continues from a membership that has not lapsed yet, otherwise
    it starts today.
    """
    if start_date is not None:
        start, extension = start_date, False
    elif current_end is not None and current_end >= today:
        start, extension = current_end, True
    else:
        start, extension = today, False
    return start, add_months(start, months), extension


class FinanceService:
    """Handles payments, expenses, income and summaries."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Membership payments
    # -----------------------------------------------------------------------

    async def record_membership_payment(
        self, org: Organization, data: MembershipPaymentCreateRequest, actor: User
    ) -> MembershipPaymentResponse:
        """
        Record a payment and extend the member's membership.

        The member ends up with status active, the new end date and, when
        given, the paid plan.
        """
        member = (
            await self.db.execute(
                select(Member).where(Member.id == data.member_id, Member.org_id == org.id)
            )
        ).scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )

        if data.plan_id is not None:
            plan = (
                await self.db.execute(
                    select(MembershipPlan).where(
                        MembershipPlan.id == data.plan_id, MembershipPlan.org_id == org.id
                    )
                )
            ).scalar_one_or_none()
            if plan is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail={"code": "PLAN_NOT_FOUND", "message": "Plan not found"},
                )

        months = data.resolved_months()
        start, end, extension = resolve_period(
            member.membership_end_date, months, today_in(org.timezone), data.start_date
        )

        payment = MembershipPayment(
            org_id=org.id,
            member_id=member.id,
            plan_id=data.plan_id,
            amount=data.amount,
            currency=data.currency.upper(),
            payment_method=data.payment_method,
            reference_number=data.reference_number,
            period_type=data.period_type,
            period_months=months,
            period_start_date=start,
            period_end_date=end,
            notes=data.notes,
            created_by=actor.id,
        )
        self.db.add(payment)

        if not extension or member.membership_start_date is None:
            member.membership_start_date = start
        member.membership_end_date = end
        member.membership_status = MembershipStatus.active
        if data.plan_id is not None:
            member.current_plan_id = data.plan_id

        await self.db.flush()
        return MembershipPaymentResponse.model_validate(payment)

    async def list_membership_payments(
        self,
        org: Organization,
        member_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> MembershipPaymentsListResponse:
        stmt = select(MembershipPayment).where(MembershipPayment.org_id == org.id)
        if member_id is not None:
            stmt = stmt.where(MembershipPayment.member_id == member_id)
        stmt = self._date_filter(stmt, MembershipPayment.created_at, org, start_date, end_date)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        result = await self.db.execute(
            stmt.order_by(MembershipPayment.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        payments = [MembershipPaymentResponse.model_validate(p) for p in result.scalars().all()]
        return MembershipPaymentsListResponse(payments=payments, total=total, page=page, per_page=per_page)

    # -----------------------------------------------------------------------
    # Expenses
    # -----------------------------------------------------------------------

    async def list_expenses(
        self,
        org: Organization,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> ExpensesListResponse:
        stmt = select(Expense).where(Expense.org_id == org.id)
        if category:
            stmt = stmt.where(Expense.category == category)
        stmt = self._date_filter(stmt, Expense.expense_date, org, start_date, end_date)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        result = await self.db.execute(
            stmt.order_by(Expense.expense_date.desc()).offset((page - 1) * per_page).limit(per_page)
        )
        expenses = [ExpenseResponse.model_validate(e) for e in result.scalars().all()]
        return ExpensesListResponse(expenses=expenses, total=total, page=page, per_page=per_page)

    async def create_expense(
        self, org_id: UUID, data: ExpenseCreateRequest, actor: User
    ) -> ExpenseResponse:
        values = data.model_dump()
        values["currency"] = values["currency"].upper()
        expense = Expense(org_id=org_id, created_by=actor.id, **values)
        self.db.add(expense)
        await self.db.flush()
        return ExpenseResponse.model_validate(expense)

    async def update_expense(
        self, org_id: UUID, expense_id: UUID, data: ExpenseUpdateRequest
    ) -> ExpenseResponse:
        expense = await self._get_owned(Expense, org_id, expense_id, "EXPENSE_NOT_FOUND", "Expense")
        self._apply(expense, data.model_dump(exclude_unset=True), nullable=("vendor", "notes"))
        await self.db.flush()
        await self.db.refresh(expense)
        return ExpenseResponse.model_validate(expense)

    async def delete_expense(self, org_id: UUID, expense_id: UUID) -> None:
        expense = await self._get_owned(Expense, org_id, expense_id, "EXPENSE_NOT_FOUND", "Expense")
        await self.db.delete(expense)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Income
    # -----------------------------------------------------------------------

    async def list_income(
        self,
        org: Organization,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> IncomeListResponse:
        stmt = select(Income).where(Income.org_id == org.id)
        if category:
            stmt = stmt.where(Income.category == category)
        stmt = self._date_filter(stmt, Income.income_date, org, start_date, end_date)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        result = await self.db.execute(
            stmt.order_by(Income.income_date.desc()).offset((page - 1) * per_page).limit(per_page)
        )
        income = [IncomeResponse.model_validate(i) for i in result.scalars().all()]
        return IncomeListResponse(income=income, total=total, page=page, per_page=per_page)

    async def create_income(
        self, org_id: UUID, data: IncomeCreateRequest, actor: User
    ) -> IncomeResponse:
        values = data.model_dump()
        values["currency"] = values["currency"].upper()
        income = Income(org_id=org_id, created_by=actor.id, **values)
        self.db.add(income)
        await self.db.flush()
        return IncomeResponse.model_validate(income)

    async def update_income(
        self, org_id: UUID, income_id: UUID, data: IncomeUpdateRequest
    ) -> IncomeResponse:
        income = await self._get_owned(Income, org_id, income_id, "INCOME_NOT_FOUND", "Income")
        self._apply(income, data.model_dump(exclude_unset=True), nullable=("notes",))
        await self.db.flush()
        await self.db.refresh(income)
        return IncomeResponse.model_validate(income)

    async def delete_income(self, org_id: UUID, income_id: UUID) -> None:
        income = await self._get_owned(Income, org_id, income_id, "INCOME_NOT_FOUND", "Income")
        await self.db.delete(income)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Summary
    # -----------------------------------------------------------------------

    async def summary(
        self, org: Organization, start_date: date | None = None, end_date: date | None = None
    ) -> FinanceSummaryResponse:
        """
        Totals for ``[start_date, end_date]`` in gym-local days.

        Defaults to the current month up to today.
        """
        today = today_in(org.timezone)
        end_date = end_date or today
        start_date = start_date or end_date.replace(day=1)

        membership_total = await self._sum(
            MembershipPayment.amount, MembershipPayment.org_id, MembershipPayment.created_at,
            org, start_date, end_date,
        )
        other_income_total = await self._sum(
            Income.amount, Income.org_id, Income.income_date, org, start_date, end_date
        )

        stmt = select(Expense.category, func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.org_id == org.id
        )
        stmt = self._date_filter(stmt, Expense.expense_date, org, start_date, end_date)
        rows = (await self.db.execute(stmt.group_by(Expense.category))).all()
        by_category = {cat.value: float(amount) for cat, amount in rows}
        expenses_total = sum(by_category.values())

        total_income = float(membership_total) + float(other_income_total)
        return FinanceSummaryResponse(
            start_date=start_date,
            end_date=end_date,
            total_membership_income=float(membership_total),
            total_other_income=float(other_income_total),
            total_income=total_income,
            total_expenses=expenses_total,
            net=round(total_income - expenses_total, 2),
            expenses_by_category=by_category,
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _date_filter(stmt: Any, column: Any, org: Organization, start: date | None, end: date | None) -> Any:
        if start is not None:
            stmt = stmt.where(column >= local_day_bounds(start, org.timezone)[0])
        if end is not None:
            stmt = stmt.where(column < local_day_bounds(end, org.timezone)[1])
        return stmt

    async def _sum(
        self, amount: Any, org_column: Any, date_column: Any,
        org: Organization, start: date, end: date,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(amount), 0)).where(org_column == org.id)
        stmt = self._date_filter(stmt, date_column, org, start, end)
        return Decimal(str((await self.db.execute(stmt)).scalar_one()))

    async def _get_owned(self, model: Any, org_id: UUID, row_id: UUID, code: str, label: str) -> Any:
        result = await self.db.execute(select(model).where(model.id == row_id, model.org_id == org_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": code, "message": f"{label} not found"},
            )
        return row

    @staticmethod
    def _apply(row: Any, changes: dict[str, Any], nullable: tuple[str, ...]) -> None:
        for field, value in changes.items():
            if value is None and field not in nullable:
                continue
            if field == "currency":
                value = value.upper()
            setattr(row, field, value)
