"""
Member (gym customer) business logic.

CRUD, access codes and derived membership status. All queries scoped
by org_id.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import today_in
from app.core.security import generate_access_code
from app.models.finance import MembershipPayment
from app.models.member import Member, MemberStatus
from app.models.organization import Organization
from app.models.plan import MembershipPlan
from app.models.user import User
from app.schemas.member import (
    AccessCodeResponse,
    MemberCreateRequest,
    MemberResponse,
    MembersListResponse,
    MembershipStatusResponse,
    MemberUpdateRequest,
)

EXPIRING_SOON_DAYS = 7
_ACCESS_CODE_ATTEMPTS = 10


async def find_member_for_user(db: AsyncSession, org_id: UUID, user: User) -> Member | None:
    """
    The member row that represents ``user`` inside an organization.

    Matches the profile link first, then the email (case-insensitive).
    """
    result = await db.execute(
        select(Member)
        .where(
            Member.org_id == org_id,
            or_(Member.profile_id == user.id, func.lower(Member.email) == user.email.lower()),
        )
        .order_by((Member.profile_id == user.id).desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


class MemberService:
    """Handles member records for one request."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # List / get
    # -----------------------------------------------------------------------

    async def list_members(
        self,
        org_id: UUID,
        search: str | None = None,
        status_filter: MemberStatus | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> MembersListResponse:
        """Paginated list, newest first. ``search`` matches name or email."""
        stmt = select(Member).where(Member.org_id == org_id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(func.lower(Member.full_name).like(pattern), func.lower(Member.email).like(pattern))
            )
        if status_filter is not None:
            stmt = stmt.where(Member.status == status_filter)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

        result = await self.db.execute(
            stmt.order_by(Member.created_at.desc(), Member.full_name)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        members = [MemberResponse.model_validate(m) for m in result.scalars().all()]
        return MembersListResponse(members=members, total=total, page=page, per_page=per_page)

    async def get_member(self, org_id: UUID, member_id: UUID) -> Member:
        result = await self.db.execute(
            select(Member).where(Member.id == member_id, Member.org_id == org_id)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )
        return member

    # -----------------------------------------------------------------------
    # Create / update / delete
    # -----------------------------------------------------------------------

    async def create_member(self, org: Organization, data: MemberCreateRequest) -> MemberResponse:
        """
        Create a member.

        - Enforces the organization's member limit
        - Email must be unique inside the organization
        """
        if org.max_members is not None:
            count = (
                await self.db.execute(
                    select(func.count()).select_from(Member).where(Member.org_id == org.id)
                )
            ).scalar_one()
            if count >= org.max_members:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail={
                        "code": "PLAN_LIMIT_EXCEEDED",
                        "message": f"Member limit reached ({org.max_members})",
                        "limit": org.max_members,
                        "current": count,
                    },
                )

        await self._ensure_email_free(org.id, data.email)
        if data.current_plan_id is not None:
            await self._ensure_plan(org.id, data.current_plan_id)

        member = Member(org_id=org.id, **data.model_dump())
        member.email = data.email.lower()
        self.db.add(member)
        await self.db.flush()
        return MemberResponse.model_validate(member)

    async def update_member(
        self, org_id: UUID, member_id: UUID, data: MemberUpdateRequest
    ) -> MemberResponse:
        member = await self.get_member(org_id, member_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email") and changes["email"].lower() != member.email.lower():
            await self._ensure_email_free(org_id, changes["email"])
            changes["email"] = changes["email"].lower()
        if changes.get("current_plan_id") is not None:
            await self._ensure_plan(org_id, changes["current_plan_id"])

        for field, value in changes.items():
            if value is None and field in ("email", "full_name", "experience_level", "status", "membership_status"):
                continue
            setattr(member, field, value)

        await self.db.flush()
        await self.db.refresh(member)
        return MemberResponse.model_validate(member)

    async def delete_member(self, org_id: UUID, member_id: UUID) -> None:
        member = await self.get_member(org_id, member_id)
        await self.db.delete(member)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Access code
    # -----------------------------------------------------------------------

    async def generate_access_code(self, org_id: UUID, member_id: UUID) -> AccessCodeResponse:
        """Assign a fresh 6-digit code, unique within the organization."""
        member = await self.get_member(org_id, member_id)

        for _ in range(_ACCESS_CODE_ATTEMPTS):
            code = generate_access_code()
            clash = await self.db.execute(
                select(Member.id).where(Member.org_id == org_id, Member.access_code == code)
            )
            if clash.scalar_one_or_none() is None:
                break
        else:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"code": "ACCESS_CODE_UNAVAILABLE", "message": "Could not allocate an access code"},
            )

        member.access_code = code
        await self.db.flush()
        return AccessCodeResponse(member_id=member.id, access_code=code)

    # -----------------------------------------------------------------------
    # Membership status
    # -----------------------------------------------------------------------

    async def membership_status(self, org: Organization, member_id: UUID) -> MembershipStatusResponse:
        member = await self.get_member(org.id, member_id)

        plan_name: str | None = None
        if member.current_plan_id is not None:
            plan = await self.db.get(MembershipPlan, member.current_plan_id)
            plan_name = plan.name if plan else None

        last_payment = (
            await self.db.execute(
                select(MembershipPayment)
                .where(MembershipPayment.org_id == org.id, MembershipPayment.member_id == member.id)
                .order_by(MembershipPayment.created_at.desc())
                .limit(1)
            )
        ).scalar_one_or_none()

        end_date = member.membership_end_date
        if end_date is None:
            state, days_remaining = "no_membership", None
        else:
            days_remaining = (end_date - today_in(org.timezone)).days
            if days_remaining < 0:
                state = "expired"
            elif days_remaining <= EXPIRING_SOON_DAYS:
                state = "expiring_soon"
            else:
                state = "active"

        return MembershipStatusResponse(
            status=state,
            days_remaining=days_remaining,
            end_date=end_date,
            plan_name=plan_name,
            is_expiring_soon=state == "expiring_soon",
            last_payment_date=last_payment.created_at if last_payment else None,
            last_payment_amount=float(last_payment.amount) if last_payment else None,
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _ensure_email_free(self, org_id: UUID, email: str) -> None:
        existing = await self.db.execute(
            select(Member.id).where(Member.org_id == org_id, func.lower(Member.email) == email.lower())
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "MEMBER_EMAIL_TAKEN", "message": "A member with this email already exists"},
            )

    async def _ensure_plan(self, org_id: UUID, plan_id: UUID) -> None:
        result = await self.db.execute(
            select(MembershipPlan.id).where(MembershipPlan.id == plan_id, MembershipPlan.org_id == org_id)
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PLAN_NOT_FOUND", "message": "Plan not found"},
            )
