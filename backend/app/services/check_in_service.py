"""
Check-in business logic.

A member checks in at most once per gym-local day. Every check-in bumps
the member's check_in_count and last_check_in.
"""

from __future__ import annotations

import logging
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_day_bounds, today_in, utcnow
from app.models.check_in import CheckIn, CheckInMethod
from app.models.member import Member, MemberStatus
from app.models.organization import Organization
from app.models.user import User
from app.schemas.check_in import (
    AccessCodeCheckInRequest,
    CheckInResponse,
    CheckInsListResponse,
    CheckInWithMemberResponse,
    ManualCheckInRequest,
)

logger = logging.getLogger(__name__)


class CheckInService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def check_in_by_code(
        self, org: Organization, data: AccessCodeCheckInRequest, actor: User
    ) -> CheckInWithMemberResponse:
        result = await self.db.execute(
            select(Member).where(Member.org_id == org.id, Member.access_code == data.access_code)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVALID_ACCESS_CODE", "message": "Access code not recognised"},
            )
        return await self._check_in(
            org, member, CheckInMethod(data.method), actor, location=data.location
        )

    async def manual_check_in(
        self, org: Organization, data: ManualCheckInRequest, actor: User
    ) -> CheckInWithMemberResponse:
        result = await self.db.execute(
            select(Member).where(Member.org_id == org.id, Member.id == data.member_id)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )
        return await self._check_in(
            org, member, CheckInMethod.manual, actor, location=data.location, notes=data.notes
        )

    async def todays_check_ins(self, org: Organization) -> CheckInsListResponse:
        """Check-ins of the current gym-local day, newest first."""
        start, end = local_day_bounds(today_in(org.timezone), org.timezone)
        result = await self.db.execute(
            select(CheckIn, Member)
            .join(Member, Member.id == CheckIn.member_id)
            .where(
                CheckIn.org_id == org.id,
                CheckIn.checked_in_at >= start,
                CheckIn.checked_in_at < end,
            )
            .order_by(CheckIn.checked_in_at.desc())
        )
        check_ins = [self._with_member(c, m) for c, m in result.all()]
        return CheckInsListResponse(check_ins=check_ins, total=len(check_ins))

    async def member_history(
        self, org_id: UUID, member_id: UUID, limit: int = 50
    ) -> CheckInsListResponse:
        member = (
            await self.db.execute(
                select(Member).where(Member.org_id == org_id, Member.id == member_id)
            )
        ).scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )

        result = await self.db.execute(
            select(CheckIn)
            .where(CheckIn.org_id == org_id, CheckIn.member_id == member_id)
            .order_by(CheckIn.checked_in_at.desc())
            .limit(limit)
        )
        check_ins = [self._with_member(c, member) for c in result.scalars().all()]
        return CheckInsListResponse(check_ins=check_ins, total=len(check_ins))

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _check_in(
        self,
        org: Organization,
        member: Member,
        method: CheckInMethod,
        actor: User,
        location: str | None = None,
        notes: str | None = None,
    ) -> CheckInWithMemberResponse:
        if member.status != MemberStatus.active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "MEMBER_INACTIVE", "message": "Member is not active"},
            )

        start, end = local_day_bounds(today_in(org.timezone), org.timezone)
        already = await self.db.execute(
            select(CheckIn.id)
            .where(
                CheckIn.org_id == org.id,
                CheckIn.member_id == member.id,
                CheckIn.checked_in_at >= start,
                CheckIn.checked_in_at < end,
            )
            .limit(1)
        )
        if already.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_CHECKED_IN", "message": "Member already checked in today"},
            )

        now = utcnow()
        check_in = CheckIn(
            org_id=org.id,
            member_id=member.id,
            checked_in_at=now,
            check_in_method=method,
            location=location,
            notes=notes,
            performed_by=actor.id,
        )
        self.db.add(check_in)
        member.check_in_count = (member.check_in_count or 0) + 1
        member.last_check_in = now
        await self.db.flush()

        logger.info("Member %s checked in (%s)", member.id, method.value)
        return self._with_member(check_in, member)

    @staticmethod
    def _with_member(check_in: CheckIn, member: Member) -> CheckInWithMemberResponse:
        return CheckInWithMemberResponse(
            **CheckInResponse.model_validate(check_in).model_dump(),
            member_name=member.full_name,
            member_email=member.email,
            member_access_code=member.access_code,
        )
