"""
Class schedule business logic.

Handles class CRUD and class cancellation. Bookings live in
booking_service. All queries scoped by org_id.
"""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc, local_day_bounds, utcnow
from app.models.gym_class import Booking, BookingStatus, GymClass
from app.models.organization import Organization
from app.schemas.gym_class import (
    ClassCreateRequest,
    ClassesListResponse,
    ClassResponse,
    ClassUpdateRequest,
)

logger = logging.getLogger(__name__)

ACTIVE_BOOKING_STATUSES = (BookingStatus.confirmed, BookingStatus.waitlist)


async def get_class_or_404(
    db: AsyncSession, org_id: UUID, class_id: UUID, for_update: bool = False
) -> GymClass:
    stmt = select(GymClass).where(GymClass.id == class_id, GymClass.org_id == org_id)
    if for_update:
        stmt = stmt.with_for_update()
    gym_class = (await db.execute(stmt)).scalar_one_or_none()
    if gym_class is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "CLASS_NOT_FOUND", "message": "Class not found"},
        )
    return gym_class


class ClassService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # List / get
    # -----------------------------------------------------------------------

    async def list_classes(
        self,
        org: Organization,
        start_date: date | None = None,
        end_date: date | None = None,
        include_cancelled: bool = True,
    ) -> ClassesListResponse:
        """
        Classes starting within ``[start_date, end_date]`` (gym-local days),
        ordered by start time. Without a range, upcoming classes are listed.
        """
        stmt = select(GymClass).where(GymClass.org_id == org.id)
        if start_date is not None:
            stmt = stmt.where(GymClass.start_time >= local_day_bounds(start_date, org.timezone)[0])
        if end_date is not None:
            stmt = stmt.where(GymClass.start_time < local_day_bounds(end_date, org.timezone)[1])
        if start_date is None and end_date is None:
            stmt = stmt.where(GymClass.start_time >= utcnow())
        if not include_cancelled:
            stmt = stmt.where(GymClass.is_cancelled.is_(False))

        result = await self.db.execute(stmt.order_by(GymClass.start_time))
        classes = [ClassResponse.model_validate(c) for c in result.scalars().all()]
        return ClassesListResponse(classes=classes, total=len(classes))

    async def get_class(self, org_id: UUID, class_id: UUID) -> GymClass:
        return await get_class_or_404(self.db, org_id, class_id)

    # -----------------------------------------------------------------------
    # Create / update / delete
    # -----------------------------------------------------------------------

    async def create_class(self, org_id: UUID, data: ClassCreateRequest) -> ClassResponse:
        values = data.model_dump()
        values["start_time"] = as_utc(data.start_time)
        values["end_time"] = as_utc(data.end_time)
        gym_class = GymClass(org_id=org_id, current_bookings=0, is_cancelled=False, **values)
        self.db.add(gym_class)
        await self.db.flush()
        return ClassResponse.model_validate(gym_class)

    async def update_class(
        self, org_id: UUID, class_id: UUID, data: ClassUpdateRequest
    ) -> ClassResponse:
        gym_class = await get_class_or_404(self.db, org_id, class_id)
        changes = data.model_dump(exclude_unset=True)

        for field in ("start_time", "end_time"):
            if changes.get(field) is not None:
                changes[field] = as_utc(changes[field])

        start = changes.get("start_time") or as_utc(gym_class.start_time)
        end = changes.get("end_time") or as_utc(gym_class.end_time)
        if end <= start:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "INVALID_TIME_RANGE", "message": "end_time must be after start_time"},
            )

        nullable = ("description", "class_type", "instructor_id", "instructor_name", "location")
        for field, value in changes.items():
            if value is None and field not in nullable:
                continue
            setattr(gym_class, field, value)

        await self.db.flush()
        await self.db.refresh(gym_class)
        return ClassResponse.model_validate(gym_class)

    async def delete_class(self, org_id: UUID, class_id: UUID) -> None:
        gym_class = await get_class_or_404(self.db, org_id, class_id)
        await self.db.delete(gym_class)
        await self.db.flush()

    async def cancel_class(
        self, org_id: UUID, class_id: UUID, reason: str | None = None
    ) -> ClassResponse:
        """
        Cancel a class and every active booking on it.

        Cancelling twice is rejected with CLASS_CANCELLED.
        """
        gym_class = await get_class_or_404(self.db, org_id, class_id, for_update=True)
        if gym_class.is_cancelled:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "CLASS_CANCELLED", "message": "Class is already cancelled"},
            )

        now = utcnow()
        result = await self.db.execute(
            select(Booking).where(
                Booking.class_id == gym_class.id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
        )
        bookings = result.scalars().all()
        for booking in bookings:
            booking.status = BookingStatus.cancelled
            booking.waitlist_position = None
            booking.cancelled_at = now

        gym_class.is_cancelled = True
        gym_class.cancellation_reason = reason
        gym_class.current_bookings = 0

        await self.db.flush()
        await self.db.refresh(gym_class)
        logger.info("Class %s cancelled, %d bookings cancelled", gym_class.id, len(bookings))
        return ClassResponse.model_validate(gym_class)
