"""
Member measurement business logic.

Body mass index is derived from height and weight whenever both are known.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.models.measurement import MemberMeasurement
from app.models.member import Member
from app.models.organization import Organization
from app.models.user import User
from app.schemas.measurement import (
    MeasurementCreateRequest,
    MeasurementResponse,
    MeasurementsListResponse,
    MeasurementUpdateRequest,
)
from app.services.member_service import find_member_for_user

logger = logging.getLogger(__name__)


def body_mass_index(height_cm: Decimal | None, weight_kg: Decimal | None) -> Decimal | None:
    """kg / m^2 rounded to one decimal, or None when either input is missing."""
    if not height_cm or not weight_kg:
        return None
    meters = Decimal(height_cm) / 100
    return (Decimal(weight_kg) / (meters * meters)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class MeasurementService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def list_measurements(self, org_id: UUID, member_id: UUID) -> MeasurementsListResponse:
        """A member's measurements, most recent first."""
        await self._get_member(org_id, member_id)
        return await self._list(org_id, member_id)

    async def latest_measurement(self, org_id: UUID, member_id: UUID) -> MeasurementResponse | None:
        await self._get_member(org_id, member_id)
        result = await self.db.execute(
            select(MemberMeasurement)
            .where(MemberMeasurement.org_id == org_id, MemberMeasurement.member_id == member_id)
            .order_by(MemberMeasurement.measured_at.desc())
            .limit(1)
        )
        measurement = result.scalar_one_or_none()
        return MeasurementResponse.model_validate(measurement) if measurement else None

    async def my_measurements(self, org: Organization, user: User) -> MeasurementsListResponse:
        member = await find_member_for_user(self.db, org.id, user)
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "code": "MEMBER_PROFILE_NOT_FOUND",
                    "message": "You do not have a member profile in this organization",
                },
            )
        return await self._list(org.id, member.id)

    async def create_measurement(
        self, org_id: UUID, member_id: UUID, data: MeasurementCreateRequest, actor: User
    ) -> MeasurementResponse:
        await self._get_member(org_id, member_id)
        values = data.model_dump(exclude={"measured_at"})
        measurement = MemberMeasurement(
            org_id=org_id,
            member_id=member_id,
            measured_at=data.measured_at or utcnow(),
            body_mass_index=body_mass_index(data.height_cm, data.weight_kg),
            recorded_by_id=actor.id,
            **values,
        )
        self.db.add(measurement)
        await self.db.flush()

        logger.info("Measurement recorded for member %s", member_id)
        return MeasurementResponse.model_validate(measurement)

    async def update_measurement(
        self, org_id: UUID, measurement_id: UUID, data: MeasurementUpdateRequest
    ) -> MeasurementResponse:
        measurement = await self._get_measurement(org_id, measurement_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("measured_at") is None:
            changes.pop("measured_at", None)

        for field, value in changes.items():
            setattr(measurement, field, value)
        measurement.body_mass_index = body_mass_index(measurement.height_cm, measurement.weight_kg)

        await self.db.flush()
        await self.db.refresh(measurement)
        return MeasurementResponse.model_validate(measurement)

    async def delete_measurement(self, org_id: UUID, measurement_id: UUID) -> None:
        measurement = await self._get_measurement(org_id, measurement_id)
        await self.db.delete(measurement)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _list(self, org_id: UUID, member_id: UUID) -> MeasurementsListResponse:
        result = await self.db.execute(
            select(MemberMeasurement)
            .where(MemberMeasurement.org_id == org_id, MemberMeasurement.member_id == member_id)
            .order_by(MemberMeasurement.measured_at.desc())
        )
        measurements = [MeasurementResponse.model_validate(m) for m in result.scalars().all()]
        return MeasurementsListResponse(measurements=measurements, total=len(measurements))

    async def _get_member(self, org_id: UUID, member_id: UUID) -> Member:
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
        return member

    async def _get_measurement(self, org_id: UUID, measurement_id: UUID) -> MemberMeasurement:
        result = await self.db.execute(
            select(MemberMeasurement).where(
                MemberMeasurement.id == measurement_id, MemberMeasurement.org_id == org_id
            )
        )
        measurement = result.scalar_one_or_none()
        if measurement is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEASUREMENT_NOT_FOUND", "message": "Measurement not found"},
            )
        return measurement
