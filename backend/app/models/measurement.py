"""
MemberMeasurement ORM model.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class MemberMeasurement(Base, UUIDMixin, TimestampMixin):
    """One body-composition and vitals snapshot of a member (metric units)."""

    __tablename__ = "member_measurements"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    measured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    height_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    body_mass_index: Mapped[Decimal | None] = mapped_column(Numeric(4, 1), nullable=True)
    body_fat_percentage: Mapped[Decimal | None] = mapped_column(Numeric(4, 1), nullable=True)
    muscle_mass_kg: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    heart_rate_bpm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_pressure_systolic: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_pressure_diastolic: Mapped[int | None] = mapped_column(Integer, nullable=True)

    waist_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    hip_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    chest_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    arm_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    thigh_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
