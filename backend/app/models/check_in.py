"""
CheckIn ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class CheckInMethod(str, enum.Enum):
    qr = "qr"
    pin = "pin"
    manual = "manual"
    biometric = "biometric"


class CheckIn(Base, UUIDMixin, TimestampMixin):
    """A member's arrival at the gym."""

    __tablename__ = "check_ins"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    checked_in_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    check_in_method: Mapped[CheckInMethod] = mapped_column(
        Enum(CheckInMethod, name="check_in_method", create_type=False),
        nullable=False,
        default=CheckInMethod.manual,
    )
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )
    performed_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
