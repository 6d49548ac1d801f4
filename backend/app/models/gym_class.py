"""
GymClass and Booking ORM models.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class BookingStatus(str, enum.Enum):
    confirmed = "confirmed"
    cancelled = "cancelled"
    attended = "attended"
    no_show = "no_show"
    waitlist = "waitlist"


# Statuses that count against a member's daily class limit
DAILY_LIMIT_STATUSES: tuple[BookingStatus, ...] = (
    BookingStatus.confirmed,
    BookingStatus.waitlist,
    BookingStatus.attended,
    BookingStatus.no_show,
)


class GymClass(Base, UUIDMixin, TimestampMixin):
    """A scheduled class session."""

    __tablename__ = "classes"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    class_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Capacity
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    current_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    waitlist_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_waitlist: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    # Instructor / place
    instructor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    instructor_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Booking rules
    booking_opens_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=168)
    booking_closes_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    cancellation_deadline_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    template_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("class_templates.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<GymClass id={self.id} name={self.name!r} start={self.start_time}>"


class Booking(Base, UUIDMixin, TimestampMixin):
    """A member's reservation for a class."""

    __tablename__ = "bookings"
    __table_args__ = (UniqueConstraint("class_id", "member_id", name="uq_bookings_class_member"),)

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id: Mapped[UUID] = mapped_column(
        ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", create_type=False),
        nullable=False,
        default=BookingStatus.confirmed,
    )
    waitlist_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Booking id={self.id} class_id={self.class_id} status={self.status}>"
