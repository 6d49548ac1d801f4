"""
ClassTemplate and ClassGenerationLog ORM models.

Templates describe a weekly recurring class; the generation log records
which (template, date) pairs already produced a class.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class ClassTemplate(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "class_templates"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="day_of_week_range"),
    )

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    class_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    instructor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    instructor_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # 0 = Sunday ... 6 = Saturday
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    # Local wall-clock time, HH:MM
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    waitlist_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_waitlist: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    booking_opens_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=168)
    booking_closes_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    cancellation_deadline_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<ClassTemplate id={self.id} name={self.name!r} day={self.day_of_week}>"


class ClassGenerationLog(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "class_generation_log"
    __table_args__ = (
        UniqueConstraint("template_id", "generated_date", name="uq_generation_template_date"),
    )

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_id: Mapped[UUID] = mapped_column(
        ForeignKey("class_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    generated_class_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("classes.id", ondelete="SET NULL"), nullable=True
    )
    generated_date: Mapped[date] = mapped_column(Date, nullable=False)
