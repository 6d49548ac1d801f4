"""
Member ORM model.

A member is an end customer of a gym. Members exist independently of
user accounts; ``profile_id`` links one to the account it logs in with.
"""

from __future__ import annotations

import enum
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import JSON, Date, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class MemberStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"
    cancelled = "cancelled"


class MembershipStatus(str, enum.Enum):
    active = "active"
    expired = "expired"
    cancelled = "cancelled"
    frozen = "frozen"


class ExperienceLevel(str, enum.Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class Gender(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"
    prefer_not_to_say = "prefer_not_to_say"


class Member(Base, UUIDMixin, TimestampMixin):
    """Gym customer with membership dates and check-in counters."""

    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("org_id", "email", name="uq_members_org_email"),)

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Personal
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[Gender | None] = mapped_column(
        Enum(Gender, name="member_gender", create_type=False), nullable=True
    )
    emergency_contact_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Health / training
    medical_conditions: Mapped[str | None] = mapped_column(Text, nullable=True)
    injuries: Mapped[str | None] = mapped_column(Text, nullable=True)
    fitness_goals: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    experience_level: Mapped[ExperienceLevel] = mapped_column(
        Enum(ExperienceLevel, name="experience_level", create_type=False),
        nullable=False,
        default=ExperienceLevel.beginner,
    )

    # Status
    status: Mapped[MemberStatus] = mapped_column(
        Enum(MemberStatus, name="member_status", create_type=False),
        nullable=False,
        default=MemberStatus.active,
    )

    # Membership
    current_plan_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("membership_plans.id", ondelete="SET NULL"), nullable=True
    )
    membership_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    membership_end_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    membership_status: Mapped[MembershipStatus] = mapped_column(
        Enum(MembershipStatus, name="membership_status", create_type=False),
        nullable=False,
        default=MembershipStatus.active,
    )

    # Access
    access_code: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    check_in_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_check_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Member id={self.id} email={self.email!r} org_id={self.org_id}>"
