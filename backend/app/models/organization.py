"""
Organization ORM model.

An organization is one gym or studio (the tenant). Every other row is
scoped to an organization.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.invitation import Invitation
    from app.models.org_member import OrgMember


class SubscriptionPlan(str, enum.Enum):
    """Platform subscription tier of the gym."""

    starter = "starter"
    growth = "growth"
    pro = "pro"
    enterprise = "enterprise"


# Member cap per tier; None is unlimited
PLAN_MEMBER_LIMITS: dict[SubscriptionPlan, int | None] = {
    SubscriptionPlan.starter: 50,
    SubscriptionPlan.growth: 150,
    SubscriptionPlan.pro: None,
    SubscriptionPlan.enterprise: None,
}


class Organization(Base, UUIDMixin, TimestampMixin):
    """Represents a tenant gym."""

    __tablename__ = "organizations"
    __table_args__ = (
        CheckConstraint(
            "max_classes_per_day IS NULL OR (max_classes_per_day >= 1 AND max_classes_per_day <= 10)",
            name="max_classes_per_day_range",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)

    # Contact
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Regional
    timezone: Mapped[str] = mapped_column(String(50), nullable=False, default="America/Mexico_City")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    language: Mapped[str] = mapped_column(String(5), nullable=False, default="es")

    # Subscription and limits
    subscription_plan: Mapped[SubscriptionPlan] = mapped_column(
        Enum(SubscriptionPlan, name="subscription_plan", create_type=False),
        nullable=False,
        default=SubscriptionPlan.starter,
    )
    subscription_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    max_members: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_classes_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    staff: Mapped[list[OrgMember]] = relationship(
        "OrgMember", back_populates="organization", cascade="all, delete-orphan"
    )
    invitations: Mapped[list[Invitation]] = relationship(
        "Invitation", back_populates="organization", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} slug={self.slug!r}>"
