"""
MembershipPlan ORM model.
"""

from __future__ import annotations

import enum
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class BillingPeriod(str, enum.Enum):
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
    one_time = "one_time"


class MembershipPlan(Base, UUIDMixin, TimestampMixin):
    """A plan a gym sells to its members."""

    __tablename__ = "membership_plans"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    billing_period: Mapped[BillingPeriod] = mapped_column(
        Enum(BillingPeriod, name="billing_period", create_type=False),
        nullable=False,
        default=BillingPeriod.monthly,
    )
    unlimited_access: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    classes_per_period: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<MembershipPlan id={self.id} name={self.name!r}>"
