"""
Membership plan schemas.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.plan import BillingPeriod


class PlanCreateRequest(BaseModel):
    """Request body for POST /organizations/{slug}/plans."""

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="MXN", min_length=3, max_length=3)
    billing_period: BillingPeriod = BillingPeriod.monthly
    unlimited_access: bool = True
    classes_per_period: int | None = Field(default=None, ge=1)
    duration_days: int = Field(default=30, ge=1)
    features: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    sort_order: int = 0


class PlanUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    billing_period: BillingPeriod | None = None
    unlimited_access: bool | None = None
    classes_per_period: int | None = Field(default=None, ge=1)
    duration_days: int | None = Field(default=None, ge=1)
    features: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    sort_order: int | None = None


class PlanResponse(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    description: str | None
    price: float
    currency: str
    billing_period: BillingPeriod
    unlimited_access: bool
    classes_per_period: int | None
    duration_days: int
    features: list[str]
    is_active: bool
    is_featured: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlansListResponse(BaseModel):
    plans: list[PlanResponse]
    total: int


class PlanDeleteResponse(BaseModel):
    """``deactivated`` is true when members still reference the plan and it was only switched off."""

    id: UUID
    deleted: bool
    deactivated: bool
