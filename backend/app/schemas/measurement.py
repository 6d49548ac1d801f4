"""
Member measurement schemas.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

# Fields that count as an actual reading
MEASUREMENT_FIELDS = (
    "height_cm",
    "weight_kg",
    "body_fat_percentage",
    "muscle_mass_kg",
    "heart_rate_bpm",
    "blood_pressure_systolic",
    "blood_pressure_diastolic",
    "waist_cm",
    "hip_cm",
    "chest_cm",
    "arm_cm",
    "thigh_cm",
)


class MeasurementFields(BaseModel):
    height_cm: Decimal | None = Field(default=None, gt=0, le=300, decimal_places=1)
    weight_kg: Decimal | None = Field(default=None, gt=0, le=500, decimal_places=2)
    body_fat_percentage: Decimal | None = Field(default=None, ge=0, le=100, decimal_places=1)
    muscle_mass_kg: Decimal | None = Field(default=None, ge=0, le=300, decimal_places=2)
    heart_rate_bpm: int | None = Field(default=None, ge=20, le=250)
    blood_pressure_systolic: int | None = Field(default=None, ge=50, le=300)
    blood_pressure_diastolic: int | None = Field(default=None, ge=30, le=200)
    waist_cm: Decimal | None = Field(default=None, gt=0, le=300, decimal_places=1)
    hip_cm: Decimal | None = Field(default=None, gt=0, le=300, decimal_places=1)
    chest_cm: Decimal | None = Field(default=None, gt=0, le=300, decimal_places=1)
    arm_cm: Decimal | None = Field(default=None, gt=0, le=150, decimal_places=1)
    thigh_cm: Decimal | None = Field(default=None, gt=0, le=200, decimal_places=1)
    notes: str | None = Field(default=None, max_length=1000)


class MeasurementCreateRequest(MeasurementFields):
    """``measured_at`` defaults to now. At least one reading is required."""

    measured_at: datetime | None = None

    @model_validator(mode="after")
    def needs_a_reading(self) -> MeasurementCreateRequest:
        if all(getattr(self, name) is None for name in MEASUREMENT_FIELDS):
            raise ValueError("At least one measurement value is required")
        return self


class MeasurementUpdateRequest(MeasurementFields):
    measured_at: datetime | None = None


class MeasurementResponse(BaseModel):
    id: UUID
    org_id: UUID
    member_id: UUID
    measured_at: datetime
    height_cm: float | None
    weight_kg: float | None
    body_mass_index: float | None
    body_fat_percentage: float | None
    muscle_mass_kg: float | None
    heart_rate_bpm: int | None
    blood_pressure_systolic: int | None
    blood_pressure_diastolic: int | None
    waist_cm: float | None
    hip_cm: float | None
    chest_cm: float | None
    arm_cm: float | None
    thigh_cm: float | None
    notes: str | None
    recorded_by_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MeasurementsListResponse(BaseModel):
    measurements: list[MeasurementResponse]
    total: int
