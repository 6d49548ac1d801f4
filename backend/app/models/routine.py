"""
Routine (workout) ORM model.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class WorkoutType(str, enum.Enum):
    routine = "routine"
    wod = "wod"
    program = "program"


class WodType(str, enum.Enum):
    amrap = "amrap"
    emom = "emom"
    for_time = "for_time"
    tabata = "tabata"
    rounds = "rounds"


class Routine(Base, UUIDMixin, TimestampMixin):
    """A workout; templates are copied when assigned to a member."""

    __tablename__ = "workouts"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    workout_type: Mapped[WorkoutType] = mapped_column(
        Enum(WorkoutType, name="workout_type", create_type=False),
        nullable=False,
        default=WorkoutType.routine,
    )
    wod_type: Mapped[WodType | None] = mapped_column(
        Enum(WodType, name="wod_type", create_type=False), nullable=True
    )
    wod_time_cap: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # [{exercise_id, exercise_name, sets, reps, weight, rest_seconds, tempo, notes, order}]
    exercises: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    assigned_to_member_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=True, index=True
    )
    assigned_by_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Routine id={self.id} name={self.name!r}>"
