"""
Exercise ORM model.

Rows with ``org_id`` NULL form the shared global library.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.models.member import ExperienceLevel


class Exercise(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "exercises"

    org_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    muscle_groups: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    equipment: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    difficulty: Mapped[ExperienceLevel] = mapped_column(
        Enum(ExperienceLevel, name="experience_level", create_type=False),
        nullable=False,
        default=ExperienceLevel.beginner,
    )
    video_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    instructions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_global: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Exercise id={self.id} name={self.name!r}>"
