"""
MemberNote ORM model.
"""

from __future__ import annotations

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class NoteType(str, enum.Enum):
    notes = "notes"
    trainer_comments = "trainer_comments"
    progress = "progress"
    medical = "medical"
    general = "general"


class MemberNote(Base, UUIDMixin, TimestampMixin):
    """Staff note attached to a member's file."""

    __tablename__ = "member_notes"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    note_type: Mapped[NoteType] = mapped_column(
        Enum(NoteType, name="note_type", create_type=False),
        nullable=False,
        default=NoteType.general,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # Kept so the note still shows an author after the account is gone
    created_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
