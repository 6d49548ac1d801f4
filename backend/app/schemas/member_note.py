"""
Member note schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.member_note import NoteType


def _strip(v: str | None) -> str | None:
    return v.strip() if isinstance(v, str) else v


class NoteCreateRequest(BaseModel):
    note_type: NoteType = NoteType.trainer_comments
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=10, max_length=5000)

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _strip(v)


class NoteUpdateRequest(BaseModel):
    note_type: NoteType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=10, max_length=5000)

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _strip(v)


class NoteResponse(BaseModel):
    id: UUID
    org_id: UUID
    member_id: UUID
    note_type: NoteType
    title: str
    content: str
    created_by_id: UUID | None
    created_by_name: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NotesListResponse(BaseModel):
    notes: list[NoteResponse]
    total: int
