"""
Member note business logic.

Any staff with note permissions can read and add notes. Only the author
or a gym admin can change or remove one.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.rbac import AppRole
from app.models.member import Member
from app.models.member_note import MemberNote, NoteType
from app.models.org_member import OrgMember
from app.models.user import User
from app.schemas.member_note import (
    NoteCreateRequest,
    NoteResponse,
    NotesListResponse,
    NoteUpdateRequest,
)

_NOTE_ADMINS = (AppRole.super_admin, AppRole.admin)


class MemberNoteService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def list_notes(
        self,
        org_id: UUID,
        member_id: UUID,
        note_type: NoteType | None = None,
        limit: int | None = None,
    ) -> NotesListResponse:
        """Newest first. ``limit`` serves the short list on the member card."""
        await self._get_member(org_id, member_id)
        stmt = select(MemberNote).where(MemberNote.org_id == org_id, MemberNote.member_id == member_id)
        if note_type is not None:
            stmt = stmt.where(MemberNote.note_type == note_type)
        stmt = stmt.order_by(MemberNote.created_at.desc(), MemberNote.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        notes = [NoteResponse.model_validate(n) for n in (await self.db.execute(stmt)).scalars().all()]
        return NotesListResponse(notes=notes, total=len(notes))

    async def create_note(
        self, org_id: UUID, member_id: UUID, data: NoteCreateRequest, actor: User
    ) -> NoteResponse:
        await self._get_member(org_id, member_id)
        note = MemberNote(
            org_id=org_id,
            member_id=member_id,
            note_type=data.note_type,
            title=data.title,
            content=data.content,
            created_by_id=actor.id,
            created_by_name=actor.display_name or "Usuario",
        )
        self.db.add(note)
        await self.db.flush()
        return NoteResponse.model_validate(note)

    async def update_note(
        self, org_id: UUID, note_id: UUID, data: NoteUpdateRequest, actor: User, org_member: OrgMember
    ) -> NoteResponse:
        note = await self._get_editable(org_id, note_id, actor, org_member)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(note, field, value)
        await self.db.flush()
        await self.db.refresh(note)
        return NoteResponse.model_validate(note)

    async def delete_note(
        self, org_id: UUID, note_id: UUID, actor: User, org_member: OrgMember
    ) -> None:
        note = await self._get_editable(org_id, note_id, actor, org_member)
        await self.db.delete(note)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_member(self, org_id: UUID, member_id: UUID) -> Member:
        member = (
            await self.db.execute(
                select(Member).where(Member.org_id == org_id, Member.id == member_id)
            )
        ).scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )
        return member

    async def _get_editable(
        self, org_id: UUID, note_id: UUID, actor: User, org_member: OrgMember
    ) -> MemberNote:
        note = (
            await self.db.execute(
                select(MemberNote).where(MemberNote.id == note_id, MemberNote.org_id == org_id)
            )
        ).scalar_one_or_none()
        if note is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "NOTE_NOT_FOUND", "message": "Note not found"},
            )
        if note.created_by_id != actor.id and org_member.role not in _NOTE_ADMINS:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "NOT_NOTE_AUTHOR", "message": "Only the author or an admin can change this note"},
            )
        return note
