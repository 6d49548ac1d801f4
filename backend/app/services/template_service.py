"""
Class template business logic.

Templates describe weekly recurring classes. Generation expands active
templates over a date range into concrete classes, recording each
(template, date) pair in class_generation_log so it is produced once.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_to_utc, today_in
from app.models.class_template import ClassGenerationLog, ClassTemplate
from app.models.gym_class import GymClass
from app.models.organization import Organization
from app.schemas.class_template import (
    PERIOD_DAYS,
    ClassOccurrence,
    GenerateClassesRequest,
    GenerationPreviewResponse,
    GenerationResultResponse,
    TemplateCreateRequest,
    TemplateResponse,
    TemplatesListResponse,
    TemplateUpdateRequest,
    time_to_minutes,
)

logger = logging.getLogger(__name__)

# Fields copied from a template onto each generated class
_CLASS_FIELDS = (
    "name",
    "description",
    "class_type",
    "instructor_id",
    "instructor_name",
    "location",
    "max_capacity",
    "waitlist_enabled",
    "max_waitlist",
    "booking_opens_hours",
    "booking_closes_minutes",
    "cancellation_deadline_hours",
)


def day_of_week(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def dates_for_weekday(weekday: int, start: date, end: date) -> list[date]:
    """Every date in ``[start, end]`` falling on ``weekday``."""
    offset = (weekday - day_of_week(start)) % 7
    current = start + timedelta(days=offset)
    dates: list[date] = []
    while current <= end:
        dates.append(current)
        current += timedelta(days=7)
    return dates


class TemplateService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # CRUD
    # -----------------------------------------------------------------------

    async def list_templates(
        self,
        org_id: UUID,
        query: str | None = None,
        is_active: bool | None = None,
        day: int | None = None,
        class_type: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> TemplatesListResponse:
        stmt = select(ClassTemplate).where(ClassTemplate.org_id == org_id)
        if query:
            pattern = f"%{query.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(ClassTemplate.name).like(pattern),
                    func.lower(ClassTemplate.instructor_name).like(pattern),
                )
            )
        if is_active is not None:
            stmt = stmt.where(ClassTemplate.is_active.is_(is_active))
        if day is not None:
            stmt = stmt.where(ClassTemplate.day_of_week == day)
        if class_type:
            stmt = stmt.where(ClassTemplate.class_type == class_type)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        result = await self.db.execute(
            stmt.order_by(ClassTemplate.day_of_week, ClassTemplate.start_time)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        templates = [TemplateResponse.model_validate(t) for t in result.scalars().all()]
        return TemplatesListResponse(templates=templates, total=total, page=page, per_page=per_page)

    async def get_template(self, org_id: UUID, template_id: UUID) -> ClassTemplate:
        result = await self.db.execute(
            select(ClassTemplate).where(ClassTemplate.id == template_id, ClassTemplate.org_id == org_id)
        )
        template = result.scalar_one_or_none()
        if template is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "TEMPLATE_NOT_FOUND", "message": "Template not found"},
            )
        return template

    async def create_template(self, org_id: UUID, data: TemplateCreateRequest) -> TemplateResponse:
        template = ClassTemplate(org_id=org_id, **data.model_dump())
        self.db.add(template)
        await self.db.flush()
        return TemplateResponse.model_validate(template)

    async def update_template(
        self, org_id: UUID, template_id: UUID, data: TemplateUpdateRequest
    ) -> TemplateResponse:
        template = await self.get_template(org_id, template_id)
        changes = data.model_dump(exclude_unset=True)

        start = changes.get("start_time") or template.start_time
        end = changes.get("end_time") or template.end_time
        if time_to_minutes(end) <= time_to_minutes(start):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"code": "INVALID_TIME_RANGE", "message": "end_time must be after start_time"},
            )

        nullable = ("description", "class_type", "instructor_id", "instructor_name", "location")
        for field, value in changes.items():
            if value is None and field not in nullable:
                continue
            setattr(template, field, value)

        await self.db.flush()
        await self.db.refresh(template)
        return TemplateResponse.model_validate(template)

    async def delete_template(self, org_id: UUID, template_id: UUID) -> None:
        template = await self.get_template(org_id, template_id)
        await self.db.delete(template)
        await self.db.flush()

    async def toggle_template(self, org_id: UUID, template_id: UUID) -> TemplateResponse:
        template = await self.get_template(org_id, template_id)
        template.is_active = not template.is_active
        await self.db.flush()
        await self.db.refresh(template)
        return TemplateResponse.model_validate(template)

    # -----------------------------------------------------------------------
    # Preview / generate
    # -----------------------------------------------------------------------

    async def preview(self, org: Organization, data: GenerateClassesRequest) -> GenerationPreviewResponse:
        start, end = self._range(org, data)
        occurrences = [occ for _, occ in await self._occurrences(org, data, start, end)]
        return GenerationPreviewResponse(
            start_date=start,
            end_date=end,
            occurrences=occurrences,
            total=len(occurrences),
            new_count=sum(1 for occ in occurrences if not occ.already_exists),
        )

    async def generate(self, org: Organization, data: GenerateClassesRequest) -> GenerationResultResponse:
        """Create every occurrence not already in the generation log."""
        start, end = self._range(org, data)
        created = 0
        errors: list[str] = []

        for template, occ in await self._occurrences(org, data, start, end):
            if occ.already_exists:
                continue
            if occ.end_time <= occ.start_time:
                errors.append(
                    f"Could not create class for {template.name} on {occ.class_date}: "
                    "end time is not after start time"
                )
                continue

            gym_class = GymClass(
                org_id=org.id,
                start_time=occ.start_time,
                end_time=occ.end_time,
                current_bookings=0,
                is_cancelled=False,
                template_id=template.id,
                **{field: getattr(template, field) for field in _CLASS_FIELDS},
            )
            self.db.add(gym_class)
            await self.db.flush()
            self.db.add(
                ClassGenerationLog(
                    org_id=org.id,
                    template_id=template.id,
                    generated_class_id=gym_class.id,
                    generated_date=occ.class_date,
                )
            )
            created += 1

        await self.db.flush()
        logger.info(
            "Generated %d classes for org %s from %s to %s", created, org.id, start, end
        )
        return GenerationResultResponse(classes_created=created, errors=errors)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _range(org: Organization, data: GenerateClassesRequest) -> tuple[date, date]:
        start = data.start_date or today_in(org.timezone)
        return start, start + timedelta(days=PERIOD_DAYS[data.period])

    async def _occurrences(
        self, org: Organization, data: GenerateClassesRequest, start: date, end: date
    ) -> list[tuple[ClassTemplate, ClassOccurrence]]:
        stmt = select(ClassTemplate).where(
            ClassTemplate.org_id == org.id, ClassTemplate.is_active.is_(True)
        )
        if data.template_ids:
            stmt = stmt.where(ClassTemplate.id.in_(data.template_ids))
        templates = (
            await self.db.execute(stmt.order_by(ClassTemplate.day_of_week, ClassTemplate.start_time))
        ).scalars().all()
        if not templates:
            return []

        logged = await self.db.execute(
            select(ClassGenerationLog.template_id, ClassGenerationLog.generated_date).where(
                ClassGenerationLog.template_id.in_([t.id for t in templates]),
                ClassGenerationLog.generated_date >= start,
                ClassGenerationLog.generated_date <= end,
            )
        )
        existing = {(template_id, day) for template_id, day in logged.all()}

        occurrences: list[tuple[ClassTemplate, ClassOccurrence]] = []
        for template in templates:
            for day in dates_for_weekday(template.day_of_week, start, end):
                occurrences.append(
                    (
                        template,
                        ClassOccurrence(
                            template_id=template.id,
                            template_name=template.name,
                            class_date=day,
                            start_time=local_to_utc(day, template.start_time, org.timezone),
                            end_time=local_to_utc(day, template.end_time, org.timezone),
                            instructor_name=template.instructor_name,
                            location=template.location,
                            already_exists=(template.id, day) in existing,
                        ),
                    )
                )
        occurrences.sort(key=lambda pair: pair[1].start_time)
        return occurrences
