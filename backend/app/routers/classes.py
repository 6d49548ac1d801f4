"""
Class schedule and booking endpoints.

Staff manage classes and anyone's bookings under ``/classes`` and
``/bookings``; members reserve for themselves under ``/my``.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_redis, require_permission
from app.core.rbac import Permission
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.gym_class import (
    AvailableClassesResponse,
    BookingAttendanceRequest,
    BookingCreateRequest,
    BookingResponse,
    BookingsListResponse,
    ClassCancelRequest,
    ClassCreateRequest,
    ClassesListResponse,
    ClassResponse,
    ClassUpdateRequest,
    MemberBookingsListResponse,
)
from app.services.booking_service import BookingService
from app.services.class_service import ClassService

router = APIRouter()


def get_class_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> ClassService:
    return ClassService(db=db, redis=redis)


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> BookingService:
    return BookingService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

@router.get("/{slug}/classes", response_model=ClassesListResponse, summary="List classes")
async def list_classes(
    start_date: date | None = Query(default=None, description="First gym-local day"),
    end_date: date | None = Query(default=None, description="Last gym-local day"),
    include_cancelled: bool = Query(default=True),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_classes)
    ),
    service: ClassService = Depends(get_class_service),
) -> ClassesListResponse:
    """Without a date range only upcoming classes are returned."""
    org, _ = org_and_member
    return await service.list_classes(org, start_date, end_date, include_cancelled)


@router.post(
    "/{slug}/classes",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class",
)
async def create_class(
    data: ClassCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_classes)
    ),
    service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    org, _ = org_and_member
    return await service.create_class(org.id, data)


@router.get("/{slug}/classes/{class_id}", response_model=ClassResponse, summary="Get a class")
async def get_class(
    class_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_classes)
    ),
    service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    org, _ = org_and_member
    return ClassResponse.model_validate(await service.get_class(org.id, class_id))


@router.patch("/{slug}/classes/{class_id}", response_model=ClassResponse, summary="Update a class")
async def update_class(
    class_id: UUID,
    data: ClassUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_classes)
    ),
    service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    org, _ = org_and_member
    return await service.update_class(org.id, class_id, data)


@router.delete(
    "/{slug}/classes/{class_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a class",
)
async def delete_class(
    class_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_classes)
    ),
    service: ClassService = Depends(get_class_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_class(org.id, class_id)
    return {}


@router.post(
    "/{slug}/classes/{class_id}/cancel",
    response_model=ClassResponse,
    summary="Cancel a class",
)
async def cancel_class(
    class_id: UUID,
    data: ClassCancelRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_classes)
    ),
    service: ClassService = Depends(get_class_service),
) -> ClassResponse:
    """Cancels every confirmed and waitlisted booking on the class too."""
    org, _ = org_and_member
    return await service.cancel_class(org.id, class_id, data.reason)


# ---------------------------------------------------------------------------
# Staff bookings
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/classes/{class_id}/bookings",
    response_model=BookingsListResponse,
    summary="List a class's bookings",
)
async def list_class_bookings(
    class_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_any_bookings)
    ),
    service: BookingService = Depends(get_booking_service),
) -> BookingsListResponse:
    org, _ = org_and_member
    return await service.list_class_bookings(org.id, class_id)


@router.post(
    "/{slug}/classes/{class_id}/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a member into a class",
)
async def book_member(
    class_id: UUID,
    data: BookingCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_any_bookings)
    ),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Capacity and waitlist rules apply; booking window and membership checks do not."""
    org, _ = org_and_member
    return await service.book_member(org, class_id, data.member_id)


@router.post(
    "/{slug}/bookings/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel any booking",
)
async def cancel_booking(
    booking_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_any_bookings)
    ),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    org, _ = org_and_member
    return await service.cancel_booking(org.id, booking_id)


@router.patch(
    "/{slug}/bookings/{booking_id}/attendance",
    response_model=BookingResponse,
    summary="Mark a booking attended or no-show",
)
async def mark_attendance(
    booking_id: UUID,
    data: BookingAttendanceRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_any_bookings)
    ),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """``attended`` also records a check-in for the member."""
    org, _ = org_and_member
    return await service.mark_attendance(org, booking_id, data.status, current_user)


# ---------------------------------------------------------------------------
# Member self-service
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/my/classes",
    response_model=AvailableClassesResponse,
    summary="Upcoming classes I can book",
)
async def available_classes(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_own_bookings)
    ),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> AvailableClassesResponse:
    org, _ = org_and_member
    return await service.available_classes(org, current_user)


@router.post(
    "/{slug}/my/classes/{class_id}/reserve",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a spot in a class",
)
async def reserve_class(
    class_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_own_bookings)
    ),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Reserve a class.

    - 409 DAILY_CLASS_LIMIT_REACHED when the gym's daily limit is hit
    - Membership must be active and valid on the class date
    - Full classes put the member on the waitlist when enabled
    """
    org, _ = org_and_member
    return await service.reserve_class(org, current_user, class_id)


@router.get(
    "/{slug}/my/bookings",
    response_model=MemberBookingsListResponse,
    summary="My upcoming bookings",
)
async def my_bookings(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_own_bookings)
    ),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> MemberBookingsListResponse:
    org, _ = org_and_member
    return await service.my_bookings(org, current_user)


@router.get(
    "/{slug}/my/bookings/history",
    response_model=MemberBookingsListResponse,
    summary="My past bookings",
)
async def my_history(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_own_bookings)
    ),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> MemberBookingsListResponse:
    org, _ = org_and_member
    return await service.my_history(org, current_user)


@router.post(
    "/{slug}/my/bookings/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel my reservation",
)
async def cancel_my_booking(
    booking_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_own_bookings)
    ),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Allowed until ``cancellation_deadline_hours`` before the class starts."""
    org, _ = org_and_member
    return await service.cancel_my_booking(org, current_user, booking_id)
