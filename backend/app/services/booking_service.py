"""
Booking business logic.

Staff manage bookings for any member; members reserve and cancel their
own. Reservations enforce, in order: class not cancelled, the gym's daily
class limit, a valid membership, class not started, the booking window,
no duplicate booking, then capacity and waitlist.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc, get_zone, local_date, local_day_bounds, utcnow
from app.models.check_in import CheckIn, CheckInMethod
from app.models.gym_class import DAILY_LIMIT_STATUSES, Booking, BookingStatus, GymClass
from app.models.member import Member, MembershipStatus, MemberStatus
from app.models.organization import Organization
from app.models.user import User
from app.schemas.gym_class import (
    AvailableClassesResponse,
    AvailableClassResponse,
    BookingResponse,
    BookingsListResponse,
    BookingWithMemberResponse,
    ClassResponse,
    DailyLimitInfo,
    MemberBookingResponse,
    MemberBookingsListResponse,
)
from app.services.class_service import ACTIVE_BOOKING_STATUSES, get_class_or_404
from app.services.member_service import find_member_for_user

logger = logging.getLogger(__name__)

AVAILABLE_CLASSES_LIMIT = 50


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


class BookingService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Staff: class roster
    # -----------------------------------------------------------------------

    async def list_class_bookings(self, org_id: UUID, class_id: UUID) -> BookingsListResponse:
        """Bookings of one class with member name/email, waitlist last."""
        await get_class_or_404(self.db, org_id, class_id)
        result = await self.db.execute(
            select(Booking, Member.full_name, Member.email)
            .join(Member, Member.id == Booking.member_id)
            .where(Booking.class_id == class_id, Booking.org_id == org_id)
            .order_by(Booking.waitlist_position.is_not(None), Booking.waitlist_position, Booking.created_at)
        )
        bookings = [
            BookingWithMemberResponse(
                **BookingResponse.model_validate(booking).model_dump(),
                member_name=full_name,
                member_email=email,
            )
            for booking, full_name, email in result.all()
        ]
        return BookingsListResponse(bookings=bookings, total=len(bookings))

    async def book_member(self, org: Organization, class_id: UUID, member_id: UUID) -> BookingResponse:
        """
        Staff books a member into a class.

        The booking window, membership and daily limit checks are skipped;
        cancellation, duplicates and capacity still apply.
        """
        gym_class = await get_class_or_404(self.db, org.id, class_id, for_update=True)
        member = await self._get_member(org.id, member_id)

        self._ensure_not_cancelled(gym_class)
        existing = await self._existing_booking(gym_class.id, member.id)
        booking = await self._place_booking(org.id, gym_class, member, existing)
        return BookingResponse.model_validate(booking)

    async def cancel_booking(self, org_id: UUID, booking_id: UUID) -> BookingResponse:
        """Staff cancellation, no deadline applies."""
        booking = await self._get_booking(org_id, booking_id)
        if booking.status not in ACTIVE_BOOKING_STATUSES:
            raise _error(
                status.HTTP_400_BAD_REQUEST, "BOOKING_NOT_ACTIVE", "Only active bookings can be cancelled"
            )
        gym_class = await get_class_or_404(self.db, org_id, booking.class_id, for_update=True)
        await self._cancel(booking, gym_class)
        return BookingResponse.model_validate(booking)

    async def mark_attendance(
        self, org: Organization, booking_id: UUID, new_status: BookingStatus, actor: User
    ) -> BookingResponse:
        """
        Mark a booking ``attended`` or ``no_show``.

        Attendance records a manual check-in linked to the booking and
        bumps the member's check-in counters. Moving an attended booking
        to no_show removes that check-in and rolls the counters back.
        """
        if new_status not in (BookingStatus.attended, BookingStatus.no_show):
            raise _error(
                status.HTTP_400_BAD_REQUEST, "INVALID_BOOKING_STATUS", "Status must be attended or no_show"
            )

        booking = await self._get_booking(org.id, booking_id)
        if booking.status in (BookingStatus.cancelled, BookingStatus.waitlist):
            raise _error(
                status.HTTP_400_BAD_REQUEST,
                "BOOKING_NOT_CONFIRMED",
                "Only confirmed bookings can be marked",
            )
        if booking.status == new_status:
            return BookingResponse.model_validate(booking)

        now = utcnow()
        if new_status == BookingStatus.attended:
            member = await self._get_member(org.id, booking.member_id)
            self.db.add(
                CheckIn(
                    org_id=org.id,
                    member_id=member.id,
                    checked_in_at=now,
                    check_in_method=CheckInMethod.manual,
                    booking_id=booking.id,
                    performed_by=actor.id,
                )
            )
            member.check_in_count = (member.check_in_count or 0) + 1
            member.last_check_in = now
            booking.checked_in_at = now
        else:
            if booking.status == BookingStatus.attended:
                await self._undo_attendance(org.id, booking)
            booking.checked_in_at = None

        booking.status = new_status
        await self.db.flush()
        await self.db.refresh(booking)
        return BookingResponse.model_validate(booking)

    # -----------------------------------------------------------------------
    # Member self-service
    # -----------------------------------------------------------------------

    async def available_classes(self, org: Organization, user: User) -> AvailableClassesResponse:
        """Upcoming classes annotated with the caller's booking and daily limit state."""
        member = await self._member_for_user(org, user)

        result = await self.db.execute(
            select(GymClass)
            .where(
                GymClass.org_id == org.id,
                GymClass.is_cancelled.is_(False),
                GymClass.start_time >= utcnow(),
            )
            .order_by(GymClass.start_time)
            .limit(AVAILABLE_CLASSES_LIMIT)
        )
        classes = result.scalars().all()

        my_bookings: dict[UUID, Booking] = {}
        if classes:
            booking_rows = await self.db.execute(
                select(Booking).where(
                    Booking.member_id == member.id,
                    Booking.class_id.in_([c.id for c in classes]),
                    Booking.status != BookingStatus.cancelled,
                )
            )
            my_bookings = {b.class_id: b for b in booking_rows.scalars().all()}

        limit = org.max_classes_per_day
        daily_counts: dict[date, int] = {}
        if limit:
            for day in {local_date(c.start_time, org.timezone) for c in classes}:
                daily_counts[day] = len(await self._daily_bookings(org, member.id, day))

        items: list[AvailableClassResponse] = []
        for gym_class in classes:
            mine = my_bookings.get(gym_class.id)
            info: DailyLimitInfo | None = None
            if limit:
                day = local_date(gym_class.start_time, org.timezone)
                info = DailyLimitInfo(
                    limit=limit,
                    current_count=daily_counts[day],
                    target_date=day,
                    timezone=get_zone(org.timezone).key,
                )
            items.append(
                AvailableClassResponse(
                    **ClassResponse.model_validate(gym_class).model_dump(),
                    has_my_booking=mine is not None,
                    my_booking_status=mine.status if mine else None,
                    my_booking_id=mine.id if mine else None,
                    daily_limit_reached=info is not None and info.current_count >= info.limit,
                    daily_limit_info=info,
                )
            )
        return AvailableClassesResponse(classes=items, total=len(items))

    async def my_bookings(self, org: Organization, user: User) -> MemberBookingsListResponse:
        """Future confirmed or waitlisted bookings, soonest first."""
        member = await self._member_for_user(org, user)
        return await self._member_bookings(
            member.id,
            (BookingStatus.confirmed, BookingStatus.waitlist),
            upcoming=True,
        )

    async def my_history(self, org: Organization, user: User) -> MemberBookingsListResponse:
        """Past confirmed, attended or no-show bookings, most recent first."""
        member = await self._member_for_user(org, user)
        return await self._member_bookings(
            member.id,
            (BookingStatus.confirmed, BookingStatus.attended, BookingStatus.no_show),
            upcoming=False,
        )

    async def reserve_class(self, org: Organization, user: User, class_id: UUID) -> BookingResponse:
        member = await self._member_for_user(org, user)
        gym_class = await get_class_or_404(self.db, org.id, class_id, for_update=True)

        self._ensure_not_cancelled(gym_class)
        await self._ensure_daily_limit(org, member.id, gym_class)
        self._ensure_membership(org, member, gym_class)

        now = utcnow()
        start = as_utc(gym_class.start_time)
        if start <= now:
            raise _error(
                status.HTTP_400_BAD_REQUEST, "CLASS_ALREADY_STARTED", "The class has already started"
            )
        if now < start - timedelta(hours=gym_class.booking_opens_hours):
            raise _error(
                status.HTTP_400_BAD_REQUEST,
                "BOOKING_NOT_OPEN",
                f"Booking opens {gym_class.booking_opens_hours} hours before the class",
            )
        if now > start - timedelta(minutes=gym_class.booking_closes_minutes):
            raise _error(
                status.HTTP_400_BAD_REQUEST,
                "BOOKING_CLOSED",
                f"Booking closes {gym_class.booking_closes_minutes} minutes before the class",
            )

        existing = await self._existing_booking(gym_class.id, member.id)
        booking = await self._place_booking(org.id, gym_class, member, existing)
        logger.info(
            "Member %s booked class %s as %s", member.id, gym_class.id, booking.status.value
        )
        return BookingResponse.model_validate(booking)

    async def cancel_my_booking(self, org: Organization, user: User, booking_id: UUID) -> BookingResponse:
        member = await self._member_for_user(org, user)
        booking = await self._get_booking(org.id, booking_id)
        if booking.member_id != member.id:
            raise _error(status.HTTP_404_NOT_FOUND, "BOOKING_NOT_FOUND", "Booking not found")
        if booking.status == BookingStatus.cancelled:
            raise _error(
                status.HTTP_400_BAD_REQUEST, "BOOKING_ALREADY_CANCELLED", "Booking is already cancelled"
            )
        if booking.status in (BookingStatus.attended, BookingStatus.no_show):
            raise _error(
                status.HTTP_400_BAD_REQUEST, "CLASS_ALREADY_HAPPENED", "The class has already happened"
            )

        gym_class = await get_class_or_404(self.db, org.id, booking.class_id, for_update=True)
        deadline = as_utc(gym_class.start_time) - timedelta(hours=gym_class.cancellation_deadline_hours)
        if utcnow() > deadline:
            raise _error(
                status.HTTP_400_BAD_REQUEST,
                "CANCELLATION_DEADLINE_PASSED",
                f"Bookings can only be cancelled {gym_class.cancellation_deadline_hours} hours before the class",
            )

        await self._cancel(booking, gym_class)
        return BookingResponse.model_validate(booking)

    # -----------------------------------------------------------------------
    # Rules
    # -----------------------------------------------------------------------

    @staticmethod
    def _ensure_not_cancelled(gym_class: GymClass) -> None:
        if gym_class.is_cancelled:
            raise _error(status.HTTP_400_BAD_REQUEST, "CLASS_CANCELLED", "The class has been cancelled")

    async def _ensure_daily_limit(self, org: Organization, member_id: UUID, gym_class: GymClass) -> None:
        limit = org.max_classes_per_day
        if not limit:
            return

        day = local_date(gym_class.start_time, org.timezone)
        existing = await self._daily_bookings(org, member_id, day)
        if len(existing) < limit:
            return

        info = DailyLimitInfo(
            limit=limit,
            current_count=len(existing),
            target_date=day,
            timezone=get_zone(org.timezone).key,
            existing_bookings=[
                {
                    "id": str(booking.id),
                    "class_name": class_name,
                    "start_time": as_utc(start_time).isoformat(),
                    "status": booking.status.value,
                }
                for booking, class_name, start_time in existing
            ],
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "DAILY_CLASS_LIMIT_REACHED",
                "message": f"You already reached the maximum of {limit} classes for this day",
                **info.model_dump(mode="json"),
            },
        )

    @staticmethod
    def _ensure_membership(org: Organization, member: Member, gym_class: GymClass) -> None:
        if member.status != MemberStatus.active:
            raise _error(status.HTTP_400_BAD_REQUEST, "MEMBER_INACTIVE", "Member is not active")
        if member.membership_end_date is None:
            raise _error(status.HTTP_400_BAD_REQUEST, "NO_MEMBERSHIP", "Member has no membership")
        if member.membership_end_date < local_date(gym_class.start_time, org.timezone):
            raise _error(
                status.HTTP_400_BAD_REQUEST,
                "MEMBERSHIP_EXPIRED",
                "Membership expires before the class date",
            )
        if member.membership_status != MembershipStatus.active:
            raise _error(
                status.HTTP_400_BAD_REQUEST, "MEMBERSHIP_NOT_ACTIVE", "Membership is not active"
            )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _place_booking(
        self, org_id: UUID, gym_class: GymClass, member: Member, existing: Booking | None
    ) -> Booking:
        """Confirm or waitlist; reuses a cancelled row for the same (class, member)."""
        if existing is not None and existing.status != BookingStatus.cancelled:
            raise _error(
                status.HTTP_409_CONFLICT, "ALREADY_BOOKED", "Member already has a booking for this class"
            )

        booking_status = BookingStatus.confirmed
        position: int | None = None
        if gym_class.current_bookings >= gym_class.max_capacity:
            if not gym_class.waitlist_enabled:
                raise _error(
                    status.HTTP_409_CONFLICT, "CLASS_FULL", "The class is full and has no waitlist"
                )
            waiting = await self._waitlist_count(gym_class.id)
            if waiting >= gym_class.max_waitlist:
                raise _error(status.HTTP_409_CONFLICT, "WAITLIST_FULL", "The waitlist is full")
            booking_status = BookingStatus.waitlist
            position = waiting + 1

        if existing is None:
            booking = Booking(org_id=org_id, class_id=gym_class.id, member_id=member.id)
            self.db.add(booking)
        else:
            booking = existing
            booking.cancelled_at = None
            booking.checked_in_at = None
        booking.status = booking_status
        booking.waitlist_position = position

        if booking_status == BookingStatus.confirmed:
            gym_class.current_bookings += 1

        await self.db.flush()
        await self.db.refresh(booking)
        return booking

    async def _cancel(self, booking: Booking, gym_class: GymClass) -> None:
        """Cancel and keep the class counter and waitlist order consistent."""
        was_confirmed = booking.status == BookingStatus.confirmed
        booking.status = BookingStatus.cancelled
        booking.waitlist_position = None
        booking.cancelled_at = utcnow()

        if was_confirmed:
            gym_class.current_bookings = max(0, gym_class.current_bookings - 1)
        await self.db.flush()

        waitlist = (
            await self.db.execute(
                select(Booking)
                .where(Booking.class_id == gym_class.id, Booking.status == BookingStatus.waitlist)
                .order_by(Booking.waitlist_position, Booking.created_at)
            )
        ).scalars().all()

        if was_confirmed and waitlist and gym_class.current_bookings < gym_class.max_capacity:
            promoted, waitlist = waitlist[0], waitlist[1:]
            promoted.status = BookingStatus.confirmed
            promoted.waitlist_position = None
            gym_class.current_bookings += 1
            logger.info("Booking %s promoted from waitlist", promoted.id)

        for position, waiting in enumerate(waitlist, start=1):
            waiting.waitlist_position = position

        await self.db.flush()
        await self.db.refresh(booking)

    async def _daily_bookings(
        self, org: Organization, member_id: UUID, day: date
    ) -> list[tuple[Booking, str, datetime]]:
        """Bookings counting toward the daily limit on a gym-local day."""
        start, end = local_day_bounds(day, org.timezone)
        result = await self.db.execute(
            select(Booking, GymClass.name, GymClass.start_time)
            .join(GymClass, GymClass.id == Booking.class_id)
            .where(
                Booking.org_id == org.id,
                Booking.member_id == member_id,
                Booking.status.in_(DAILY_LIMIT_STATUSES),
                GymClass.start_time >= start,
                GymClass.start_time < end,
            )
            .order_by(GymClass.start_time)
        )
        return list(result.all())

    async def _waitlist_count(self, class_id: UUID) -> int:
        return (
            await self.db.execute(
                select(func.count()).select_from(Booking).where(
                    Booking.class_id == class_id, Booking.status == BookingStatus.waitlist
                )
            )
        ).scalar_one()

    async def _existing_booking(self, class_id: UUID, member_id: UUID) -> Booking | None:
        result = await self.db.execute(
            select(Booking).where(Booking.class_id == class_id, Booking.member_id == member_id)
        )
        return result.scalar_one_or_none()

    async def _member_bookings(
        self, member_id: UUID, statuses: tuple[BookingStatus, ...], upcoming: bool
    ) -> MemberBookingsListResponse:
        now = utcnow()
        stmt = (
            select(Booking, GymClass)
            .join(GymClass, GymClass.id == Booking.class_id)
            .where(Booking.member_id == member_id, Booking.status.in_(statuses))
        )
        if upcoming:
            stmt = stmt.where(GymClass.start_time >= now).order_by(GymClass.start_time)
        else:
            stmt = stmt.where(GymClass.start_time < now).order_by(GymClass.start_time.desc())

        result = await self.db.execute(stmt)
        bookings = [
            MemberBookingResponse(
                **BookingResponse.model_validate(booking).model_dump(),
                gym_class=ClassResponse.model_validate(gym_class),
            )
            for booking, gym_class in result.all()
        ]
        return MemberBookingsListResponse(bookings=bookings, total=len(bookings))

    async def _member_for_user(self, org: Organization, user: User) -> Member:
        member = await find_member_for_user(self.db, org.id, user)
        if member is None:
            raise _error(
                status.HTTP_404_NOT_FOUND,
                "MEMBER_PROFILE_NOT_FOUND",
                "You do not have a member profile in this organization",
            )
        return member

    async def _get_member(self, org_id: UUID, member_id: UUID) -> Member:
        result = await self.db.execute(
            select(Member).where(Member.id == member_id, Member.org_id == org_id)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise _error(status.HTTP_404_NOT_FOUND, "MEMBER_NOT_FOUND", "Member not found")
        return member

    async def _undo_attendance(self, org_id: UUID, booking: Booking) -> None:
        member = await self._get_member(org_id, booking.member_id)
        result = await self.db.execute(select(CheckIn).where(CheckIn.booking_id == booking.id))
        check_ins = result.scalars().all()
        for check_in in check_ins:
            await self.db.delete(check_in)
        await self.db.flush()

        member.check_in_count = max((member.check_in_count or 0) - len(check_ins), 0)
        member.last_check_in = (
            await self.db.execute(
                select(func.max(CheckIn.checked_in_at)).where(CheckIn.member_id == member.id)
            )
        ).scalar_one_or_none()

    async def _get_booking(self, org_id: UUID, booking_id: UUID) -> Booking:
        result = await self.db.execute(
            select(Booking).where(Booking.id == booking_id, Booking.org_id == org_id)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise _error(status.HTTP_404_NOT_FOUND, "BOOKING_NOT_FOUND", "Booking not found")
        return booking
