"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.models.organization import Organization, SubscriptionPlan
from app.models.user import User
from app.models.org_member import OrgMember
from app.models.invitation import Invitation
from app.models.plan import BillingPeriod, MembershipPlan
from app.models.member import (
    ExperienceLevel,
    Gender,
    Member,
    MembershipStatus,
    MemberStatus,
)
from app.models.class_template import ClassGenerationLog, ClassTemplate
from app.models.gym_class import Booking, BookingStatus, GymClass
from app.models.check_in import CheckIn, CheckInMethod
from app.models.measurement import MemberMeasurement
from app.models.member_note import MemberNote, NoteType
from app.models.finance import (
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
    MembershipPayment,
    PaymentMethod,
    PaymentPeriodType,
)
from app.models.exercise import Exercise
from app.models.routine import Routine, WodType, WorkoutType
from app.models.notification import (
    MembershipNotification,
    MembershipNotificationType,
    NotificationChannel,
    NotificationStatus,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "Organization",
    "SubscriptionPlan",
    "User",
    "OrgMember",
    "Invitation",
    "MembershipPlan",
    "BillingPeriod",
    "Member",
    "MemberStatus",
    "MembershipStatus",
    "ExperienceLevel",
    "Gender",
    "ClassTemplate",
    "ClassGenerationLog",
    "GymClass",
    "Booking",
    "BookingStatus",
    "CheckIn",
    "CheckInMethod",
    "MemberMeasurement",
    "MemberNote",
    "NoteType",
    "MembershipPayment",
    "Expense",
    "Income",
    "PaymentMethod",
    "PaymentPeriodType",
    "ExpenseCategory",
    "IncomeCategory",
    "Exercise",
    "Routine",
    "WorkoutType",
    "WodType",
    "MembershipNotification",
    "MembershipNotificationType",
    "NotificationChannel",
    "NotificationStatus",
]
