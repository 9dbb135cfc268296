"""
Database layer for the creche backend.

Provides the PostgreSQL schema, ORM models, and connection management.
"""

from .connection import get_db_manager, get_db_session, init_db
from creche.db import models  # noqa: F401
from .models import (
    User,
    Child,
    ParentChild,
    EmployeeProfile,
    DailyRecord,
    Attendance,
    WeeklyMenu,
    Message,
    Announcement,
    FeedPost,
    Notification,
    PaymentCustomer,
    Subscription,
    Invoice,
    PaymentNotificationLog,
    DiscountCoupon,
    FixedExpense,
    EnrollmentContract,
)

__all__ = [
    # Connection utilities
    "get_db_session",
    "get_db_manager",
    "init_db",
    # Models
    "User",
    "Child",
    "ParentChild",
    "EmployeeProfile",
    "DailyRecord",
    "Attendance",
    "WeeklyMenu",
    "Message",
    "Announcement",
    "FeedPost",
    "Notification",
    "PaymentCustomer",
    "Subscription",
    "Invoice",
    "PaymentNotificationLog",
    "DiscountCoupon",
    "FixedExpense",
    "EnrollmentContract",
]
