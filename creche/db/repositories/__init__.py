"""
Database repository layer.

Provides data access patterns using the Repository Pattern.
"""

from creche.db.repositories.base import BaseRepository
from creche.db.repositories.child_repository import ChildRepository
from creche.db.repositories.daily_record_repository import DailyRecordRepository
from creche.db.repositories.attendance_repository import AttendanceRepository
from creche.db.repositories.message_repository import MessageRepository
from creche.db.repositories.announcement_repository import AnnouncementRepository, FeedPostRepository
from creche.db.repositories.notification_repository import NotificationRepository
from creche.db.repositories.invoice_repository import InvoiceRepository, PaymentNotificationLogRepository
from creche.db.repositories.subscription_repository import SubscriptionRepository, PaymentCustomerRepository
from creche.db.repositories.contract_repository import ContractRepository
from creche.db.repositories.fixed_expense_repository import FixedExpenseRepository, EmployeeProfileRepository
from creche.db.repositories.coupon_repository import CouponRepository
from creche.db.repositories.menu_repository import MenuRepository

__all__ = [
    "BaseRepository",
    "ChildRepository",
    "DailyRecordRepository",
    "AttendanceRepository",
    "MessageRepository",
    "AnnouncementRepository",
    "FeedPostRepository",
    "NotificationRepository",
    "InvoiceRepository",
    "PaymentNotificationLogRepository",
    "SubscriptionRepository",
    "PaymentCustomerRepository",
    "ContractRepository",
    "FixedExpenseRepository",
    "EmployeeProfileRepository",
    "CouponRepository",
    "MenuRepository",
]
