"""
Invoice repository for payments mirrored from the payment provider.
"""

from datetime import date
from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import Invoice, PaymentNotificationLog


class InvoiceRepository(BaseRepository[Invoice]):
    """Repository for Invoice CRUD operations."""

    def __init__(self, session):
        super().__init__(Invoice, session)

    def get_by_provider_id(self, provider_payment_id: str) -> Optional[Invoice]:
        return (
            self.session.query(Invoice)
            .filter(Invoice.provider_payment_id == provider_payment_id)
            .first()
        )

    def search(
        self,
        child_id: Optional[int] = None,
        parent_id: Optional[int] = None,
        status: Optional[str] = None,
        due_from: Optional[date] = None,
        due_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Invoice]:
        """Invoices matching the filters, latest due date first."""
        query = self.session.query(Invoice)
        if child_id is not None:
            query = query.filter(Invoice.child_id == child_id)
        if parent_id is not None:
            query = query.filter(Invoice.parent_id == parent_id)
        if status:
            query = query.filter(Invoice.status == status)
        if due_from:
            query = query.filter(Invoice.due_date >= due_from)
        if due_to:
            query = query.filter(Invoice.due_date <= due_to)
        return query.order_by(Invoice.due_date.desc(), Invoice.id.desc()).limit(limit).offset(offset).all()

    def get_statuses(self) -> List[str]:
        """Stored status of every invoice, for the acceptance ratio."""
        return [row[0] for row in self.session.query(Invoice.status).all()]

    def get_open(self) -> List[Invoice]:
        """Pending and overdue invoices."""
        return (
            self.session.query(Invoice)
            .filter(Invoice.status.in_(["pending", "overdue"]))
            .order_by(Invoice.due_date)
            .all()
        )

    def get_unpaid_due_until(self, until: date) -> List[Invoice]:
        """Unpaid invoices (pending or already overdue) due on or before ``until``."""
        return (
            self.session.query(Invoice)
            .filter(Invoice.status.in_(("pending", "overdue")), Invoice.due_date <= until)
            .order_by(Invoice.due_date, Invoice.id)
            .all()
        )


class PaymentNotificationLogRepository(BaseRepository[PaymentNotificationLog]):
    """Reminders already sent, keyed by invoice, kind and recipient."""

    def __init__(self, session):
        super().__init__(PaymentNotificationLog, session)

    def was_sent(self, invoice_id: int, notification_type: str, user_id: int) -> bool:
        return self.exists(invoice_id=invoice_id, notification_type=notification_type, user_id=user_id)

    def record(self, invoice_id: int, notification_type: str, user_id: int) -> PaymentNotificationLog:
        return self.create(invoice_id=invoice_id, notification_type=notification_type, user_id=user_id)
