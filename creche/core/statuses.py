"""
Derived status labels.

Stored status columns are free to hold any allowed value; the labels shown to
users are computed here from the stored fields and the current time.
"""

from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Union

from creche.core.constants import (
    ATTENDANCE_STATUS_LABELS,
    INVOICE_STATUS_LABELS,
    PAYMENT_REMINDER_DAYS,
    ContractStatus,
    CouponStatus,
    InvoiceStatus,
)

PROVIDER_PAYMENT_STATUS_MAP = {
    "PENDING": InvoiceStatus.PENDING,
    "AWAITING_RISK_ANALYSIS": InvoiceStatus.PENDING,
    "RECEIVED": InvoiceStatus.PAID,
    "CONFIRMED": InvoiceStatus.PAID,
    "RECEIVED_IN_CASH": InvoiceStatus.PAID,
    "DUNNING_RECEIVED": InvoiceStatus.PAID,
    "OVERDUE": InvoiceStatus.OVERDUE,
    "DUNNING_REQUESTED": InvoiceStatus.OVERDUE,
    "REFUNDED": InvoiceStatus.REFUNDED,
    "REFUND_REQUESTED": InvoiceStatus.REFUNDING,
    "REFUND_IN_PROGRESS": InvoiceStatus.REFUNDING,
    "AWAITING_CHARGEBACK_REVERSAL": InvoiceStatus.CHARGEBACK,
}

SIGNATURE_STATUS_MAP = {
    "signed": ContractStatus.SIGNED,
    "refused": ContractStatus.REFUSED,
    "expired": ContractStatus.EXPIRED,
}


def field_value(obj: Any, field: str, default=None):
    """Read a field from an ORM row or a mapping."""
    if isinstance(obj, Mapping):
        return obj.get(field, default)
    return getattr(obj, field, default)


def _as_aware(value: Union[date, datetime]) -> datetime:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def coupon_status(coupon: Any, now: Optional[datetime] = None) -> CouponStatus:
    """
    Status of a discount coupon.

    Precedence: inactive, expired, scheduled, exhausted, active. An inactive
    coupon is reported as such regardless of its dates, and the usage limit
    is only considered once the validity window is known to be open.
    """
    now = _as_aware(now or datetime.now(timezone.utc))

    if not field_value(coupon, "is_active", True):
        return CouponStatus.INACTIVE

    valid_until = field_value(coupon, "valid_until")
    if valid_until and _as_aware(valid_until) < now:
        return CouponStatus.EXPIRED

    valid_from = field_value(coupon, "valid_from")
    if valid_from and _as_aware(valid_from) > now:
        return CouponStatus.SCHEDULED

    max_uses = field_value(coupon, "max_uses")
    if max_uses and (field_value(coupon, "current_uses") or 0) >= max_uses:
        return CouponStatus.EXHAUSTED

    return CouponStatus.ACTIVE


def invoice_status(status: Optional[str], due_date: Optional[date], today: Optional[date] = None) -> InvoiceStatus:
    """
    Effective status of an invoice.

    A pending invoice past its due date is overdue; every other stored value
    is returned unchanged.
    """
    today = today or date.today()
    current = InvoiceStatus(status or InvoiceStatus.PENDING.value)
    if current == InvoiceStatus.PENDING and due_date is not None and due_date < today:
        return InvoiceStatus.OVERDUE
    return current


def invoice_label(status: str) -> str:
    return INVOICE_STATUS_LABELS.get(status, status)


def payment_reminder(due_date: date, today: Optional[date] = None) -> Optional[str]:
    """'overdue' once the due date passed, 'due_soon' within the reminder window."""
    today = today or date.today()
    if due_date < today:
        return "overdue"
    if (due_date - today).days <= PAYMENT_REMINDER_DAYS:
        return "due_soon"
    return None


def attendance_label(status: str) -> str:
    return ATTENDANCE_STATUS_LABELS.get(status, status)


def map_provider_payment_status(code: Optional[str]) -> InvoiceStatus:
    """Translate a payment provider status code; unknown codes are pending."""
    code = (code or "").upper()
    if code in PROVIDER_PAYMENT_STATUS_MAP:
        return PROVIDER_PAYMENT_STATUS_MAP[code]
    if code.startswith("CHARGEBACK_"):
        return InvoiceStatus.CHARGEBACK
    return InvoiceStatus.PENDING


def map_signature_status(code: Optional[str]) -> ContractStatus:
    """Translate an e-signature document status; anything unsigned is still 'sent'."""
    return SIGNATURE_STATUS_MAP.get((code or "").lower(), ContractStatus.SENT)
