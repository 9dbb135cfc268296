"""
Payment orchestration: provider calls mirrored into local tables.

Each operation performs the remote call first and then writes the result
through the repositories of the current session. Writes are flushed, never
committed; the caller owns the transaction. A failure half-way through an
operation is not compensated.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from creche.core.constants import (
    DEFAULT_BILLING_DAY,
    DEFAULT_SUBSCRIPTION_DESCRIPTION,
    PAYMENT_REMINDER_DAYS,
    InvoiceStatus,
    SubscriptionStatus,
)
from creche.core.pricing import next_due_date, split_installments
from creche.core.statuses import map_provider_payment_status, payment_reminder
from creche.db.models import Child, Invoice, Subscription, User
from creche.db.repositories import (
    InvoiceRepository,
    NotificationRepository,
    PaymentCustomerRepository,
    PaymentNotificationLogRepository,
    SubscriptionRepository,
)
from creche.gateways.asaas import AsaasClient
from creche.gateways.exceptions import PaymentProviderError
from creche.utils.date_utils import format_date_br, parse_date
from creche.utils.format_utils import format_brl, only_digits

logger = logging.getLogger(__name__)

NOTIFY_ON_STATUS = {
    InvoiceStatus.PAID.value: ("Pagamento confirmado", "O pagamento de {description} ({value}) foi confirmado."),
    InvoiceStatus.OVERDUE.value: ("Pagamento vencido", "A cobrança {description} ({value}) venceu em {due_date}."),
    InvoiceStatus.REFUNDED.value: ("Pagamento estornado", "O pagamento de {description} ({value}) foi estornado."),
}

# kind -> (title, message, notification type)
REMINDERS = {
    "overdue": (
        "Pagamento vencido",
        "Sua mensalidade de {value} venceu em {due_date}. Regularize para evitar pendências.",
        "payment_overdue",
    ),
    "due_soon": (
        "Pagamento próximo",
        "Sua mensalidade de {value} vence em {due_date}. Pague agora pelo app!",
        "payment_reminder",
    ),
}


class PaymentService:
    """
    Billing operations backed by the payment provider.

    Parameters
    ----------
    session : Session
        Database session of the current request.
    client : AsaasClient, optional
        Provider client; a default client configured from the environment
        is used when omitted.
    """

    def __init__(self, session: Session, client: Optional[AsaasClient] = None):
        self.session = session
        self.client = client or AsaasClient()
        self.invoices = InvoiceRepository(session)
        self.subscriptions = SubscriptionRepository(session)
        self.customers = PaymentCustomerRepository(session)
        self.notifications = NotificationRepository(session)
        self.reminder_log = PaymentNotificationLogRepository(session)

    def ensure_customer(self, parent: User) -> str:
        """
        Return the parent's provider customer id, creating the customer once.
        """
        existing = self.customers.get_by_user(parent.id)
        if existing:
            return existing.provider_customer_id

        data = self.client.create_customer(
            name=parent.full_name,
            cpf_cnpj=only_digits(parent.cpf),
            email=parent.email,
            phone=only_digits(parent.phone),
            external_reference=str(parent.id),
        )
        self.customers.create(user_id=parent.id, provider_customer_id=data["id"])
        logger.info("Created payment customer %s for user %s", data["id"], parent.id)
        return data["id"]

    def link_customer(self, parent: User, provider_customer_id: str):
        """Attach an existing provider customer to a user."""
        existing = self.customers.get_by_user(parent.id)
        if existing:
            existing.provider_customer_id = provider_customer_id
            self.session.flush()
            return existing
        return self.customers.create(user_id=parent.id, provider_customer_id=provider_customer_id)

    def create_subscription(
        self,
        child: Child,
        parent: User,
        value: float,
        billing_day: int = DEFAULT_BILLING_DAY,
        description: Optional[str] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Subscription:
        """Create a monthly subscription at the provider and store it as active."""
        customer_id = self.ensure_customer(parent)
        description = description or DEFAULT_SUBSCRIPTION_DESCRIPTION
        first_due = next_due_date(billing_day, today)

        data = self.client.create_subscription(
            customer_id=customer_id,
            value=float(value),
            next_due_date=first_due.isoformat(),
            description=description,
            end_date=end_date.isoformat() if end_date else None,
            external_reference=str(child.id),
        )
        subscription = self.subscriptions.create(
            child_id=child.id,
            parent_id=parent.id,
            provider_subscription_id=data["id"],
            description=description,
            value=value,
            billing_day=billing_day,
            status=SubscriptionStatus.ACTIVE.value,
            end_date=end_date,
        )
        logger.info("Created subscription %s for child %s", data["id"], child.id)
        return subscription

    def cancel_subscription(self, subscription: Subscription) -> Subscription:
        """Cancel at the provider (when mirrored there) and mark the local row cancelled."""
        if subscription.provider_subscription_id:
            self.client.cancel_subscription(subscription.provider_subscription_id)
        subscription.status = SubscriptionStatus.CANCELLED.value
        self.session.flush()
        logger.info("Cancelled subscription %s", subscription.id)
        return subscription

    def create_invoice(
        self,
        child: Child,
        parent: User,
        value: float,
        due_date: date,
        description: str,
        installment_count: int = 1,
    ) -> List[Invoice]:
        """
        Create a charge, optionally split into installments.

        The provider creates the whole installment plan; the first installment
        is stored right away and the others are fetched and stored after it.
        If fetching the remaining installments fails, the invoices stored so
        far are kept and returned.
        """
        plan = split_installments(value, max(installment_count, 1), due_date, description)
        customer_id = self.ensure_customer(parent)
        data = self.client.create_payment(
            customer_id=customer_id,
            value=float(value),
            due_date=due_date.isoformat(),
            description=description,
            installment_count=installment_count,
            external_reference=str(child.id),
        )

        count = len(plan)
        first = self._store_payment(child, parent, data, plan[0])
        created = [first]

        if count > 1 and data.get("installment"):
            try:
                remaining = self.client.list_installment_payments(data["installment"])
            except PaymentProviderError:
                logger.warning("Stored 1/%s installments for payment %s; the rest could not be fetched", count, data["id"])
                return created
            remaining = sorted(
                (p for p in remaining if p.get("id") != data["id"]),
                key=lambda p: p.get("dueDate") or "",
            )
            for number, payment in enumerate(remaining[: count - 1], start=2):
                created.append(self._store_payment(child, parent, payment, plan[number - 1]))

        return created

    def _store_payment(
        self,
        child: Child,
        parent: User,
        payment: Dict[str, Any],
        installment: Dict[str, Any],
    ) -> Invoice:
        invoice = self.invoices.create(
            child_id=child.id,
            parent_id=parent.id,
            provider_payment_id=payment["id"],
            description=installment["description"],
            value=payment.get("value") or installment["value"],
            due_date=parse_date(payment["dueDate"]),
            status=map_provider_payment_status(payment.get("status")).value,
            invoice_url=payment.get("invoiceUrl"),
            bank_slip_url=payment.get("bankSlipUrl"),
            pix_code=self._fetch_pix_code(payment["id"]),
        )
        return invoice

    def _fetch_pix_code(self, payment_id: str) -> Optional[str]:
        """PIX copy-and-paste code, or None when the provider has none yet."""
        try:
            return self.client.get_pix_qr_code(payment_id).get("payload")
        except PaymentProviderError:
            logger.info("No PIX code available for payment %s", payment_id)
            return None

    def refresh_invoice(self, invoice: Invoice) -> Invoice:
        """Poll the provider for the invoice's current status and PIX code."""
        if not invoice.provider_payment_id:
            return invoice
        data = self.client.get_payment(invoice.provider_payment_id)
        self._apply_payment(invoice, data)
        if invoice.status in (InvoiceStatus.PENDING.value, InvoiceStatus.OVERDUE.value) and not invoice.pix_code:
            invoice.pix_code = self._fetch_pix_code(invoice.provider_payment_id)
        self.session.flush()
        return invoice

    def get_balance(self) -> float:
        return self.client.get_balance()

    def sync_invoices(self) -> Dict[str, int]:
        """
        Update every mirrored invoice from the provider's payment list.

        Returns:
            Counts of payments seen, invoices updated and unknown payments
        """
        seen = updated = unknown = 0
        for payment in self.client.list_payments():
            seen += 1
            invoice = self.invoices.get_by_provider_id(payment.get("id"))
            if invoice is None:
                unknown += 1
                continue
            if self._apply_payment(invoice, payment):
                updated += 1
        self.session.flush()
        logger.info("Payment sync: %s seen, %s updated, %s unknown", seen, updated, unknown)
        return {"seen": seen, "updated": updated, "unknown": unknown}

    def handle_webhook(self, event: Dict[str, Any]) -> Optional[Invoice]:
        """
        Apply a provider webhook event.

        Only PAYMENT_* events for payments mirrored locally are applied;
        anything else is acknowledged and ignored.
        """
        name = event.get("event") or ""
        payment = event.get("payment") or {}
        if not name.startswith("PAYMENT_") or not payment.get("id"):
            logger.info("Ignoring payment webhook event %s", name or "<empty>")
            return None

        invoice = self.invoices.get_by_provider_id(payment["id"])
        if invoice is None:
            logger.info("Webhook %s for unknown payment %s", name, payment["id"])
            return None

        self._apply_payment(invoice, payment)
        self.session.flush()
        return invoice

    def _apply_payment(self, invoice: Invoice, payment: Dict[str, Any]) -> bool:
        """Copy provider fields onto the invoice; notify the parent on a status change."""
        new_status = map_provider_payment_status(payment.get("status")).value
        changed = new_status != invoice.status

        invoice.status = new_status
        if payment.get("paymentDate"):
            invoice.payment_date = parse_date(payment["paymentDate"])
        if payment.get("invoiceUrl"):
            invoice.invoice_url = payment["invoiceUrl"]
        if payment.get("bankSlipUrl"):
            invoice.bank_slip_url = payment["bankSlipUrl"]

        if changed and new_status in NOTIFY_ON_STATUS:
            title, template = NOTIFY_ON_STATUS[new_status]
            self.notifications.notify(
                invoice.parent_id,
                title,
                template.format(
                    description=invoice.description or "mensalidade",
                    value=format_brl(invoice.value),
                    due_date=format_date_br(invoice.due_date),
                ),
                type="payment",
                link=f"/invoices/{invoice.id}",
            )
        return changed

    def send_payment_reminders(self, today: Optional[date] = None) -> Dict[str, int]:
        """
        Notify parents about unpaid invoices that are overdue or due soon.

        An invoice is due soon when it falls within PAYMENT_REMINDER_DAYS of
        ``today``. Each kind of reminder goes to the parent at most once per
        invoice; sent reminders are recorded in the notification log.

        Returns:
            Counts of invoices checked and reminders sent by kind
        """
        today = today or date.today()
        checked = due_soon = overdue = 0
        for invoice in self.invoices.get_unpaid_due_until(today + timedelta(days=PAYMENT_REMINDER_DAYS)):
            checked += 1
            kind = payment_reminder(invoice.due_date, today)
            if kind is None or self.reminder_log.was_sent(invoice.id, kind, invoice.parent_id):
                continue

            title, template, notification_type = REMINDERS[kind]
            self.notifications.notify(
                invoice.parent_id,
                title,
                template.format(value=format_brl(invoice.value), due_date=format_date_br(invoice.due_date)),
                type=notification_type,
                link=f"/invoices/{invoice.id}",
            )
            self.reminder_log.record(invoice.id, kind, invoice.parent_id)
            if kind == "overdue":
                overdue += 1
            else:
                due_soon += 1

        self.session.flush()
        logger.info("Payment reminders: %s checked, %s due soon, %s overdue", checked, due_soon, overdue)
        return {"checked": checked, "due_soon_sent": due_soon, "overdue_sent": overdue}
