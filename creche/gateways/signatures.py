"""
Enrollment contract signing through the e-signature provider.
"""

import hmac
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from dateutil.parser import isoparse
from sqlalchemy.orm import Session

from creche.core.constants import (
    CLASS_LABELS,
    DEFAULT_BILLING_DAY,
    PLAN_LABELS,
    SHIFT_LABELS,
    ContractStatus,
)
from creche.core.statuses import map_signature_status
from creche.db.models import EnrollmentContract
from creche.db.repositories import (
    ContractRepository,
    NotificationRepository,
    SubscriptionRepository,
)
from creche.gateways.exceptions import IntegrationError
from creche.gateways.payments import PaymentService
from creche.gateways.zapsign import ZapSignClient
from creche.utils.date_utils import format_date_br
from creche.utils.format_utils import format_brl

logger = logging.getLogger(__name__)

SIGNED_EVENTS = {"doc_signed", "signer_signed"}
EXPIRED_EVENTS = {"doc_expired"}


def render_contract_text(contract: EnrollmentContract, today: Optional[date] = None) -> str:
    """Plain markdown body of the enrollment contract."""
    today = today or date.today()
    child = contract.child
    parent = contract.parent
    return "\n".join([
        "# Contrato de Prestação de Serviços Educacionais",
        "",
        f"**Responsável:** {parent.full_name}" + (f" (CPF {parent.cpf})" if parent.cpf else ""),
        f"**Criança:** {child.full_name}, nascida em {format_date_br(child.birth_date)}",
        f"**Turma:** {CLASS_LABELS.get(contract.class_type, contract.class_type)}",
        f"**Turno:** {SHIFT_LABELS.get(contract.shift_type, contract.shift_type)}",
        f"**Plano:** {PLAN_LABELS.get(contract.plan_type, contract.plan_type)}",
        f"**Mensalidade:** {format_brl(contract.monthly_value)}, com vencimento todo dia {DEFAULT_BILLING_DAY}.",
        "",
        f"Vigência até 31/12/{today.year}.",
        "",
        f"Emitido em {format_date_br(today)}.",
    ])


class ContractService:
    """
    Sends enrollment contracts for signature and mirrors their status.

    Parameters
    ----------
    session : Session
        Database session of the current request.
    client : ZapSignClient, optional
        Provider client; configured from the environment when omitted.
    payments : PaymentService, optional
        Used to open the tuition subscription once a contract is signed.
    """

    def __init__(
        self,
        session: Session,
        client: Optional[ZapSignClient] = None,
        payments: Optional[PaymentService] = None,
    ):
        self.session = session
        self.client = client or ZapSignClient()
        self.payments = payments or PaymentService(session)
        self.contracts = ContractRepository(session)
        self.subscriptions = SubscriptionRepository(session)
        self.notifications = NotificationRepository(session)

    def send_contract(self, contract: EnrollmentContract, pdf: Optional[bytes] = None) -> EnrollmentContract:
        """
        Create the signature document with the parent as signer.

        Args:
            contract: Contract to send
            pdf: Ready PDF to upload; when omitted the provider renders the
                generated markdown text
        """
        name = f"Contrato de Matrícula - {contract.child.full_name}"
        document = self.client.create_document(
            name=name,
            external_id=str(contract.id),
            pdf=pdf,
            markdown_text=None if pdf is not None else render_contract_text(contract),
        )
        doc_token = document["token"]

        parent = contract.parent
        signer = self.client.add_signer(doc_token, parent.full_name, parent.email, parent.phone)

        contract.doc_token = doc_token
        contract.signer_token = signer.get("token")
        contract.sign_url = signer.get("sign_url")
        contract.status = ContractStatus.SENT.value
        contract.sent_at = datetime.now(timezone.utc)

        self.notifications.notify(
            parent.id,
            "Contrato disponível para assinatura",
            f"O contrato de matrícula de {contract.child.full_name} está pronto para assinatura.",
            type="contract",
            link=contract.sign_url,
        )
        self.session.flush()
        logger.info("Contract %s sent for signature (doc %s)", contract.id, doc_token)
        return contract

    def sync_status(self, contract: EnrollmentContract) -> EnrollmentContract:
        """Read the document status from the provider and store it when it changed."""
        if not contract.doc_token:
            return contract

        document = self.client.get_document(contract.doc_token)
        new_status = map_signature_status(document.get("status"))
        if new_status.value == contract.status:
            return contract

        signed_at = None
        signers = document.get("signers") or []
        if signers and signers[0].get("signed_at"):
            signed_at = isoparse(signers[0]["signed_at"])
        self._set_status(contract, new_status, signed_at)
        self.session.flush()
        return contract

    def handle_webhook(
        self,
        payload: Dict[str, Any],
        secret: Optional[str] = None,
        expected_secret: Optional[str] = None,
    ) -> Optional[EnrollmentContract]:
        """
        Apply a provider webhook.

        Raises:
            PermissionError: If a secret is expected and does not match
        """
        if expected_secret and not hmac.compare_digest(secret or "", expected_secret):
            raise PermissionError("Invalid webhook secret")

        event = (payload.get("event_type") or "").lower()
        if event in SIGNED_EVENTS:
            new_status = ContractStatus.SIGNED
        elif "refused" in event:
            new_status = ContractStatus.REFUSED
        elif event in EXPIRED_EVENTS:
            new_status = ContractStatus.EXPIRED
        else:
            logger.info("Ignoring signature webhook event %s", event or "<empty>")
            return None

        doc_token = payload.get("token") or (payload.get("doc") or {}).get("token")
        contract = self.contracts.get_by_doc_token(doc_token) if doc_token else None
        if contract is None:
            logger.info("Signature webhook %s for unknown document %s", event, doc_token)
            return None
        if contract.status == new_status.value:
            return contract

        self._set_status(contract, new_status, datetime.now(timezone.utc))
        if new_status == ContractStatus.SIGNED:
            self._open_subscription(contract)
        self.session.flush()
        return contract

    def _set_status(self, contract: EnrollmentContract, status: ContractStatus, signed_at: Optional[datetime]):
        contract.status = status.value
        if status == ContractStatus.SIGNED:
            contract.signed_at = signed_at or datetime.now(timezone.utc)
            message = f"O contrato de matrícula de {contract.child.full_name} foi assinado."
            self.notifications.notify(contract.parent_id, "Contrato assinado", message, type="contract")
            self.notifications.notify_admins("Contrato assinado", message, type="contract")
        logger.info("Contract %s is now %s", contract.id, status.value)

    def _open_subscription(self, contract: EnrollmentContract):
        """Start the tuition subscription for a freshly signed contract, once."""
        if self.subscriptions.get_active_for_child(contract.child_id):
            return
        today = date.today()
        try:
            self.payments.create_subscription(
                contract.child,
                contract.parent,
                value=float(contract.monthly_value),
                billing_day=DEFAULT_BILLING_DAY,
                end_date=date(today.year, 12, 31),
            )
        except IntegrationError:
            # Contract stays signed; the subscription can be created manually
            logger.exception("Could not open subscription for contract %s", contract.id)
