"""
Payment provider client (Asaas REST API v3).

Thin wrapper over the endpoints the school uses: customers, subscriptions,
payments (charges), PIX codes and the account balance. Mirroring results
into local tables is done by :mod:`creche.gateways.payments`.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from creche.gateways.exceptions import IntegrationNotConfigured, PaymentProviderError
from creche.gateways.http import send

logger = logging.getLogger(__name__)

ASAAS_DEFAULT_BASE_URL = "https://api.asaas.com/v3"
PAGE_SIZE = 100


@dataclass
class AsaasClient:
    """
    Asaas API client.

    Attributes
    ----------
    api_key : str, optional
        Account access token; read from ASAAS_API_KEY when omitted.
    base_url : str, optional
        API root; read from ASAAS_BASE_URL, defaults to production.
    """

    api_key: Optional[str] = None
    base_url: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        key = self.api_key or os.getenv("ASAAS_API_KEY")
        if not key:
            raise IntegrationNotConfigured("ASAAS_API_KEY is not configured")
        return {"access_token": key, "Content-Type": "application/json"}

    def _url(self, path: str) -> str:
        base = self.base_url or os.getenv("ASAAS_BASE_URL") or ASAAS_DEFAULT_BASE_URL
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    def _call(self, method: str, path: str, action: str, **kwargs) -> Any:
        return send(
            method,
            self._url(path),
            headers=self._headers(),
            error_cls=PaymentProviderError,
            action=action,
            **kwargs,
        )

    # Customers

    def create_customer(
        self,
        name: str,
        cpf_cnpj: Optional[str],
        email: Optional[str] = None,
        phone: Optional[str] = None,
        external_reference: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "name": name,
            "cpfCnpj": cpf_cnpj,
            "email": email,
            "mobilePhone": phone,
            "externalReference": external_reference,
        }
        return self._call("post", "/customers", "create customer", json=_drop_none(payload))

    # Subscriptions

    def create_subscription(
        self,
        customer_id: str,
        value: float,
        next_due_date: str,
        description: str,
        end_date: Optional[str] = None,
        external_reference: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "customer": customer_id,
            "billingType": "UNDEFINED",
            "cycle": "MONTHLY",
            "value": value,
            "nextDueDate": next_due_date,
            "description": description,
            "endDate": end_date,
            "externalReference": external_reference,
        }
        return self._call("post", "/subscriptions", "create subscription", json=_drop_none(payload))

    def cancel_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return self._call("delete", f"/subscriptions/{subscription_id}", "cancel subscription")

    # Payments

    def create_payment(
        self,
        customer_id: str,
        value: float,
        due_date: str,
        description: str,
        installment_count: int = 1,
        external_reference: Optional[str] = None,
        billing_type: str = "UNDEFINED",
    ) -> Dict[str, Any]:
        """
        Create a charge. With more than one installment the provider creates
        the whole installment plan from the total and returns the first payment.
        """
        payload: Dict[str, Any] = {
            "customer": customer_id,
            "billingType": billing_type,
            "dueDate": due_date,
            "description": description,
            "externalReference": external_reference,
        }
        if installment_count > 1:
            payload["installmentCount"] = installment_count
            payload["totalValue"] = value
        else:
            payload["value"] = value
        return self._call("post", "/payments", "create payment", json=_drop_none(payload))

    def get_payment(self, payment_id: str) -> Dict[str, Any]:
        return self._call("get", f"/payments/{payment_id}", "get payment")

    def get_pix_qr_code(self, payment_id: str) -> Dict[str, Any]:
        return self._call("get", f"/payments/{payment_id}/pixQrCode", "get PIX code")

    def list_installment_payments(self, installment_id: str) -> List[Dict[str, Any]]:
        data = self._call("get", "/payments", "list installment payments", params={"installment": installment_id})
        return data.get("data", [])

    def list_payments(self, **filters) -> Iterator[Dict[str, Any]]:
        """Iterate over every payment, following offset pagination."""
        offset = 0
        while True:
            params = {"offset": offset, "limit": PAGE_SIZE, **filters}
            data = self._call("get", "/payments", "list payments", params=params)
            yield from data.get("data", [])
            if not data.get("hasMore"):
                break
            offset += PAGE_SIZE

    # Finance

    def get_balance(self) -> float:
        data = self._call("get", "/finance/balance", "get balance")
        return float(data.get("balance") or 0)


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}
