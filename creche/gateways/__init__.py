"""
Third-party integrations.

Provider clients (payments, e-signature, CRM pipeline) and the services that
mirror their results into local tables.
"""

from creche.gateways.exceptions import (
    IntegrationError,
    IntegrationNotConfigured,
    PaymentProviderError,
    SignatureProviderError,
    CrmError,
)
from creche.gateways.asaas import AsaasClient
from creche.gateways.zapsign import ZapSignClient
from creche.gateways.ghl import GhlClient, build_board
from creche.gateways.payments import PaymentService
from creche.gateways.signatures import ContractService

__all__ = [
    "IntegrationError",
    "IntegrationNotConfigured",
    "PaymentProviderError",
    "SignatureProviderError",
    "CrmError",
    "AsaasClient",
    "ZapSignClient",
    "GhlClient",
    "build_board",
    "PaymentService",
    "ContractService",
]
