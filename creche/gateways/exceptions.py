"""
Custom exceptions for the third-party integrations.

This module defines the errors raised when a remote provider rejects a call
or when an integration is used without being configured.
"""

from creche.utils.error_utils import CrecheError


class IntegrationError(CrecheError):
    """
    Base class for integration errors.

    All provider exceptions inherit from this class to allow grouped
    exception handling in the API layer.
    """


class IntegrationNotConfigured(IntegrationError):
    """Raised when the credentials of a provider are missing."""


class PaymentProviderError(IntegrationError):
    """Raised when the payment provider rejects or fails a call."""


class SignatureProviderError(IntegrationError):
    """Raised when the e-signature provider rejects or fails a call."""


class CrmError(IntegrationError):
    """Raised when the CRM pipeline API rejects or fails a call."""
