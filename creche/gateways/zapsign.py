"""
E-signature provider client (ZapSign API v1).
"""

import base64
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from creche.gateways.exceptions import IntegrationNotConfigured, SignatureProviderError
from creche.gateways.http import send

ZAPSIGN_DEFAULT_BASE_URL = "https://api.zapsign.com.br/api/v1"


@dataclass
class ZapSignClient:
    """
    ZapSign API client.

    Attributes
    ----------
    api_token : str, optional
        Bearer token; read from ZAPSIGN_API_TOKEN when omitted.
    base_url : str, optional
        API root; read from ZAPSIGN_BASE_URL, defaults to production.
    """

    api_token: Optional[str] = None
    base_url: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        token = self.api_token or os.getenv("ZAPSIGN_API_TOKEN")
        if not token:
            raise IntegrationNotConfigured("ZAPSIGN_API_TOKEN is not configured")
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def _url(self, path: str) -> str:
        base = self.base_url or os.getenv("ZAPSIGN_BASE_URL") or ZAPSIGN_DEFAULT_BASE_URL
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    def _call(self, method: str, path: str, action: str, **kwargs) -> Any:
        return send(
            method,
            self._url(path),
            headers=self._headers(),
            error_cls=SignatureProviderError,
            action=action,
            **kwargs,
        )

    def create_document(
        self,
        name: str,
        external_id: str,
        pdf: Optional[bytes] = None,
        markdown_text: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a document to be signed.

        Either a ready PDF (sent base64 encoded) or markdown text that the
        provider renders itself.
        """
        if pdf is None and not markdown_text:
            raise ValueError("create_document needs a PDF or markdown text")
        payload = {
            "name": name,
            "lang": "pt-br",
            "external_id": external_id,
            "disable_signer_emails": False,
        }
        if pdf is not None:
            payload["base64_pdf"] = base64.b64encode(pdf).decode("ascii")
        else:
            payload["markdown_text"] = markdown_text
        return self._call("post", "/docs/", "create signature document", json=payload)

    def add_signer(
        self,
        doc_token: str,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "name": name,
            "email": email or "",
            "phone_country": "55",
            "phone_number": phone or "",
            "auth_mode": "assinaturaTela",
            "send_automatic_email": bool(email),
            "qualification": "Responsável Legal",
        }
        return self._call("post", f"/docs/{doc_token}/signers/", "add signer", json=payload)

    def get_document(self, doc_token: str) -> Dict[str, Any]:
        return self._call("get", f"/docs/{doc_token}/", "get signature document")
