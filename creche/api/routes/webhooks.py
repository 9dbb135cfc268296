"""
Provider webhook receivers.

Webhooks are not user-authenticated; each provider is checked with its own
shared secret when one is configured. Events that do not concern a
mirrored record are acknowledged and ignored so providers stop retrying.
"""

import hmac
import logging
import os
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from creche.db.connection import get_db_session
from creche.gateways import ContractService, PaymentService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/payments")
def payment_webhook(
    event: Dict[str, Any] = Body(...),
    asaas_access_token: Optional[str] = Header(None),
    db: Session = Depends(get_db_session),
):
    """Payment status changes from the payment provider."""
    expected = os.getenv("ASAAS_WEBHOOK_TOKEN")
    if expected and not hmac.compare_digest(asaas_access_token or "", expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook token",
        )

    invoice = PaymentService(db).handle_webhook(event)
    db.commit()
    return {"received": True, "invoice_id": invoice.id if invoice else None}


@router.post("/signatures")
def signature_webhook(
    payload: Dict[str, Any] = Body(...),
    x_webhook_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db_session),
):
    """Document events from the e-signature provider."""
    try:
        contract = ContractService(db).handle_webhook(
            payload,
            secret=x_webhook_secret,
            expected_secret=os.getenv("ZAPSIGN_WEBHOOK_SECRET"),
        )
    except PermissionError:
        logger.warning("Rejected signature webhook with an invalid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )
    db.commit()
    return {"received": True, "contract_id": contract.id if contract else None}
