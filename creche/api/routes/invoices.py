"""
Invoice API endpoints.

Invoices mirror payments at the payment provider. Charges created here are
sent to the provider first and stored locally with the provider's id; local
invoices without a provider charge can also be recorded by an admin.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creche.api.schemas import (
    ChargeCreate,
    CustomerLink,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceResponse,
)
from creche.api.auth import get_current_user, is_staff, require_admin
from creche.core.constants import InvoiceStatus
from creche.core.statuses import invoice_label, invoice_status, payment_reminder
from creche.db.connection import get_db_session
from creche.db.models import Invoice, User
from creche.db.repositories import ChildRepository, InvoiceRepository
from creche.gateways import IntegrationError, PaymentService
from creche.utils.error_utils import ValidationError


router = APIRouter()


def to_invoice_response(invoice: Invoice, today: Optional[date] = None) -> InvoiceResponse:
    """Invoice with its effective status, label and reminder."""
    response = InvoiceResponse.model_validate(invoice)
    effective = invoice_status(invoice.status, invoice.due_date, today)
    response.effective_status = effective
    response.status_label = invoice_label(effective.value)
    if effective == InvoiceStatus.PENDING:
        response.reminder = payment_reminder(invoice.due_date, today)
    elif effective == InvoiceStatus.OVERDUE:
        response.reminder = "overdue"
    return response


def _get_invoice_or_404(repo: InvoiceRepository, invoice_id: int) -> Invoice:
    invoice = repo.get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Invoice {invoice_id} not found",
        )
    return invoice


@router.get("/", response_model=List[InvoiceResponse])
def list_invoices(
    child_id: Optional[int] = None,
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    due_from: Optional[date] = None,
    due_to: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """
    List invoices, latest due date first.

    Parents only see invoices addressed to them.
    """
    repo = InvoiceRepository(db)
    parent_id = None if is_staff(current_user) else current_user.id
    invoices = repo.search(
        child_id=child_id,
        parent_id=parent_id,
        status=status_filter.value if status_filter else None,
        due_from=due_from,
        due_to=due_to,
    )
    return [to_invoice_response(invoice) for invoice in invoices]


@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_local_invoice(
    invoice: InvoiceCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Record an invoice without creating a provider charge."""
    if not ChildRepository(db).exists(id=invoice.child_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {invoice.child_id} not found",
        )
    repo = InvoiceRepository(db)

    try:
        new_invoice = repo.create(**invoice.model_dump())
        db.commit()
        db.refresh(new_invoice)
        return to_invoice_response(new_invoice)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create invoice: {str(e)}",
        )


@router.post("/charges", response_model=List[InvoiceResponse], status_code=status.HTTP_201_CREATED)
def create_charge(
    charge: ChargeCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """
    Create a charge at the payment provider for the child's primary parent.

    A charge split into installments yields one invoice per installment.
    """
    children = ChildRepository(db)
    child = children.get_by_id(charge.child_id)
    if not child:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {charge.child_id} not found",
        )
    parent = children.get_primary_parent(child.id)
    if not parent:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Child {child.id} has no linked parent to bill",
        )

    try:
        invoices = PaymentService(db).create_invoice(
            child,
            parent,
            value=float(charge.value),
            due_date=charge.due_date,
            description=charge.description,
            installment_count=charge.installment_count,
        )
        db.commit()
        return [to_invoice_response(invoice) for invoice in invoices]
    except (IntegrationError, ValidationError):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create charge: {str(e)}",
        )


@router.post("/sync")
def sync_invoices(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Update every mirrored invoice from the provider's payment list."""
    try:
        result = PaymentService(db).sync_invoices()
        db.commit()
        return result
    except IntegrationError:
        db.rollback()
        raise


@router.post("/reminders")
def send_payment_reminders(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Notify parents about overdue invoices and invoices due in the next few days."""
    result = PaymentService(db).send_payment_reminders()
    db.commit()
    return result


@router.get("/balance")
def get_balance(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Account balance at the payment provider."""
    return {"balance": PaymentService(db).get_balance()}


@router.post("/customers", status_code=status.HTTP_201_CREATED)
def link_customer(
    link: CustomerLink,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Attach an existing provider customer to a parent account."""
    parent = db.query(User).filter_by(id=link.parent_id).first()
    if not parent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {link.parent_id} not found",
        )

    try:
        customer = PaymentService(db).link_customer(parent, link.provider_customer_id)
        db.commit()
        return {"parent_id": customer.user_id, "provider_customer_id": customer.provider_customer_id}
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to link customer: {str(e)}",
        )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Get a single invoice by ID."""
    invoice = _get_invoice_or_404(InvoiceRepository(db), invoice_id)
    if not is_staff(current_user) and invoice.parent_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this invoice",
        )
    return to_invoice_response(invoice)


@router.post("/{invoice_id}/refresh", response_model=InvoiceResponse)
def refresh_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Poll the provider for the invoice's current status and PIX code."""
    invoice = _get_invoice_or_404(InvoiceRepository(db), invoice_id)
    if not is_staff(current_user) and invoice.parent_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this invoice",
        )

    try:
        invoice = PaymentService(db).refresh_invoice(invoice)
        db.commit()
        db.refresh(invoice)
        return to_invoice_response(invoice)
    except IntegrationError:
        db.rollback()
        raise


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    invoice_update: InvoiceUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Update an invoice, e.g. to record a payment made outside the provider."""
    repo = InvoiceRepository(db)
    _get_invoice_or_404(repo, invoice_id)

    try:
        update_data = {k: v for k, v in invoice_update.model_dump().items() if v is not None}
        updated = repo.update(invoice_id, **update_data)
        db.commit()
        db.refresh(updated)
        return to_invoice_response(updated)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update invoice: {str(e)}",
        )


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Delete a local invoice record (the provider charge is not touched)."""
    repo = InvoiceRepository(db)
    _get_invoice_or_404(repo, invoice_id)

    try:
        repo.delete(invoice_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete invoice: {str(e)}",
        )
