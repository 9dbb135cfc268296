"""
Enrollment contract API endpoints.

A contract is drafted from the child's enrollment (class, shift, plan and
the tuition price, with an optional discount coupon), sent to the parent
through the e-signature provider, and kept in sync through webhooks or
manual polling.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creche.api.schemas import ContractCreate, ContractUpdate, ContractResponse
from creche.api.auth import get_current_user, is_staff, require_admin
from creche.core.constants import ContractStatus
from creche.core.pricing import apply_discount, monthly_price, validate_coupon
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import ChildRepository, ContractRepository, CouponRepository
from creche.gateways import ContractService, IntegrationError
from creche.utils.error_utils import CouponError


router = APIRouter()


def _get_contract_or_404(repo: ContractRepository, contract_id: int):
    contract = repo.get_by_id(contract_id)
    if not contract:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Contract {contract_id} not found",
        )
    return contract


@router.post("/", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
def create_contract(
    contract: ContractCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """
    Draft a contract.

    Class, shift and plan default to the child's enrollment; the monthly
    value defaults to the tuition price, discounted by ``coupon_code`` when
    given. Redeeming the coupon counts one use.
    """
    children = ChildRepository(db)
    child = children.get_by_id(contract.child_id)
    if not child:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {contract.child_id} not found",
        )

    parent_id = contract.parent_id
    if parent_id is None:
        parent = children.get_primary_parent(child.id)
        if not parent:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Child {child.id} has no linked parent",
            )
        parent_id = parent.id
    elif not children.is_parent_of(parent_id, child.id):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"User {parent_id} is not a parent of child {child.id}",
        )

    class_type = contract.class_type or child.class_type
    shift_type = contract.shift_type or child.shift_type
    plan_type = contract.plan_type or child.plan_type
    value = contract.monthly_value or monthly_price(class_type, plan_type, child.birth_date)

    coupons = CouponRepository(db)
    coupon = None
    if contract.coupon_code:
        coupon = coupons.get_by_code(contract.coupon_code)
        if coupon is None:
            raise CouponError("Cupom inválido ou inativo")
        validate_coupon(coupon, class_type=class_type, plan_type=plan_type)
        value = apply_discount(value, coupon.discount_type, coupon.discount_value)

    repo = ContractRepository(db)
    try:
        new_contract = repo.create(
            child_id=child.id,
            parent_id=parent_id,
            class_type=class_type,
            shift_type=shift_type,
            plan_type=plan_type,
            monthly_value=value,
            status=ContractStatus.DRAFT.value,
        )
        if coupon is not None:
            coupons.increment_uses(coupon)
        db.commit()
        db.refresh(new_contract)
        return new_contract
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create contract: {str(e)}",
        )


@router.get("/", response_model=List[ContractResponse])
def list_contracts(
    child_id: Optional[int] = None,
    status_filter: Optional[ContractStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """List contracts; parents see only the ones addressed to them."""
    repo = ContractRepository(db)
    return repo.get_all(
        limit=500,
        order_by=repo.model.created_at.desc(),
        child_id=child_id,
        parent_id=None if is_staff(current_user) else current_user.id,
        status=status_filter.value if status_filter else None,
    )


@router.get("/{contract_id}", response_model=ContractResponse)
def get_contract(
    contract_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    contract = _get_contract_or_404(ContractRepository(db), contract_id)
    if not is_staff(current_user) and contract.parent_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this contract",
        )
    return contract


@router.put("/{contract_id}", response_model=ContractResponse)
def update_contract(
    contract_id: int,
    contract_update: ContractUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Update a draft contract."""
    repo = ContractRepository(db)
    existing = _get_contract_or_404(repo, contract_id)
    if existing.status != ContractStatus.DRAFT.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only draft contracts can be changed",
        )

    try:
        update_data = {k: v for k, v in contract_update.model_dump().items() if v is not None}
        updated = repo.update(contract_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update contract: {str(e)}",
        )


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract(
    contract_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = ContractRepository(db)
    _get_contract_or_404(repo, contract_id)

    try:
        repo.delete(contract_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete contract: {str(e)}",
        )


@router.post("/{contract_id}/send", response_model=ContractResponse)
def send_contract(
    contract_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Send the contract to the parent for signature."""
    contract = _get_contract_or_404(ContractRepository(db), contract_id)
    if contract.status not in (ContractStatus.DRAFT.value, ContractStatus.EXPIRED.value):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Contract {contract_id} is already {contract.status}",
        )

    try:
        contract = ContractService(db).send_contract(contract)
        db.commit()
        db.refresh(contract)
        return contract
    except IntegrationError:
        db.rollback()
        raise


@router.post("/{contract_id}/sync", response_model=ContractResponse)
def sync_contract(
    contract_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Poll the e-signature provider for the document status."""
    contract = _get_contract_or_404(ContractRepository(db), contract_id)

    try:
        contract = ContractService(db).sync_status(contract)
        db.commit()
        db.refresh(contract)
        return contract
    except IntegrationError:
        db.rollback()
        raise
