"""
Discount coupon API endpoints.

Coupons are managed by admins. Validation is open to any signed-in user
(enrollment forms quote the discounted price) and never counts a use;
redeeming does.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import (
    CouponCreate,
    CouponUpdate,
    CouponResponse,
    CouponValidationRequest,
    CouponValidationResponse,
)
from creche.api.auth import get_current_user, require_admin
from creche.core.pricing import (
    apply_discount,
    calculate_discount,
    normalize_coupon_code,
    validate_coupon,
    validate_coupon_values,
)
from creche.core.statuses import coupon_status
from creche.db.connection import get_db_session
from creche.db.models import DiscountCoupon, User
from creche.db.repositories import CouponRepository
from creche.utils.error_utils import CouponError


router = APIRouter()


def to_coupon_response(coupon: DiscountCoupon, now: datetime = None) -> CouponResponse:
    """Coupon with its status computed at ``now``."""
    response = CouponResponse.model_validate(coupon)
    current = coupon_status(coupon, now)
    response.status = current.value
    response.status_label = current.label
    return response


def _get_coupon_or_404(repo: CouponRepository, coupon_id: int) -> DiscountCoupon:
    coupon = repo.get_by_id(coupon_id)
    if not coupon:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Coupon {coupon_id} not found",
        )
    return coupon


@router.post("/", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
def create_coupon(
    coupon: CouponCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Create a discount coupon; codes are unique and stored uppercase."""
    validate_coupon_values(coupon.discount_type, coupon.discount_value)
    repo = CouponRepository(db)
    if repo.get_by_code(coupon.code):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Coupon {coupon.code} already exists",
        )

    try:
        new_coupon = repo.create(current_uses=0, **coupon.model_dump())
        db.commit()
        db.refresh(new_coupon)
        return to_coupon_response(new_coupon)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create coupon: {str(e)}",
        )


@router.get("/", response_model=List[CouponResponse])
def list_coupons(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """List every coupon with its current status."""
    repo = CouponRepository(db)
    now = datetime.now(timezone.utc)
    return [to_coupon_response(c, now) for c in repo.get_all(limit=500, order_by=repo.model.code)]


@router.post("/validate", response_model=CouponValidationResponse)
def validate_coupon_code(
    request: CouponValidationRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """
    Check a code against a price and return the discounted price.

    Invalid codes are reported in the body (``valid: false`` with the
    reason), never as an HTTP error.
    """
    code = normalize_coupon_code(request.code)
    price = Decimal(str(request.price))
    coupon = CouponRepository(db).get_by_code(code)

    try:
        if coupon is None:
            raise CouponError("Cupom inválido ou inativo")
        validate_coupon(coupon, class_type=request.class_type, plan_type=request.plan_type)
    except CouponError as e:
        return CouponValidationResponse(valid=False, code=code, reason=e.message, final_price=price)

    return CouponValidationResponse(
        valid=True,
        code=code,
        discount=calculate_discount(price, coupon.discount_type, coupon.discount_value),
        final_price=apply_discount(price, coupon.discount_type, coupon.discount_value),
    )


@router.get("/{coupon_id}", response_model=CouponResponse)
def get_coupon(
    coupon_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    return to_coupon_response(_get_coupon_or_404(CouponRepository(db), coupon_id))


@router.put("/{coupon_id}", response_model=CouponResponse)
def update_coupon(
    coupon_id: int,
    coupon_update: CouponUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Update a coupon; the resulting type/value pair must still be valid."""
    repo = CouponRepository(db)
    existing = _get_coupon_or_404(repo, coupon_id)

    update_data = {k: v for k, v in coupon_update.model_dump().items() if v is not None}
    validate_coupon_values(
        update_data.get("discount_type", existing.discount_type),
        update_data.get("discount_value", existing.discount_value),
    )

    try:
        updated = repo.update(coupon_id, **update_data)
        db.commit()
        db.refresh(updated)
        return to_coupon_response(updated)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update coupon: {str(e)}",
        )


@router.post("/{coupon_id}/redeem", response_model=CouponResponse)
def redeem_coupon(
    coupon_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Count one use of a coupon that is currently valid."""
    repo = CouponRepository(db)
    coupon = _get_coupon_or_404(repo, coupon_id)
    validate_coupon(coupon)

    try:
        coupon = repo.increment_uses(coupon)
        db.commit()
        db.refresh(coupon)
        return to_coupon_response(coupon)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to redeem coupon: {str(e)}",
        )


@router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = CouponRepository(db)
    _get_coupon_or_404(repo, coupon_id)

    try:
        repo.delete(coupon_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete coupon: {str(e)}",
        )
