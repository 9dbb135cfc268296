"""
Tuition subscription API endpoints.

Subscriptions are created at the payment provider, which then issues one
charge per month on the billing day.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creche.api.schemas import SubscriptionCreate, SubscriptionUpdate, SubscriptionResponse
from creche.api.auth import require_admin
from creche.core.constants import SubscriptionStatus
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import ChildRepository, SubscriptionRepository
from creche.gateways import IntegrationError, PaymentService


router = APIRouter()


def _get_subscription_or_404(repo: SubscriptionRepository, subscription_id: int):
    subscription = repo.get_by_id(subscription_id)
    if not subscription:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subscription {subscription_id} not found",
        )
    return subscription


@router.post("/", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    subscription: SubscriptionCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Open a monthly subscription billed to the child's primary parent."""
    children = ChildRepository(db)
    child = children.get_by_id(subscription.child_id)
    if not child:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {subscription.child_id} not found",
        )
    parent = children.get_primary_parent(child.id)
    if not parent:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Child {child.id} has no linked parent to bill",
        )
    if SubscriptionRepository(db).get_active_for_child(child.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Child {child.id} already has an active subscription",
        )

    try:
        new_subscription = PaymentService(db).create_subscription(
            child,
            parent,
            value=subscription.value,
            billing_day=subscription.billing_day,
            description=subscription.description,
            end_date=subscription.end_date,
        )
        db.commit()
        db.refresh(new_subscription)
        return new_subscription
    except IntegrationError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create subscription: {str(e)}",
        )


@router.get("/", response_model=List[SubscriptionResponse])
def list_subscriptions(
    child_id: Optional[int] = None,
    status_filter: Optional[SubscriptionStatus] = Query(None, alias="status"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    repo = SubscriptionRepository(db)
    return repo.get_all(
        limit=500,
        child_id=child_id,
        status=status_filter.value if status_filter else None,
    )


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
def get_subscription(
    subscription_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    return _get_subscription_or_404(SubscriptionRepository(db), subscription_id)


@router.put("/{subscription_id}", response_model=SubscriptionResponse)
def update_subscription(
    subscription_id: int,
    subscription_update: SubscriptionUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Update the local subscription record."""
    repo = SubscriptionRepository(db)
    _get_subscription_or_404(repo, subscription_id)

    try:
        update_data = {k: v for k, v in subscription_update.model_dump().items() if v is not None}
        updated = repo.update(subscription_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update subscription: {str(e)}",
        )


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    subscription_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """Cancel the subscription at the provider and locally."""
    subscription = _get_subscription_or_404(SubscriptionRepository(db), subscription_id)

    try:
        subscription = PaymentService(db).cancel_subscription(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription
    except IntegrationError:
        db.rollback()
        raise
