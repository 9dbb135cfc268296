"""
In-app notification endpoints for the current user.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import NotificationResponse
from creche.api.auth import get_current_user
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import NotificationRepository


router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
def list_notifications(
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    return NotificationRepository(db).get_for_user(current_user.id, unread_only=unread_only)


@router.post("/read-all")
def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    updated = NotificationRepository(db).mark_all_read(current_user.id)
    db.commit()
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    repo = NotificationRepository(db)
    notification = repo.get_by_id(notification_id)
    if not notification or notification.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Notification {notification_id} not found",
        )
    notification = repo.update(notification_id, is_read=True)
    db.commit()
    db.refresh(notification)
    return notification
