"""
Parent/school chat endpoints.

Conversations are per child. The parent channel is shared by the child's
parents and the staff; the staff channel is internal.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import MessageCreate, MessageResponse
from creche.api.auth import ensure_child_access, get_current_user, is_staff
from creche.core.constants import MessageChannel
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import ChildRepository, MessageRepository


router = APIRouter()


def _check_channel(user: User, channel: Optional[str]):
    if channel == MessageChannel.STAFF.value and not is_staff(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The staff channel is internal",
        )


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    message: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Post a message in a child's conversation."""
    if not ChildRepository(db).exists(id=message.child_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {message.child_id} not found",
        )
    ensure_child_access(db, current_user, message.child_id)
    _check_channel(current_user, message.channel_type)
    repo = MessageRepository(db)

    try:
        new_message = repo.create(sender_id=current_user.id, **message.model_dump())
        db.commit()
        db.refresh(new_message)
        return new_message
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send message: {str(e)}",
        )


@router.get("/child/{child_id}", response_model=List[MessageResponse])
def get_conversation(
    child_id: int,
    channel_type: MessageChannel = MessageChannel.PARENT,
    since: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Messages about a child, oldest first; ``since`` returns only newer ones."""
    ensure_child_access(db, current_user, child_id)
    _check_channel(current_user, channel_type.value)
    return MessageRepository(db).get_conversation(child_id, channel_type.value, since)


@router.post("/child/{child_id}/read")
def mark_conversation_read(
    child_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Mark every message the current user received in the conversation as read."""
    ensure_child_access(db, current_user, child_id)
    updated = MessageRepository(db).mark_read(child_id, current_user.id)
    db.commit()
    return {"updated": updated}


@router.get("/child/{child_id}/unread")
def count_unread(
    child_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Number of unread messages for the current user in the conversation."""
    ensure_child_access(db, current_user, child_id)
    return {"unread": MessageRepository(db).count_unread(child_id, current_user.id)}


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Delete a message; senders delete their own, staff any."""
    repo = MessageRepository(db)
    existing = repo.get_by_id(message_id)
    if not existing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Message {message_id} not found",
        )
    if existing.sender_id != current_user.id and not is_staff(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this message",
        )

    try:
        repo.delete(message_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete message: {str(e)}",
        )
