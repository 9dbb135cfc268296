"""
Announcement API endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse
from creche.api.auth import ensure_child_access, get_current_user, require_staff
from creche.core.constants import ClassType
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import AnnouncementRepository


router = APIRouter()


@router.post("/", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
def create_announcement(
    announcement: AnnouncementCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Publish an announcement to all classes, one class or one child."""
    repo = AnnouncementRepository(db)

    try:
        new_announcement = repo.create(created_by=current_user.id, **announcement.model_dump())
        db.commit()
        db.refresh(new_announcement)
        return new_announcement
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create announcement: {str(e)}",
        )


@router.get("/", response_model=List[AnnouncementResponse])
def list_announcements(
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Every announcement, newest first, for management."""
    repo = AnnouncementRepository(db)
    return repo.get_all(limit=200, order_by=repo.model.created_at.desc())


@router.get("/active", response_model=List[AnnouncementResponse])
def list_active_announcements(
    class_type: Optional[ClassType] = None,
    child_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Announcements visible now to a class and/or child."""
    if child_id is not None:
        ensure_child_access(db, current_user, child_id)
    repo = AnnouncementRepository(db)
    return repo.get_active(class_type=class_type.value if class_type else None, child_id=child_id)


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
def update_announcement(
    announcement_id: int,
    announcement_update: AnnouncementUpdate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Update an announcement."""
    repo = AnnouncementRepository(db)
    if not repo.get_by_id(announcement_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Announcement {announcement_id} not found",
        )

    try:
        update_data = {k: v for k, v in announcement_update.model_dump().items() if v is not None}
        updated = repo.update(announcement_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update announcement: {str(e)}",
        )


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_announcement(
    announcement_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Delete an announcement."""
    repo = AnnouncementRepository(db)
    if not repo.get_by_id(announcement_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Announcement {announcement_id} not found",
        )

    try:
        repo.delete(announcement_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete announcement: {str(e)}",
        )
