"""
School feed endpoints (photo and text posts).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creche.api.schemas import FeedPostCreate, FeedPostResponse
from creche.api.auth import get_current_user, require_staff
from creche.core.constants import ClassType
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import FeedPostRepository


router = APIRouter()


@router.post("/", response_model=FeedPostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    post: FeedPostCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Publish a feed post."""
    repo = FeedPostRepository(db)

    try:
        new_post = repo.create(created_by=current_user.id, **post.model_dump())
        db.commit()
        db.refresh(new_post)
        return new_post
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create post: {str(e)}",
        )


@router.get("/", response_model=List[FeedPostResponse])
def get_feed(
    class_type: Optional[ClassType] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Newest posts, optionally including those of one class."""
    return FeedPostRepository(db).get_feed(class_type.value if class_type else None, limit, offset)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Delete a feed post."""
    repo = FeedPostRepository(db)
    if not repo.get_by_id(post_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Post {post_id} not found",
        )

    try:
        repo.delete(post_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete post: {str(e)}",
        )
