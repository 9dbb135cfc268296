"""
Child CRUD API endpoints.

Provides REST API for enrolled children and their links to parent accounts.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creche.api.schemas import (
    ChildCreate,
    ChildUpdate,
    ChildResponse,
    ParentLinkCreate,
    UserResponse,
)
from creche.api.auth import ensure_child_access, get_current_user, is_staff, require_staff
from creche.core.constants import ClassType
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import ChildRepository


router = APIRouter()


def _get_child_or_404(repo: ChildRepository, child_id: int):
    child = repo.get_by_id(child_id)
    if not child:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {child_id} not found",
        )
    return child


@router.post("/", response_model=ChildResponse, status_code=status.HTTP_201_CREATED)
def create_child(
    child: ChildCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Enroll a new child."""
    repo = ChildRepository(db)

    try:
        new_child = repo.create(**child.model_dump())
        db.commit()
        db.refresh(new_child)
        return new_child
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create child: {str(e)}",
        )


@router.get("/", response_model=List[ChildResponse])
def list_children(
    name: Optional[str] = Query(None, description="Case-insensitive name filter"),
    class_type: Optional[ClassType] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """
    List children.

    Staff see every child; parents see only their own.
    """
    repo = ChildRepository(db)
    if not is_staff(current_user):
        return repo.get_by_parent(current_user.id)
    return repo.search(name=name, class_type=class_type.value if class_type else None)


@router.get("/allergies", response_model=List[ChildResponse])
def list_children_with_allergies(
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Children with allergies or dietary restrictions, for the kitchen."""
    return ChildRepository(db).get_with_allergies()


@router.get("/{child_id}", response_model=ChildResponse)
def get_child(
    child_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Get a single child by ID."""
    repo = ChildRepository(db)
    child = _get_child_or_404(repo, child_id)
    ensure_child_access(db, current_user, child_id)
    return child


@router.put("/{child_id}", response_model=ChildResponse)
def update_child(
    child_id: int,
    child_update: ChildUpdate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Update an existing child."""
    repo = ChildRepository(db)
    _get_child_or_404(repo, child_id)

    try:
        update_data = {k: v for k, v in child_update.model_dump().items() if v is not None}
        updated = repo.update(child_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update child: {str(e)}",
        )


@router.delete("/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_child(
    child_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Delete a child and everything recorded about them."""
    repo = ChildRepository(db)
    _get_child_or_404(repo, child_id)

    try:
        repo.delete(child_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete child: {str(e)}",
        )


# ----------------------------------------------------------------------
# Parent links
# ----------------------------------------------------------------------


@router.get("/{child_id}/parents", response_model=List[UserResponse])
def list_parents(
    child_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Parent accounts linked to a child."""
    repo = ChildRepository(db)
    _get_child_or_404(repo, child_id)
    ensure_child_access(db, current_user, child_id)
    return repo.get_parents(child_id)


@router.post("/{child_id}/parents", status_code=status.HTTP_201_CREATED)
def link_parent(
    child_id: int,
    link: ParentLinkCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Link a parent account to a child (idempotent)."""
    repo = ChildRepository(db)
    _get_child_or_404(repo, child_id)
    if not db.query(User).filter_by(id=link.parent_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {link.parent_id} not found",
        )

    try:
        parent_link = repo.link_parent(child_id, link.parent_id, link.relationship_type)
        db.commit()
        return {
            "child_id": parent_link.child_id,
            "parent_id": parent_link.parent_id,
            "relationship_type": parent_link.relationship_type,
        }
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to link parent: {str(e)}",
        )


@router.delete("/{child_id}/parents/{parent_id}", status_code=status.HTTP_204_NO_CONTENT)
def unlink_parent(
    child_id: int,
    parent_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Remove a parent link."""
    repo = ChildRepository(db)
    if not repo.unlink_parent(child_id, parent_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {parent_id} is not linked to child {child_id}",
        )
    db.commit()
