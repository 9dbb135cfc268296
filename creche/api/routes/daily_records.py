"""
Daily record (agenda) API endpoints.

One record per child per day: meals, sleep, hygiene, mood, health and notes.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creche.api.schemas import DailyRecordCreate, DailyRecordUpdate, DailyRecordResponse
from creche.api.auth import ensure_child_access, get_current_user, is_staff, require_staff
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import ChildRepository, DailyRecordRepository


router = APIRouter()


@router.post("/", response_model=DailyRecordResponse, status_code=status.HTTP_201_CREATED)
def save_daily_record(
    record: DailyRecordCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Create the day's record for a child, or overwrite the existing one."""
    if not ChildRepository(db).exists(id=record.child_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {record.child_id} not found",
        )
    repo = DailyRecordRepository(db)

    try:
        fields = record.model_dump(exclude={"child_id", "record_date"})
        saved = repo.upsert(record.child_id, record.record_date, teacher_id=current_user.id, **fields)
        db.commit()
        db.refresh(saved)
        return saved
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save daily record: {str(e)}",
        )


@router.get("/", response_model=List[DailyRecordResponse])
def list_daily_records(
    record_date: date,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """All records of a day, for the class overview."""
    return DailyRecordRepository(db).get_by_date(record_date)


@router.get("/child/{child_id}", response_model=List[DailyRecordResponse])
def get_child_records(
    child_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Records of one child, newest first."""
    ensure_child_access(db, current_user, child_id)
    return DailyRecordRepository(db).get_by_child(child_id, start, end)


@router.put("/{record_id}", response_model=DailyRecordResponse)
def update_daily_record(
    record_id: int,
    record_update: DailyRecordUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """
    Update a record.

    Parents may only fill in their own notes on their child's record.
    """
    repo = DailyRecordRepository(db)
    existing = repo.get_by_id(record_id)
    if not existing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Daily record {record_id} not found",
        )
    ensure_child_access(db, current_user, existing.child_id)

    update_data = {k: v for k, v in record_update.model_dump().items() if v is not None}
    if not is_staff(current_user) and set(update_data) - {"parent_notes"}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Parents can only update parent_notes",
        )

    try:
        updated = repo.update(record_id, **update_data)
        db.commit()
        db.refresh(updated)
        return updated
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update daily record: {str(e)}",
        )


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_daily_record(
    record_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Delete a daily record."""
    repo = DailyRecordRepository(db)
    if not repo.get_by_id(record_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Daily record {record_id} not found",
        )

    try:
        repo.delete(record_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete daily record: {str(e)}",
        )
