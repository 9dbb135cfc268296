"""
Attendance API endpoints: daily check-in, range summary and CSV export.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from creche.api.schemas import AttendanceCreate, AttendanceUpdate, AttendanceResponse, AttendanceSummary
from creche.api.auth import ensure_child_access, get_current_user, is_staff, require_staff
from creche.core.attendance import attendance_frame, attendance_summary
from creche.core.statuses import attendance_label
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import AttendanceRepository, ChildRepository


router = APIRouter()


def _to_response(row) -> AttendanceResponse:
    response = AttendanceResponse.model_validate(row)
    response.status_label = attendance_label(row.status)
    return response


def _require_staff_for_school_wide(user: User):
    if not is_staff(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="child_id is required",
        )


def _check_range(start: date, end: date):
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end must not be before start",
        )


@router.post("/", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
def record_attendance(
    entry: AttendanceCreate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Record a child's attendance for a day, replacing an earlier entry."""
    if not ChildRepository(db).exists(id=entry.child_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child {entry.child_id} not found",
        )
    repo = AttendanceRepository(db)

    try:
        fields = entry.model_dump(exclude={"child_id", "date"})
        row = repo.upsert(entry.child_id, entry.date, recorded_by=current_user.id, **fields)
        db.commit()
        db.refresh(row)
        return _to_response(row)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to record attendance: {str(e)}",
        )


@router.get("/", response_model=List[AttendanceResponse])
def list_attendance(
    start: date,
    end: date,
    child_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Attendance rows in a date range; parents must pass their child's id."""
    _check_range(start, end)
    if child_id is not None:
        ensure_child_access(db, current_user, child_id)
    else:
        _require_staff_for_school_wide(current_user)
    return [_to_response(row) for row in AttendanceRepository(db).get_range(start, end, child_id)]


@router.get("/summary", response_model=AttendanceSummary)
def get_attendance_summary(
    start: date,
    end: date,
    child_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Counts per status and the attendance rate over the weekdays of each child."""
    _check_range(start, end)
    if child_id is not None:
        ensure_child_access(db, current_user, child_id)
    else:
        _require_staff_for_school_wide(current_user)
    rows = AttendanceRepository(db).get_range(start, end, child_id)
    return attendance_summary(rows, start, end, children=1 if child_id is not None else None)


@router.get("/export")
def export_attendance(
    start: date,
    end: date,
    child_id: Optional[int] = None,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Attendance rows in the range as a CSV download."""
    _check_range(start, end)
    rows = AttendanceRepository(db).get_range(start, end, child_id)
    csv = attendance_frame(rows).to_csv(index=False)
    filename = f"frequencia_{start.isoformat()}_{end.isoformat()}.csv"
    return Response(
        content=csv,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.put("/{attendance_id}", response_model=AttendanceResponse)
def update_attendance(
    attendance_id: int,
    entry_update: AttendanceUpdate,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Update an attendance row."""
    repo = AttendanceRepository(db)
    if not repo.get_by_id(attendance_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Attendance {attendance_id} not found",
        )

    try:
        update_data = {k: v for k, v in entry_update.model_dump().items() if v is not None}
        row = repo.update(attendance_id, **update_data)
        db.commit()
        db.refresh(row)
        return _to_response(row)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update attendance: {str(e)}",
        )


@router.delete("/{attendance_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attendance(
    attendance_id: int,
    current_user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
):
    """Delete an attendance row."""
    repo = AttendanceRepository(db)
    if not repo.get_by_id(attendance_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Attendance {attendance_id} not found",
        )

    try:
        repo.delete(attendance_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete attendance: {str(e)}",
        )
