"""
Attendance repository.
"""

from datetime import date
from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import Attendance


class AttendanceRepository(BaseRepository[Attendance]):
    """Repository for Attendance CRUD operations."""

    def __init__(self, session):
        super().__init__(Attendance, session)

    def get_range(
        self,
        start: date,
        end: date,
        child_id: Optional[int] = None,
    ) -> List[Attendance]:
        """Attendance rows in the closed date range, optionally for one child."""
        query = self.session.query(Attendance).filter(Attendance.date >= start, Attendance.date <= end)
        if child_id is not None:
            query = query.filter(Attendance.child_id == child_id)
        return query.order_by(Attendance.date, Attendance.child_id).all()

    def get_for_day(self, child_id: int, day: date) -> Optional[Attendance]:
        return (
            self.session.query(Attendance)
            .filter(Attendance.child_id == child_id, Attendance.date == day)
            .first()
        )

    def upsert(self, child_id: int, day: date, **fields) -> Attendance:
        """Record the child's attendance for a day, replacing an earlier entry."""
        row = self.get_for_day(child_id, day)
        if row is None:
            return self.create(child_id=child_id, date=day, **fields)
        for key, value in fields.items():
            if hasattr(row, key):
                setattr(row, key, value)
        self.session.flush()
        return row
