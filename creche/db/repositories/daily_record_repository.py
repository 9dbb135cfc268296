"""
Daily record repository for the children's agenda.
"""

from datetime import date
from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import DailyRecord


class DailyRecordRepository(BaseRepository[DailyRecord]):
    """Repository for DailyRecord CRUD operations."""

    def __init__(self, session):
        super().__init__(DailyRecord, session)

    def get_for_day(self, child_id: int, record_date: date) -> Optional[DailyRecord]:
        return (
            self.session.query(DailyRecord)
            .filter(DailyRecord.child_id == child_id, DailyRecord.record_date == record_date)
            .first()
        )

    def get_by_child(
        self,
        child_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[DailyRecord]:
        """Records of a child, newest first, optionally limited to a date range."""
        query = self.session.query(DailyRecord).filter(DailyRecord.child_id == child_id)
        if start:
            query = query.filter(DailyRecord.record_date >= start)
        if end:
            query = query.filter(DailyRecord.record_date <= end)
        return query.order_by(DailyRecord.record_date.desc()).all()

    def get_by_date(self, record_date: date) -> List[DailyRecord]:
        return (
            self.session.query(DailyRecord)
            .filter(DailyRecord.record_date == record_date)
            .order_by(DailyRecord.child_id)
            .all()
        )

    def upsert(self, child_id: int, record_date: date, **fields) -> DailyRecord:
        """Create the day's record or update the existing one."""
        record = self.get_for_day(child_id, record_date)
        if record is None:
            return self.create(child_id=child_id, record_date=record_date, **fields)
        for key, value in fields.items():
            if hasattr(record, key):
                setattr(record, key, value)
        self.session.flush()
        return record
