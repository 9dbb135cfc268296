"""
Weekly menu repository.
"""

from datetime import date
from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import WeeklyMenu


class MenuRepository(BaseRepository[WeeklyMenu]):
    """Repository for WeeklyMenu operations."""

    def __init__(self, session):
        super().__init__(WeeklyMenu, session)

    def get_week(self, week_start: date, menu_type: Optional[str] = None) -> List[WeeklyMenu]:
        """Menu days of a week ordered by weekday (then menu type)."""
        query = self.session.query(WeeklyMenu).filter(WeeklyMenu.week_start == week_start)
        if menu_type:
            query = query.filter(WeeklyMenu.menu_type == menu_type)
        return query.order_by(WeeklyMenu.day_of_week, WeeklyMenu.menu_type).all()

    def get_day(self, week_start: date, day_of_week: int, menu_type: str) -> Optional[WeeklyMenu]:
        return (
            self.session.query(WeeklyMenu)
            .filter(
                WeeklyMenu.week_start == week_start,
                WeeklyMenu.day_of_week == day_of_week,
                WeeklyMenu.menu_type == menu_type,
            )
            .first()
        )
