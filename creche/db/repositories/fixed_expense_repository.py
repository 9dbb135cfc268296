"""
Fixed expense and employee profile repositories.

Both feed the monthly cost of the financial forecast.
"""

from typing import List

from creche.db.repositories.base import BaseRepository
from creche.db.models import EmployeeProfile, FixedExpense


class FixedExpenseRepository(BaseRepository[FixedExpense]):
    """Repository for FixedExpense CRUD operations."""

    def __init__(self, session):
        super().__init__(FixedExpense, session)

    def get_active(self) -> List[FixedExpense]:
        return (
            self.session.query(FixedExpense)
            .filter(FixedExpense.is_active.is_(True))
            .order_by(FixedExpense.due_day, FixedExpense.name)
            .all()
        )

    def total_active(self) -> float:
        return self.sum(FixedExpense.value, is_active=True)


class EmployeeProfileRepository(BaseRepository[EmployeeProfile]):
    """Repository for EmployeeProfile CRUD operations."""

    def __init__(self, session):
        super().__init__(EmployeeProfile, session)

    def get_net_salaries(self) -> List[float]:
        return [float(row[0]) for row in self.session.query(EmployeeProfile.net_salary).all() if row[0] is not None]

    def total_net_salaries(self) -> float:
        return self.sum(EmployeeProfile.net_salary)
