"""
Financial forecast endpoint.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from creche.api.schemas import ForecastResponse
from creche.api.auth import require_admin
from creche.core.constants import FORECAST_MONTHS, MAX_FORECAST_MONTHS
from creche.core.engine import forecast
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import (
    EmployeeProfileRepository,
    FixedExpenseRepository,
    InvoiceRepository,
    SubscriptionRepository,
)


router = APIRouter()


@router.get("/", response_model=ForecastResponse)
def get_forecast(
    months: int = Query(FORECAST_MONTHS, ge=1, le=MAX_FORECAST_MONTHS),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
):
    """
    Project revenue, cost and net result for the next ``months`` months.

    Inputs are read from the current subscriptions, open invoices, active
    fixed expenses and staff net salaries.
    """
    subscriptions = [
        {"value": s.value, "status": s.status} for s in SubscriptionRepository(db).get_active()
    ]
    invoices = InvoiceRepository(db)
    open_invoices = [{"value": i.value, "status": i.status} for i in invoices.get_open()]
    expenses = [
        {"category": e.category, "value": e.value, "is_active": e.is_active}
        for e in FixedExpenseRepository(db).get_active()
    ]
    net_salaries = EmployeeProfileRepository(db).get_net_salaries()

    recurring = forecast.recurring_revenue(subscriptions)
    pending = forecast.pending_revenue(open_invoices)
    ratio = forecast.acceptance_ratio(invoices.get_statuses())
    cost = forecast.monthly_cost(expenses, net_salaries)

    projection = forecast.project(recurring, pending, ratio, cost, months=months)
    return {
        "inputs": {
            "recurring_revenue": round(recurring, 2),
            "pending_revenue": round(pending, 2),
            "acceptance_ratio": round(ratio, 4),
            "fixed_expenses": round(cost - sum(net_salaries), 2),
            "net_salaries": round(sum(net_salaries), 2),
            "monthly_cost": round(cost, 2),
        },
        "months": forecast.to_records(projection),
        "summary": forecast.summarize(projection),
        "expenses_by_category": {
            k: round(v, 2) for k, v in forecast.expenses_by_category(expenses).items()
        },
    }
