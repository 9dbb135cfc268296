"""
Financial forecast projection for the school.

A fixed-formula linear projection over three aggregates:

    month 0:        revenue = recurring + pending * acceptance_ratio
    months 1..N-1:  revenue = recurring
    every month:    cost = fixed expenses + net salaries
                    net_result = revenue - cost

The projection is a DataFrame with one row per month bucket, the same shape
the API serializes.
"""

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from creche.core.constants import (
    DEFAULT_ACCEPTANCE_RATIO,
    FORECAST_MONTHS,
    MAX_FORECAST_MONTHS,
    ExpenseCategory,
)
from creche.utils.date_utils import month_label
from creche.utils.error_utils import ValidationError

ACTIVE_SUBSCRIPTION_STATUSES = {"active"}
PENDING_PAYMENT_STATUSES = {"pending", "overdue"}
PAID_PAYMENT_STATUSES = {"paid", "received", "confirmed"}
CANCELLED_PAYMENT_STATUSES = {"cancelled"}

FORECAST_COLUMNS = ["month", "label", "revenue", "cost", "net_result"]


def _status(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def recurring_revenue(subscriptions: Iterable[Mapping[str, Any]]) -> float:
    """Sum of the values of active subscriptions."""
    return sum(
        float(sub.get("value") or 0)
        for sub in subscriptions
        if _status(sub.get("status")) in ACTIVE_SUBSCRIPTION_STATUSES
    )


def pending_revenue(payments: Iterable[Mapping[str, Any]]) -> float:
    """Sum of the values of pending and overdue payments."""
    return sum(
        float(payment.get("value") or 0)
        for payment in payments
        if _status(payment.get("status")) in PENDING_PAYMENT_STATUSES
    )


def acceptance_ratio(statuses: Iterable[Optional[str]]) -> float:
    """
    Fraction of non-cancelled payments that were paid.

    Falls back to DEFAULT_ACCEPTANCE_RATIO when there is no non-cancelled
    payment to learn from.
    """
    normalized = [_status(s) for s in statuses]
    valid = [s for s in normalized if s not in CANCELLED_PAYMENT_STATUSES]
    if not valid:
        return DEFAULT_ACCEPTANCE_RATIO
    paid = sum(1 for s in valid if s in PAID_PAYMENT_STATUSES)
    return paid / len(valid)


def monthly_cost(
    expenses: Iterable[Mapping[str, Any]],
    net_salaries: Iterable[Optional[float]] = (),
) -> float:
    """Active fixed expenses plus the net salaries of the staff."""
    fixed = sum(float(e.get("value") or 0) for e in expenses if e.get("is_active", True))
    salaries = sum(float(s or 0) for s in net_salaries)
    return fixed + salaries


def expenses_by_category(expenses: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """Totals of active fixed expenses per category; unknown categories fall in 'outros'."""
    known = {c.value for c in ExpenseCategory}
    totals: Dict[str, float] = defaultdict(float)
    for expense in expenses:
        if not expense.get("is_active", True):
            continue
        category = expense.get("category") or ExpenseCategory.OUTROS.value
        if category not in known:
            category = ExpenseCategory.OUTROS.value
        totals[category] += float(expense.get("value") or 0)
    return dict(totals)


def project(
    recurring: float,
    pending: float,
    ratio: float,
    cost: float,
    months: int = FORECAST_MONTHS,
    start: Optional[date] = None,
) -> pd.DataFrame:
    """
    Project revenue, cost and net result month by month.

    Args:
        recurring: Monthly recurring revenue
        pending: Revenue still to be collected
        ratio: Acceptance ratio applied to pending revenue in month 0
        cost: Constant monthly cost
        months: Number of month buckets (1..MAX_FORECAST_MONTHS)
        start: Any day of the first month; defaults to today

    Returns:
        DataFrame with columns: month, label, revenue, cost, net_result

    Raises:
        ValidationError: If months is outside the allowed range
    """
    if months < 1 or months > MAX_FORECAST_MONTHS:
        raise ValidationError(f"months must be between 1 and {MAX_FORECAST_MONTHS}, got {months}")

    first = (start or date.today()).replace(day=1)
    month_starts = pd.date_range(start=first, periods=months, freq="MS")

    revenue = [float(recurring)] * months
    revenue[0] = float(recurring) + float(pending) * float(ratio)

    df = pd.DataFrame({
        "month": [ts.date() for ts in month_starts],
        "label": [month_label(ts.date()) for ts in month_starts],
        "revenue": revenue,
        "cost": [float(cost)] * months,
    })
    df["net_result"] = df["revenue"] - df["cost"]
    return df[FORECAST_COLUMNS]


def summarize(projection: pd.DataFrame) -> Dict[str, float]:
    """Horizon totals of a projection."""
    return {
        "total_revenue": round(float(projection["revenue"].sum()), 2),
        "total_cost": round(float(projection["cost"].sum()), 2),
        "total_net_result": round(float(projection["net_result"].sum()), 2),
    }


def to_records(projection: pd.DataFrame) -> List[Dict[str, Any]]:
    """Serialize a projection, rounding money to cents."""
    records = []
    for row in projection.itertuples(index=False):
        records.append({
            "month": row.month,
            "label": row.label,
            "revenue": round(float(row.revenue), 2),
            "cost": round(float(row.cost), 2),
            "net_result": round(float(row.net_result), 2),
        })
    return records
