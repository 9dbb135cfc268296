"""
API route modules.

Contains FastAPI routers for different resource types.
"""

from creche.api.routes import (
    announcements,
    attendance,
    children,
    contracts,
    coupons,
    daily_records,
    demo,
    employees,
    feed,
    fixed_expenses,
    forecast,
    invoices,
    menus,
    messages,
    notifications,
    pipeline,
    pricing,
    subscriptions,
    webhooks,
)

__all__ = [
    "announcements",
    "attendance",
    "children",
    "contracts",
    "coupons",
    "daily_records",
    "demo",
    "employees",
    "feed",
    "fixed_expenses",
    "forecast",
    "invoices",
    "menus",
    "messages",
    "notifications",
    "pipeline",
    "pricing",
    "subscriptions",
    "webhooks",
]
