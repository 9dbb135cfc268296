"""
Core modules for the creche backend.

This package contains the domain constants, derived status labels, pricing
rules and the calculation engines.
"""

from creche.core.constants import (
    ClassType,
    ShiftType,
    PlanType,
    UserRole,
    AttendanceStatus,
    InvoiceStatus,
    ContractStatus,
    CouponStatus,
    DiscountType,
    MenuType,
    ENROLLMENT_FEE,
    FORECAST_MONTHS,
    DEFAULT_ACCEPTANCE_RATIO,
)

__all__ = [
    "ClassType",
    "ShiftType",
    "PlanType",
    "UserRole",
    "AttendanceStatus",
    "InvoiceStatus",
    "ContractStatus",
    "CouponStatus",
    "DiscountType",
    "MenuType",
    "ENROLLMENT_FEE",
    "FORECAST_MONTHS",
    "DEFAULT_ACCEPTANCE_RATIO",
]
