"""
Test suite for constants in the creche backend.
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from creche.core.constants import (
    ATTENDANCE_STATUS_LABELS,
    DEFAULT_ACCEPTANCE_RATIO,
    ENROLLMENT_FEE,
    FORECAST_MONTHS,
    INVOICE_STATUS_LABELS,
    MAX_FORECAST_MONTHS,
    STAFF_ROLES,
    AttendanceStatus,
    ClassType,
    CouponStatus,
    InvoiceStatus,
    PlanType,
    UserRole,
)
from creche.core.pricing import PRICES
from creche.core.engine.nutrition import PNAE_TARGETS
from creche.core.constants import MenuType


def test_staff_roles_exclude_parent():
    """Every role except parent is staff."""
    assert UserRole.PARENT.value not in STAFF_ROLES
    assert UserRole.ADMIN.value in STAFF_ROLES
    assert UserRole.COOK.value in STAFF_ROLES
    assert len(STAFF_ROLES) == len(UserRole) - 1


def test_enum_values_are_strings():
    """Enums compare equal to their stored column values."""
    assert ClassType.BERCARIO == "bercario"
    assert InvoiceStatus.OVERDUE == "overdue"
    assert AttendanceStatus.EXCUSED == "excused"


def test_coupon_status_labels():
    assert CouponStatus.ACTIVE.label == "Ativo"
    assert CouponStatus.EXPIRED.label == "Expirado"
    assert CouponStatus.EXHAUSTED.label == "Esgotado"


def test_every_status_has_a_label():
    for status in InvoiceStatus:
        assert status.value in INVOICE_STATUS_LABELS
    for status in AttendanceStatus:
        assert status.value in ATTENDANCE_STATUS_LABELS


def test_price_table_covers_every_class_and_plan():
    for class_type in ClassType:
        for plan_type in PlanType:
            assert PRICES[class_type.value][plan_type.value] > 0


def test_every_menu_type_has_targets():
    for menu_type in MenuType:
        assert PNAE_TARGETS[menu_type.value]["energy"] > 0


def test_business_parameters():
    assert ENROLLMENT_FEE == 250.00
    assert DEFAULT_ACCEPTANCE_RATIO == 0.85
    assert 1 <= FORECAST_MONTHS <= MAX_FORECAST_MONTHS
