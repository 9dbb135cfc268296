"""
Tests for tuition prices, coupon rules and installment schedules.

Run: python -m pytest creche/tests/test_pricing.py -v
"""

import sys
import os
import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from creche.core.pricing import (
    age_in_months,
    apply_discount,
    calculate_discount,
    monthly_price,
    next_due_date,
    normalize_coupon_code,
    split_installments,
    validate_coupon,
    validate_coupon_values,
)
from creche.utils.error_utils import CouponError, ValidationError

TODAY = date(2026, 10, 19)


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


def test_monthly_price_from_table():
    assert monthly_price("bercario", "basico") == Decimal("799.90")
    assert monthly_price("jardim", "plus") == Decimal("1299.90")


def test_maternal_i_is_charged_at_bercario_table():
    # 30 months old
    assert monthly_price("maternal", "intermediario", date(2024, 4, 19), TODAY) == Decimal("1299.90")


def test_older_maternal_uses_maternal_table():
    # 40 months old
    assert monthly_price("maternal", "intermediario", date(2023, 6, 19), TODAY) == Decimal("1099.90")
    assert monthly_price("maternal", "intermediario") == Decimal("1099.90")


def test_unknown_class_or_plan():
    with pytest.raises(ValidationError):
        monthly_price("fundamental", "basico")
    with pytest.raises(ValidationError):
        monthly_price("bercario", "premium")


def test_age_in_months():
    assert age_in_months(date(2024, 10, 19), TODAY) == 24
    assert age_in_months(date(2024, 10, 20), TODAY) == 23
    assert age_in_months(TODAY, TODAY) == 0


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


def test_normalize_coupon_code():
    assert normalize_coupon_code("  bemvindo10 ") == "BEMVINDO10"
    assert normalize_coupon_code(None) == ""


def test_validate_coupon_values():
    validate_coupon_values("percentage", 100)
    validate_coupon_values("fixed", 150)
    with pytest.raises(ValidationError):
        validate_coupon_values("percentage", 150)
    with pytest.raises(ValidationError):
        validate_coupon_values("fixed", 0)


def test_calculate_discount():
    assert calculate_discount(1000, "percentage", 10) == Decimal("100.00")
    assert calculate_discount(799.90, "percentage", Decimal("12.5")) == Decimal("99.99")
    assert calculate_discount(1000, "fixed", 50) == Decimal("50.00")
    # Fixed discounts are capped at the price
    assert calculate_discount(1000, "fixed", 2000) == Decimal("1000.00")


def test_apply_discount_never_negative():
    assert apply_discount(799.90, "percentage", Decimal("12.5")) == Decimal("699.91")
    assert apply_discount(1000, "fixed", 2000) == Decimal("0.00")
    assert apply_discount(1000, "percentage", 100) == Decimal("0.00")


class TestValidateCoupon:
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_valid_coupon_passes(self):
        validate_coupon({"is_active": True}, self.now)

    def test_expired_coupon(self):
        with pytest.raises(CouponError) as exc:
            validate_coupon({"valid_until": self.now - timedelta(days=1)}, self.now)
        assert exc.value.message == "Este cupom expirou"
        assert exc.value.details == {"status": "expired"}

    def test_exhausted_coupon(self):
        with pytest.raises(CouponError, match="limite de usos"):
            validate_coupon({"max_uses": 2, "current_uses": 2}, self.now)

    def test_class_restriction(self):
        coupon = {"applicable_classes": ["bercario"]}
        validate_coupon(coupon, self.now, class_type="bercario")
        validate_coupon(coupon, self.now)
        with pytest.raises(CouponError, match="turma"):
            validate_coupon(coupon, self.now, class_type="maternal")

    def test_plan_restriction(self):
        coupon = {"applicable_plans": ["plus"]}
        with pytest.raises(CouponError, match="plano"):
            validate_coupon(coupon, self.now, plan_type="basico")

    def test_coupon_error_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            validate_coupon({"is_active": False}, self.now)


# ---------------------------------------------------------------------------
# Billing schedule
# ---------------------------------------------------------------------------


def test_next_due_date():
    assert next_due_date(10, date(2026, 10, 5)) == date(2026, 10, 10)
    # The billing day itself is already too late for this month
    assert next_due_date(10, date(2026, 10, 10)) == date(2026, 11, 10)
    assert next_due_date(31, date(2026, 1, 31)) == date(2026, 2, 28)


def test_split_installments_adds_up():
    installments = split_installments(100, 3, date(2026, 1, 31), "Material")
    assert [i["value"] for i in installments] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(i["value"] for i in installments) == Decimal("100.00")
    assert [i["due_date"] for i in installments] == [date(2026, 1, 31), date(2026, 2, 28), date(2026, 3, 31)]
    assert installments[0]["description"] == "Material (1/3)"
    assert installments[2]["number"] == 3


def test_split_single_installment_keeps_description():
    installments = split_installments(250, 1, date(2026, 2, 10), "Matrícula")
    assert len(installments) == 1
    assert installments[0]["description"] == "Matrícula"
    assert installments[0]["value"] == Decimal("250.00")


def test_split_installments_rejects_bad_input():
    with pytest.raises(ValidationError):
        split_installments(100, 0, date(2026, 1, 1))
    with pytest.raises(ValidationError):
        split_installments(0, 2, date(2026, 1, 1))


def test_split_installments_remainder_goes_last():
    installments = split_installments(Decimal("200"), 3, date(2026, 1, 10))
    assert [i["value"] for i in installments] == [Decimal("66.66"), Decimal("66.66"), Decimal("66.68")]
    assert min(i["value"] for i in installments) > 0


def test_split_installments_rejects_sub_cent_share():
    with pytest.raises(ValidationError):
        split_installments(Decimal("0.05"), 10, date(2026, 1, 1))
    # Exactly one cent each is still allowed
    installments = split_installments(Decimal("0.10"), 10, date(2026, 1, 1))
    assert all(i["value"] == Decimal("0.01") for i in installments)
