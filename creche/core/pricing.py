"""
Tuition prices, discount coupons and installment schedules.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict, List, Optional

from creche.core.constants import ClassType, DiscountType, PlanType, CouponStatus
from creche.core.statuses import coupon_status, field_value
from creche.utils.date_utils import add_months, clamp_day
from creche.utils.error_utils import CouponError, ValidationError
from creche.utils.format_utils import to_cents

# Monthly tuition in BRL by class and plan
PRICES: Dict[str, Dict[str, Decimal]] = {
    ClassType.BERCARIO.value: {
        PlanType.BASICO.value: Decimal("799.90"),
        PlanType.INTERMEDIARIO.value: Decimal("1299.90"),
        PlanType.PLUS.value: Decimal("1699.90"),
    },
    ClassType.MATERNAL.value: {
        PlanType.BASICO.value: Decimal("749.90"),
        PlanType.INTERMEDIARIO.value: Decimal("1099.90"),
        PlanType.PLUS.value: Decimal("1499.90"),
    },
    ClassType.JARDIM.value: {
        PlanType.BASICO.value: Decimal("649.90"),
        PlanType.INTERMEDIARIO.value: Decimal("949.90"),
        PlanType.PLUS.value: Decimal("1299.90"),
    },
}

# Maternal I (24 to 35 months) is charged at the bercario table
MATERNAL_I_AGE_RANGE = (24, 35)

CENT = Decimal("0.01")


def age_in_months(birth_date: date, today: Optional[date] = None) -> int:
    """Whole months of age; the current month only counts once the birth day is reached."""
    today = today or date.today()
    months = (today.year - birth_date.year) * 12 + (today.month - birth_date.month)
    if today.day < birth_date.day:
        months -= 1
    return months


def monthly_price(
    class_type: str,
    plan_type: str,
    birth_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Decimal:
    """
    Monthly tuition for a class and plan.

    Raises:
        ValidationError: If the class or plan is unknown
    """
    if class_type not in PRICES or plan_type not in PRICES[class_type]:
        raise ValidationError(f"No price for class '{class_type}' and plan '{plan_type}'")

    price_class = class_type
    if class_type == ClassType.MATERNAL.value and birth_date is not None:
        low, high = MATERNAL_I_AGE_RANGE
        if low <= age_in_months(birth_date, today) <= high:
            price_class = ClassType.BERCARIO.value

    return PRICES[price_class][plan_type]


def normalize_coupon_code(code: str) -> str:
    return (code or "").strip().upper()


def validate_coupon_values(discount_type: str, discount_value) -> None:
    """
    Reject coupon definitions that can never be applied.

    Raises:
        ValidationError: value not positive, or percentage above 100
    """
    value = Decimal(str(discount_value))
    if value <= 0:
        raise ValidationError("O valor do desconto deve ser maior que zero")
    if discount_type == DiscountType.PERCENTAGE.value and value > 100:
        raise ValidationError("Percentual de desconto não pode ser maior que 100%")


def validate_coupon(
    coupon: Any,
    now: Optional[datetime] = None,
    class_type: Optional[str] = None,
    plan_type: Optional[str] = None,
) -> None:
    """
    Check that a coupon can be applied right now.

    Raises:
        CouponError: with the reason shown to the user
    """
    status = coupon_status(coupon, now)
    reasons = {
        CouponStatus.INACTIVE: "Cupom inválido ou inativo",
        CouponStatus.EXPIRED: "Este cupom expirou",
        CouponStatus.SCHEDULED: "Este cupom ainda não está válido",
        CouponStatus.EXHAUSTED: "Este cupom atingiu o limite de usos",
    }
    if status in reasons:
        raise CouponError(reasons[status], {"status": status.value})

    classes = field_value(coupon, "applicable_classes") or []
    if class_type and classes and class_type not in classes:
        raise CouponError("Cupom não válido para esta turma")

    plans = field_value(coupon, "applicable_plans") or []
    if plan_type and plans and plan_type not in plans:
        raise CouponError("Cupom não válido para este plano")


def calculate_discount(price, discount_type: str, discount_value) -> Decimal:
    """Percentage of the price, or a fixed amount capped at the price."""
    price = Decimal(str(price))
    value = Decimal(str(discount_value))
    if discount_type == DiscountType.PERCENTAGE.value:
        return to_cents(price * value / 100)
    return to_cents(min(value, price))


def apply_discount(price, discount_type: str, discount_value) -> Decimal:
    """Final price after the discount, never below zero."""
    price = Decimal(str(price))
    return max(Decimal("0.00"), to_cents(price - calculate_discount(price, discount_type, discount_value)))


def next_due_date(billing_day: int, today: Optional[date] = None) -> date:
    """
    First charge date for a subscription billed on ``billing_day``.

    The day in the current month when it is still ahead, otherwise the same
    day next month.
    """
    today = today or date.today()
    candidate = clamp_day(today.year, today.month, billing_day)
    if candidate <= today:
        following = add_months(today.replace(day=1), 1)
        candidate = clamp_day(following.year, following.month, billing_day)
    return candidate


def split_installments(
    total,
    count: int,
    first_due_date: date,
    description: str = "",
) -> List[Dict[str, Any]]:
    """
    Divide a charge into ``count`` monthly installments.

    Every installment but the last is the share rounded down to cents; the
    last one takes the remainder, so the installments add up to ``total``
    and none is smaller than the others.

    Raises:
        ValidationError: If count is below 1, total is not positive, or the
            share of each installment would be less than one cent
    """
    if count < 1:
        raise ValidationError("Installment count must be at least 1")
    total = to_cents(total)
    if total <= 0:
        raise ValidationError("Charge value must be greater than zero")

    base = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    if base < CENT:
        raise ValidationError(
            f"A charge of {total} cannot be split into {count} installments",
            {"total": str(total), "count": count},
        )

    installments = []
    for index in range(count):
        value = base if index < count - 1 else total - base * (count - 1)
        label = f"({index + 1}/{count})"
        installments.append({
            "number": index + 1,
            "value": value,
            "due_date": add_months(first_due_date, index),
            "description": f"{description} {label}".strip() if count > 1 else description,
        })
    return installments
