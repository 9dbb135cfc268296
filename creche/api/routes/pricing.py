"""
Tuition price quote endpoint.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends

from creche.api.schemas import PriceQuote
from creche.api.auth import get_current_user
from creche.core.constants import ENROLLMENT_FEE, ClassType, PlanType
from creche.core.pricing import age_in_months, monthly_price
from creche.db.models import User


router = APIRouter()


@router.get("/quote", response_model=PriceQuote)
def get_quote(
    class_type: ClassType,
    plan_type: PlanType,
    birth_date: Optional[date] = None,
    current_user: User = Depends(get_current_user),
):
    """Monthly price for a class and plan, plus the enrollment fee."""
    return PriceQuote(
        class_type=class_type,
        plan_type=plan_type,
        age_months=age_in_months(birth_date) if birth_date else None,
        monthly_price=monthly_price(class_type.value, plan_type.value, birth_date),
        enrollment_fee=Decimal(str(ENROLLMENT_FEE)),
    )
