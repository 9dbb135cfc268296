"""
Discount coupon repository.
"""

from typing import Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import DiscountCoupon
from creche.core.pricing import normalize_coupon_code


class CouponRepository(BaseRepository[DiscountCoupon]):
    """Repository for DiscountCoupon operations."""

    def __init__(self, session):
        super().__init__(DiscountCoupon, session)

    def get_by_code(self, code: str) -> Optional[DiscountCoupon]:
        """Look a coupon up by code; codes are stored and matched uppercase."""
        return (
            self.session.query(DiscountCoupon)
            .filter(DiscountCoupon.code == normalize_coupon_code(code))
            .first()
        )

    def increment_uses(self, coupon: DiscountCoupon) -> DiscountCoupon:
        coupon.current_uses = (coupon.current_uses or 0) + 1
        self.session.flush()
        return coupon
