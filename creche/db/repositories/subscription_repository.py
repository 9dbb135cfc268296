"""
Subscription and payment customer repositories.
"""

from typing import List, Optional

from creche.db.repositories.base import BaseRepository
from creche.db.models import PaymentCustomer, Subscription


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for recurring tuition subscriptions."""

    def __init__(self, session):
        super().__init__(Subscription, session)

    def get_active(self) -> List[Subscription]:
        return (
            self.session.query(Subscription)
            .filter(Subscription.status == "active")
            .order_by(Subscription.id)
            .all()
        )

    def get_active_for_child(self, child_id: int) -> Optional[Subscription]:
        return (
            self.session.query(Subscription)
            .filter(Subscription.child_id == child_id, Subscription.status == "active")
            .first()
        )

    def get_by_provider_id(self, provider_subscription_id: str) -> Optional[Subscription]:
        return (
            self.session.query(Subscription)
            .filter(Subscription.provider_subscription_id == provider_subscription_id)
            .first()
        )


class PaymentCustomerRepository(BaseRepository[PaymentCustomer]):
    """Maps local users to their customer id at the payment provider."""

    def __init__(self, session):
        super().__init__(PaymentCustomer, session)

    def get_by_user(self, user_id: int) -> Optional[PaymentCustomer]:
        return self.session.query(PaymentCustomer).filter(PaymentCustomer.user_id == user_id).first()

    def get_by_provider_id(self, provider_customer_id: str) -> Optional[PaymentCustomer]:
        return (
            self.session.query(PaymentCustomer)
            .filter(PaymentCustomer.provider_customer_id == provider_customer_id)
            .first()
        )
