from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.subscription import Subscription, SubscriptionStatus


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, subscription_id: UUID) -> Subscription | None:
        return self.db.query(Subscription).filter(Subscription.id == subscription_id).first()

    def get_active_for_context(self, context: BillingContext) -> Subscription | None:
        query = context.apply(self.db.query(Subscription), Subscription)
        return (
            query.filter(Subscription.status == SubscriptionStatus.ACTIVE.value)
            .order_by(Subscription.created_at.desc())
            .first()
        )
