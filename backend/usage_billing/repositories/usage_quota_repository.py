from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.shared import utc_now
from usage_billing.models.usage_quota import UNLIMITED, ResetPeriod, UsageQuota


class UsageQuotaRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, quota_id: UUID) -> UsageQuota | None:
        return self.db.query(UsageQuota).filter(UsageQuota.id == quota_id).first()

    def get_for_context(self, context: BillingContext, quota_type: str) -> UsageQuota | None:
        query = context.apply(self.db.query(UsageQuota), UsageQuota)
        return query.filter(UsageQuota.quota_type == quota_type).first()

    def list_for_context(self, context: BillingContext) -> list[UsageQuota]:
        query = context.apply(self.db.query(UsageQuota), UsageQuota)
        return query.order_by(UsageQuota.quota_type.asc()).all()

    def get_limited(self, context: BillingContext | None = None) -> list[UsageQuota]:
        """Return every quota with a finite limit."""
        query = self.db.query(UsageQuota).filter(UsageQuota.limit_value != UNLIMITED)
        if context is not None:
            query = context.apply(query, UsageQuota)
        return query.all()

    def get_by_reset_period(self, reset_period: str) -> list[UsageQuota]:
        return (
            self.db.query(UsageQuota)
            .filter(UsageQuota.reset_period == reset_period)
            .all()
        )

    def increment(self, quota: UsageQuota, amount: int) -> UsageQuota:
        quota.current_usage = int(quota.current_usage or 0) + amount  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(quota)
        return quota

    def upsert_limit(
        self,
        context: BillingContext,
        quota_type: str,
        limit_value: int,
        reset_period: str | None = None,
    ) -> UsageQuota:
        quota = self.get_for_context(context, quota_type)
        if quota is None:
            quota = UsageQuota(
                **context.row_values(),
                quota_type=quota_type,
                limit_value=limit_value,
                current_usage=0,
                reset_period=reset_period or ResetPeriod.MONTHLY.value,
            )
            self.db.add(quota)
        else:
            quota.limit_value = limit_value  # type: ignore[assignment]
            if reset_period is not None:
                quota.reset_period = reset_period  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(quota)
        return quota

    def reset(self, quota: UsageQuota, reset_at: datetime | None = None) -> UsageQuota:
        quota.current_usage = 0  # type: ignore[assignment]
        quota.last_reset = reset_at or utc_now()  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(quota)
        return quota

    def reset_for_context(
        self,
        context: BillingContext,
        quota_types: list[str] | None = None,
        reset_period: str | None = None,
    ) -> list[UsageQuota]:
        query = context.apply(self.db.query(UsageQuota), UsageQuota)
        if quota_types:
            query = query.filter(UsageQuota.quota_type.in_(quota_types))
        if reset_period:
            query = query.filter(UsageQuota.reset_period == reset_period)
        quotas = query.all()
        now = utc_now()
        for quota in quotas:
            quota.current_usage = 0  # type: ignore[assignment]
            quota.last_reset = now  # type: ignore[assignment]
        self.db.commit()
        return quotas
