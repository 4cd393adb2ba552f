"""Service for quota lookups, pre-flight checks and manual resets."""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.usage_quota import UsageQuota
from usage_billing.repositories.usage_quota_repository import UsageQuotaRepository

SUGGESTED_UPGRADE_PLAN = "pro"


@dataclass
class QuotaCheckResult:
    allowed: bool
    remaining: int | None
    would_exceed: bool
    upgrade_required: bool
    quota: UsageQuota | None = None
    suggested_plan: str | None = None


class QuotaService:
    def __init__(self, db: Session):
        self.db = db
        self.quota_repo = UsageQuotaRepository(db)

    def list_quotas(self, context: BillingContext) -> list[UsageQuota]:
        return self.quota_repo.list_for_context(context)

    def check_quota(
        self, context: BillingContext, quota_type: str, requested_amount: int = 1
    ) -> QuotaCheckResult:
        """Check whether ``requested_amount`` more usage fits in the quota.

        A missing quota is treated as unlimited.
        """
        quota = self.quota_repo.get_for_context(context, quota_type)
        if quota is None or quota.is_unlimited:
            return QuotaCheckResult(
                allowed=True,
                remaining=None,
                would_exceed=False,
                upgrade_required=False,
                quota=quota,
            )

        remaining = max(0, int(quota.limit_value) - int(quota.current_usage or 0))
        would_exceed = requested_amount > remaining
        return QuotaCheckResult(
            allowed=not would_exceed,
            remaining=remaining,
            would_exceed=would_exceed,
            upgrade_required=would_exceed,
            quota=quota,
            suggested_plan=SUGGESTED_UPGRADE_PLAN if would_exceed else None,
        )

    def set_limit(
        self,
        context: BillingContext,
        quota_type: str,
        limit_value: int,
        reset_period: str | None = None,
    ) -> UsageQuota:
        if limit_value < -1:
            raise ValueError("limit_value must be -1 (unlimited) or non-negative")
        return self.quota_repo.upsert_limit(context, quota_type, limit_value, reset_period)

    def reset_quotas(
        self,
        context: BillingContext,
        quota_types: list[str] | None = None,
        reset_period: str | None = None,
    ) -> int:
        """Zero current usage for a context's quotas; returns the count."""
        return len(self.quota_repo.reset_for_context(context, quota_types, reset_period))
