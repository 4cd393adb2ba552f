"""Service for evaluating quota utilization and raising billing alerts."""

import logging
import math
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from usage_billing.core.config import settings
from usage_billing.core.context import BillingContext
from usage_billing.models.billing_alert import BillingAlert, BillingAlertType
from usage_billing.models.shared import utc_now
from usage_billing.models.usage_quota import UNLIMITED, UsageQuota
from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.repositories.usage_quota_repository import UsageQuotaRepository

logger = logging.getLogger(__name__)


def utilization_percentage(current_usage: int, limit_value: int) -> Decimal:
    """Percentage of the limit consumed; unlimited quotas are always 0%."""
    if limit_value == UNLIMITED or limit_value < 0:
        return Decimal("0")
    if limit_value == 0:
        # Anything on a zero limit is over it; nothing on it is not.
        return Decimal("100") if current_usage > 0 else Decimal("0")
    return Decimal(current_usage) / Decimal(limit_value) * 100


def classify_utilization(
    current_usage: int,
    limit_value: int,
    warning_percentage: int = 80,
    exceeded_percentage: int = 100,
) -> tuple[BillingAlertType, int] | None:
    """Map a quota's usage to the alert it warrants, if any.

    Returns:
        ``(alert_type, threshold_percentage)`` or None below the warning level.
    """
    if limit_value == UNLIMITED:
        return None
    utilization = utilization_percentage(current_usage, limit_value)
    if utilization >= exceeded_percentage:
        return BillingAlertType.QUOTA_EXCEEDED, exceeded_percentage
    if utilization >= warning_percentage:
        return BillingAlertType.QUOTA_WARNING, math.floor(utilization)
    return None


class QuotaAlertService:
    """Raises quota alerts with at most one alert per kind per dedup window."""

    def __init__(
        self,
        db: Session,
        dedup_window: timedelta | None = None,
        warning_percentage: int | None = None,
        exceeded_percentage: int | None = None,
    ):
        self.db = db
        self.dedup_window = dedup_window or timedelta(hours=settings.ALERT_DEDUP_WINDOW_HOURS)
        self.warning_percentage = warning_percentage or settings.QUOTA_WARNING_PERCENTAGE
        self.exceeded_percentage = exceeded_percentage or settings.QUOTA_EXCEEDED_PERCENTAGE
        self.quota_repo = UsageQuotaRepository(db)
        self.alert_repo = BillingAlertRepository(db)

    def check_quota_limits(self, context: BillingContext | None = None) -> int:
        """Evaluate every limited quota and create alerts where needed.

        Args:
            context: Restrict the check to one user or organization.

        Returns:
            Number of alerts created.
        """
        alerts_created = 0
        for quota in self.quota_repo.get_limited(context):
            try:
                if self.evaluate_quota(quota) is not None:
                    alerts_created += 1
            except Exception:
                logger.exception("Failed to evaluate quota %s", quota.id)
                self.db.rollback()

        logger.info("Created %d quota alerts", alerts_created)
        return alerts_created

    def evaluate_quota(self, quota: UsageQuota) -> BillingAlert | None:
        """Create the alert a quota warrants unless one was raised recently."""
        if quota.is_unlimited:
            return None

        classification = classify_utilization(
            int(quota.current_usage or 0),
            int(quota.limit_value),
            warning_percentage=self.warning_percentage,
            exceeded_percentage=self.exceeded_percentage,
        )
        if classification is None:
            return None

        alert_type, threshold_percentage = classification
        return self.create_alert_if_absent(quota, alert_type, threshold_percentage)

    def create_alert_if_absent(
        self,
        quota: UsageQuota,
        alert_type: BillingAlertType,
        threshold_percentage: int,
    ) -> BillingAlert | None:
        """Insert an alert unless the same kind fired inside the dedup window.

        Read-then-write: concurrent runs may still both insert.
        """
        context = BillingContext.from_row(quota)
        since = utc_now() - self.dedup_window
        existing = self.alert_repo.get_recent(
            context, alert_type.value, str(quota.quota_type), since
        )
        if existing is not None:
            logger.debug("Alert already exists for %s %s", quota.quota_type, alert_type.value)
            return None

        alert = self.alert_repo.create(
            context,
            alert_type,
            quota_type=str(quota.quota_type),
            threshold_percentage=threshold_percentage,
            current_usage=int(quota.current_usage or 0),
            limit_value=int(quota.limit_value),
            metadata={
                "utilization_percentage": threshold_percentage,
                "quota_id": str(quota.id),
            },
        )
        logger.info(
            "Created %s alert for %s (%s %s)",
            alert_type.value,
            quota.quota_type,
            "org" if context.is_organization else "user",
            context.id,
        )
        return alert
