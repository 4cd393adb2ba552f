"""Service for recording usage events and keeping quotas current."""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.billing_alert import BillingAlert
from usage_billing.models.shared import utc_now
from usage_billing.models.usage_event import UsageEvent, UsageEventType
from usage_billing.models.usage_quota import UNLIMITED, QuotaType
from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.repositories.usage_event_repository import UsageEventRepository
from usage_billing.repositories.usage_quota_repository import UsageQuotaRepository
from usage_billing.services.quota_alert_service import QuotaAlertService, utilization_percentage

logger = logging.getLogger(__name__)

EVENT_QUOTA_TYPES: dict[str, str] = {
    UsageEventType.API_CALL.value: QuotaType.API_CALLS.value,
    UsageEventType.STORAGE_USED.value: QuotaType.STORAGE_GB.value,
    UsageEventType.EMAIL_SENT.value: QuotaType.EMAIL_SENDS.value,
    UsageEventType.EXPORT_GENERATED.value: QuotaType.EXPORTS.value,
    UsageEventType.BACKUP_CREATED.value: QuotaType.BACKUPS.value,
    UsageEventType.CUSTOM_DOMAIN.value: QuotaType.CUSTOM_DOMAINS.value,
}

RECENT_ALERT_LIMIT = 5


def current_billing_period(now: datetime) -> tuple[datetime, datetime]:
    """Calendar month containing ``now``, ending at 23:59:59 on its last day."""
    start = datetime(now.year, now.month, 1, tzinfo=UTC)
    last_day = calendar.monthrange(now.year, now.month)[1]
    end = datetime(now.year, now.month, last_day, 23, 59, 59, tzinfo=UTC)
    return start, end


@dataclass
class QuotaStatus:
    current: int
    limit: int
    remaining: int | None
    percentage: float


@dataclass
class TrackingResult:
    event: UsageEvent
    quota_status: QuotaStatus
    alerts: list[BillingAlert] = field(default_factory=list)


class UsageTrackingService:
    def __init__(self, db: Session, alert_service: QuotaAlertService | None = None):
        self.db = db
        self.event_repo = UsageEventRepository(db)
        self.quota_repo = UsageQuotaRepository(db)
        self.alert_repo = BillingAlertRepository(db)
        self.alert_service = alert_service or QuotaAlertService(db)

    def track_usage(
        self,
        context: BillingContext,
        event_type: str,
        quantity: int = 1,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> TrackingResult:
        """Record a usage event and apply it to the matching quota.

        Raises:
            ValueError: If quantity is not positive.
        """
        if quantity <= 0:
            raise ValueError("quantity must be a positive integer")

        period_start, period_end = current_billing_period(now or utc_now())
        event = self.event_repo.create(
            context,
            event_type=event_type,
            quantity=quantity,
            billing_period_start=period_start,
            billing_period_end=period_end,
            metadata=metadata,
        )

        quota_type = EVENT_QUOTA_TYPES.get(event_type)
        quota = self.quota_repo.get_for_context(context, quota_type) if quota_type else None
        if quota is None:
            return TrackingResult(
                event=event,
                quota_status=QuotaStatus(
                    current=quantity, limit=UNLIMITED, remaining=None, percentage=0.0
                ),
            )

        quota = self.quota_repo.increment(quota, quantity)
        self.alert_service.evaluate_quota(quota)

        current = int(quota.current_usage)
        limit = int(quota.limit_value)
        status = QuotaStatus(
            current=current,
            limit=limit,
            remaining=None if quota.is_unlimited else max(0, limit - current),
            percentage=float(utilization_percentage(current, limit)),
        )
        alerts = self.alert_repo.get_all(context, limit=RECENT_ALERT_LIMIT, acknowledged=False)
        return TrackingResult(event=event, quota_status=status, alerts=alerts)
