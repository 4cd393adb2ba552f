"""Dispatcher for the billing processor batch actions."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.services.alert_notification_service import AlertNotificationService
from usage_billing.services.quota_alert_service import QuotaAlertService
from usage_billing.services.usage_aggregation import UsageAggregationService
from usage_billing.services.usage_processing import UsageProcessingService

logger = logging.getLogger(__name__)


class BillingAction(str, Enum):
    PROCESS_USAGE = "process_usage"
    AGGREGATE_MONTHLY = "aggregate_monthly"
    CHECK_QUOTAS = "check_quotas"
    SEND_ALERTS = "send_alerts"


class BillingProcessor:
    """Runs one billing action to completion and returns its result payload."""

    def __init__(
        self,
        db: Session,
        usage_service: UsageProcessingService | None = None,
        aggregation_service: UsageAggregationService | None = None,
        alert_service: QuotaAlertService | None = None,
        notification_service: AlertNotificationService | None = None,
    ):
        self.db = db
        self.usage_service = usage_service or UsageProcessingService(db)
        self.aggregation_service = aggregation_service or UsageAggregationService(db)
        self.alert_service = alert_service or QuotaAlertService(db)
        self.notification_service = notification_service or AlertNotificationService(db)

    async def run(
        self,
        action: str,
        period: tuple[datetime, datetime] | None = None,
        context: BillingContext | None = None,
    ) -> dict[str, Any]:
        """Execute ``action``.

        Args:
            action: One of the ``BillingAction`` values.
            period: Optional ``(start, end)`` window; required for
                ``aggregate_monthly``.
            context: Optional user or organization scope.

        Raises:
            ValueError: Unknown action, or a missing period for monthly
                aggregation.
        """
        logger.info("Running billing action %s", action)

        if action == BillingAction.PROCESS_USAGE.value:
            start, end = period if period else (None, None)
            return self.usage_service.process_usage_events(start, end, context=context).to_dict()

        if action == BillingAction.AGGREGATE_MONTHLY.value:
            if not period:
                raise ValueError("Period is required for monthly aggregation")
            aggregations = self.aggregation_service.aggregate_monthly(
                period[0], period[1], context=context
            )
            logger.info("Aggregated usage for %d contexts", len(aggregations))
            return {
                context_key: {event_type: agg.to_dict() for event_type, agg in by_type.items()}
                for context_key, by_type in aggregations.items()
            }

        if action == BillingAction.CHECK_QUOTAS.value:
            return {"alertsCreated": self.alert_service.check_quota_limits(context)}

        if action == BillingAction.SEND_ALERTS.value:
            return {"emailsSent": await self.notification_service.send_billing_alerts()}

        raise ValueError(f"Unknown action: {action}")
