import logging
from typing import Any
from uuid import UUID

from arq import cron

from usage_billing.core.context import BillingContext
from usage_billing.core.database import SessionLocal
from usage_billing.services.alert_notification_service import AlertNotificationService
from usage_billing.services.quota_alert_service import QuotaAlertService
from usage_billing.services.quota_reset_service import QuotaResetService
from usage_billing.services.usage_processing import UsageProcessingService
from usage_billing.tasks import redis_settings

logger = logging.getLogger(__name__)


async def process_usage_events_task(ctx: dict[str, Any]) -> dict[str, int]:
    """Background task: price and invoice every unprocessed usage event.

    Runs every 15 minutes. Concurrent runs are safe because each batch is
    claimed before it is processed.
    """
    db = SessionLocal()
    try:
        result = UsageProcessingService(db).process_usage_events()
        if result.processed or result.skipped:
            logger.info(
                "Processed %d usage events, skipped %d", result.processed, result.skipped
            )
        return result.to_dict()
    finally:
        db.close()


async def check_quota_limits_task(
    ctx: dict[str, Any],
    user_id: str | None = None,
    organization_id: str | None = None,
) -> int:
    """Background task: raise warning and exceeded alerts for limited quotas."""
    db = SessionLocal()
    try:
        context = None
        if user_id or organization_id:
            context = BillingContext.of(
                user_id=UUID(user_id) if user_id else None,
                organization_id=UUID(organization_id) if organization_id else None,
            )
        count = QuotaAlertService(db).check_quota_limits(context)
        if count > 0:
            logger.info("Created %d quota alerts", count)
        return count
    finally:
        db.close()


async def send_billing_alerts_task(ctx: dict[str, Any]) -> int:
    """Background task: email unacknowledged critical billing alerts."""
    db = SessionLocal()
    try:
        return await AlertNotificationService(db).send_billing_alerts()
    finally:
        db.close()


async def reset_quotas_task(
    ctx: dict[str, Any], reset_period: str, dry_run: bool = False
) -> dict[str, Any]:
    db = SessionLocal()
    try:
        return QuotaResetService(db).reset_due_quotas(reset_period, dry_run=dry_run)
    finally:
        db.close()


async def run_maintenance_task(ctx: dict[str, Any]) -> dict[str, Any]:
    """Background task: reset every due quota and archive old acknowledged alerts.

    Runs daily. A quota is only reset once per period, so running more often
    than its period is harmless.
    """
    db = SessionLocal()
    try:
        return QuotaResetService(db).run_maintenance()
    finally:
        db.close()


class WorkerSettings:
    functions = [
        process_usage_events_task,
        check_quota_limits_task,
        send_billing_alerts_task,
        reset_quotas_task,
        run_maintenance_task,
    ]
    cron_jobs = [
        cron(process_usage_events_task, minute={0, 15, 30, 45}),
        cron(check_quota_limits_task, minute={5}),  # hourly
        cron(send_billing_alerts_task, minute={10}),  # hourly, after the quota check
        cron(run_maintenance_task, hour=0, minute=0),  # daily at midnight
    ]
    redis_settings = redis_settings
