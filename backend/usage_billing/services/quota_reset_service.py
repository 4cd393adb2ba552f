"""Scheduled quota resets and billing alert housekeeping."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from usage_billing.core.config import settings
from usage_billing.models.shared import as_utc, utc_now
from usage_billing.models.usage_quota import ResetPeriod
from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.repositories.usage_quota_repository import UsageQuotaRepository

logger = logging.getLogger(__name__)

MAINTENANCE = "maintenance"


def period_start(reset_period: str, now: datetime) -> datetime:
    """Start of the current reset period (UTC); weeks start on Sunday."""
    midnight = datetime(now.year, now.month, now.day, tzinfo=UTC)
    if reset_period == ResetPeriod.DAILY.value:
        return midnight
    if reset_period == ResetPeriod.WEEKLY.value:
        days_since_sunday = (now.weekday() + 1) % 7
        return midnight - timedelta(days=days_since_sunday)
    if reset_period == ResetPeriod.MONTHLY.value:
        return datetime(now.year, now.month, 1, tzinfo=UTC)
    if reset_period == ResetPeriod.YEARLY.value:
        return datetime(now.year, 1, 1, tzinfo=UTC)
    raise ValueError(f"Invalid reset period: {reset_period}")


class QuotaResetService:
    def __init__(self, db: Session):
        self.db = db
        self.quota_repo = UsageQuotaRepository(db)
        self.alert_repo = BillingAlertRepository(db)

    def run(self, reset_type: str | None = None, dry_run: bool = False) -> dict[str, Any]:
        """Reset one period's quotas, or run full maintenance.

        Raises:
            ValueError: If ``reset_type`` is neither a reset period nor
                ``maintenance``.
        """
        if reset_type in {p.value for p in ResetPeriod}:
            return self.reset_due_quotas(reset_type, dry_run=dry_run)  # type: ignore[arg-type]
        if reset_type in (None, "", MAINTENANCE):
            return self.run_maintenance(dry_run=dry_run)
        raise ValueError(f"Invalid reset type: {reset_type}")

    def reset_due_quotas(
        self,
        reset_period: str,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Zero every quota of ``reset_period`` whose period has rolled over."""
        now = now or utc_now()
        boundary = period_start(reset_period, now)

        quotas = self.quota_repo.get_by_reset_period(reset_period)
        due = [q for q in quotas if as_utc(q.last_reset) < boundary]  # type: ignore[arg-type]
        summaries = [
            {
                "id": str(q.id),
                "quota_type": q.quota_type,
                "user_id": str(q.user_id) if q.user_id else None,
                "organization_id": str(q.organization_id) if q.organization_id else None,
                "previous_usage": int(q.current_usage or 0),
            }
            for q in due
        ]

        if dry_run:
            logger.info("DRY RUN: %d %s quotas would be reset", len(due), reset_period)
            return {
                "resetCount": len(due),
                "totalChecked": len(quotas),
                "quotasToReset": len(due),
                "quotas": summaries,
                "dryRun": True,
            }

        reset_count = 0
        for quota in due:
            quota_id = quota.id
            try:
                self.quota_repo.reset(quota, reset_at=now)
                reset_count += 1
            except Exception:
                logger.exception("Failed to reset quota %s", quota_id)
                self.db.rollback()

        logger.info(
            "Reset %d out of %d %s quotas", reset_count, len(due), reset_period
        )
        return {
            "resetCount": reset_count,
            "totalChecked": len(quotas),
            "quotasToReset": len(due),
            "quotas": summaries,
        }

    def archive_acknowledged_alerts(
        self,
        days_to_keep: int | None = None,
        now: datetime | None = None,
        dry_run: bool = False,
    ) -> dict[str, Any]:
        """Delete acknowledged alerts triggered before the retention cutoff."""
        days = days_to_keep if days_to_keep is not None else settings.ALERT_RETENTION_DAYS
        cutoff = (now or utc_now()) - timedelta(days=days)

        if dry_run:
            count = self.alert_repo.count_acknowledged_before(cutoff)
            logger.info("DRY RUN: %d old billing alerts would be archived", count)
            return {"alertsToArchive": count, "dryRun": True}

        archived = self.alert_repo.delete_acknowledged_before(cutoff)
        logger.info("Archived %d old billing alerts", archived)
        return {"archivedCount": archived}

    def run_maintenance(
        self, now: datetime | None = None, dry_run: bool = False
    ) -> dict[str, Any]:
        """Reset every period and archive old alerts, isolating failures.

        A dry run only reports what each step would change. Usage events are
        an audit trail and are never deleted here.
        """
        results: dict[str, Any] = {"quotaResets": {}, "alerts": {}}

        for reset_period in ResetPeriod:
            try:
                results["quotaResets"][reset_period.value] = self.reset_due_quotas(
                    reset_period.value, dry_run=dry_run, now=now
                )
            except Exception as e:
                logger.exception("Failed to reset %s quotas", reset_period.value)
                self.db.rollback()
                results["quotaResets"][reset_period.value] = {"error": str(e)}

        try:
            results["alerts"] = self.archive_acknowledged_alerts(now=now, dry_run=dry_run)
        except Exception as e:
            logger.exception("Failed to archive billing alerts")
            self.db.rollback()
            results["alerts"] = {"error": str(e)}

        return results
