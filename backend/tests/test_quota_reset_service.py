"""Tests for scheduled quota resets and alert archiving."""

from datetime import UTC, datetime, timedelta

import pytest

from usage_billing.core.context import BillingContext
from usage_billing.models.billing_alert import BillingAlert, BillingAlertType
from usage_billing.models.usage_event import UsageEvent
from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.services.quota_reset_service import QuotaResetService, period_start
from tests.conftest import create_event, create_profile, create_quota

# A Wednesday
NOW = datetime(2026, 10, 14, 15, 30, tzinfo=UTC)


class TestPeriodStart:
    def test_daily(self) -> None:
        assert period_start("daily", NOW) == datetime(2026, 10, 14, tzinfo=UTC)

    def test_weekly_starts_on_sunday(self) -> None:
        assert period_start("weekly", NOW) == datetime(2026, 10, 11, tzinfo=UTC)

    def test_weekly_on_sunday_is_same_day(self) -> None:
        sunday = datetime(2026, 10, 11, 8, 0, tzinfo=UTC)
        assert period_start("weekly", sunday) == datetime(2026, 10, 11, tzinfo=UTC)

    def test_monthly(self) -> None:
        assert period_start("monthly", NOW) == datetime(2026, 10, 1, tzinfo=UTC)

    def test_yearly(self) -> None:
        assert period_start("yearly", NOW) == datetime(2026, 1, 1, tzinfo=UTC)

    def test_invalid(self) -> None:
        with pytest.raises(ValueError, match="Invalid reset period"):
            period_start("hourly", NOW)


class TestResetDueQuotas:
    def test_resets_only_quotas_from_previous_period(self, db_session):
        user = create_profile(db_session)
        due = create_quota(
            db_session, "api_calls", current_usage=500, user_id=user.id,
            last_reset=datetime(2026, 9, 1, tzinfo=UTC),
        )
        fresh = create_quota(
            db_session, "exports", current_usage=5, user_id=user.id,
            last_reset=datetime(2026, 10, 1, tzinfo=UTC),
        )
        create_quota(
            db_session, "backups", current_usage=7, user_id=user.id, reset_period="daily",
            last_reset=datetime(2026, 9, 1, tzinfo=UTC),
        )

        result = QuotaResetService(db_session).reset_due_quotas("monthly", now=NOW)

        assert result["resetCount"] == 1
        assert result["totalChecked"] == 2
        assert result["quotasToReset"] == 1
        assert result["quotas"] == [
            {
                "id": str(due.id),
                "quota_type": "api_calls",
                "user_id": str(user.id),
                "organization_id": None,
                "previous_usage": 500,
            }
        ]
        assert "dryRun" not in result
        db_session.refresh(due)
        db_session.refresh(fresh)
        assert due.current_usage == 0
        assert due.last_reset.replace(tzinfo=UTC) == NOW
        assert fresh.current_usage == 5

    def test_dry_run_does_not_mutate(self, db_session):
        user = create_profile(db_session)
        quota = create_quota(
            db_session, current_usage=500, user_id=user.id,
            last_reset=datetime(2026, 9, 1, tzinfo=UTC),
        )

        result = QuotaResetService(db_session).reset_due_quotas("monthly", dry_run=True, now=NOW)

        assert result["dryRun"] is True
        assert result["resetCount"] == 1
        db_session.refresh(quota)
        assert quota.current_usage == 500

    def test_second_run_in_same_period_resets_nothing(self, db_session):
        user = create_profile(db_session)
        create_quota(
            db_session, current_usage=500, user_id=user.id,
            last_reset=datetime(2026, 9, 1, tzinfo=UTC),
        )
        service = QuotaResetService(db_session)

        service.reset_due_quotas("monthly", now=NOW)
        again = service.reset_due_quotas("monthly", now=NOW + timedelta(days=1))

        assert again["resetCount"] == 0


class TestRun:
    def test_period_reset(self, db_session):
        result = QuotaResetService(db_session).run("weekly", dry_run=True)
        assert result["dryRun"] is True

    @pytest.mark.parametrize("reset_type", [None, "", "maintenance"])
    def test_maintenance(self, db_session, reset_type):
        result = QuotaResetService(db_session).run(reset_type)
        assert set(result) == {"quotaResets", "alerts"}

    def test_invalid_reset_type(self, db_session):
        with pytest.raises(ValueError, match="Invalid reset type: hourly"):
            QuotaResetService(db_session).run("hourly")


class TestMaintenance:
    def test_resets_every_period_and_archives_alerts(self, db_session):
        user = create_profile(db_session)
        context = BillingContext.of(user_id=user.id)
        create_quota(
            db_session, "api_calls", current_usage=10, user_id=user.id, reset_period="daily",
            last_reset=NOW - timedelta(days=2),
        )
        repo = BillingAlertRepository(db_session)
        old = repo.create(context, BillingAlertType.QUOTA_EXCEEDED, quota_type="api_calls")
        repo.acknowledge(old)
        old.triggered_at = NOW - timedelta(days=45)
        unacknowledged = repo.create(context, BillingAlertType.QUOTA_WARNING, quota_type="api_calls")
        unacknowledged.triggered_at = NOW - timedelta(days=45)
        db_session.commit()
        event = create_event(db_session, user_id=user.id, created_at=NOW - timedelta(days=400))

        result = QuotaResetService(db_session).run_maintenance(now=NOW)

        assert set(result["quotaResets"]) == {"daily", "weekly", "monthly", "yearly"}
        assert result["quotaResets"]["daily"]["resetCount"] == 1
        assert result["alerts"] == {"archivedCount": 1}
        remaining = db_session.query(BillingAlert).all()
        assert [a.id for a in remaining] == [unacknowledged.id]
        assert db_session.query(UsageEvent).filter(UsageEvent.id == event.id).count() == 1

    def test_dry_run_reports_without_mutating(self, db_session):
        user = create_profile(db_session)
        quota = create_quota(
            db_session, "api_calls", current_usage=10, user_id=user.id, reset_period="daily",
            last_reset=NOW - timedelta(days=2),
        )
        repo = BillingAlertRepository(db_session)
        context = BillingContext.of(user_id=user.id)
        old = repo.create(context, BillingAlertType.QUOTA_EXCEEDED, quota_type="api_calls")
        repo.acknowledge(old)
        old.triggered_at = NOW - timedelta(days=45)
        db_session.commit()

        result = QuotaResetService(db_session).run_maintenance(now=NOW, dry_run=True)

        assert result["quotaResets"]["daily"]["quotasToReset"] == 1
        assert result["quotaResets"]["daily"]["dryRun"] is True
        assert result["alerts"] == {"alertsToArchive": 1, "dryRun": True}
        db_session.refresh(quota)
        assert quota.current_usage == 10
        assert db_session.query(BillingAlert).count() == 1

    def test_archive_respects_retention(self, db_session):
        user = create_profile(db_session)
        repo = BillingAlertRepository(db_session)
        recent = repo.create(BillingContext.of(user_id=user.id), BillingAlertType.PAYMENT_FAILED)
        repo.acknowledge(recent)

        result = QuotaResetService(db_session).archive_acknowledged_alerts(days_to_keep=30)

        assert result == {"archivedCount": 0}
