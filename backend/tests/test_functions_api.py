"""Tests for the batch job endpoints under /functions."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from usage_billing.main import app
from usage_billing.models.billing_alert import BillingAlert
from usage_billing.models.usage_event import UsageEvent
from tests.conftest import DEFAULT_ORG_ID, create_event, create_profile, create_quota


@pytest.fixture
def client():
    return TestClient(app)


class TestBillingProcessorEndpoint:
    def test_process_usage(self, client, db_session):
        user = create_profile(db_session, stripe_customer_id=None)
        create_event(db_session, "api_call", quantity=10, user_id=user.id)

        response = client.post("/functions/billing-processor", json={"action": "process_usage"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["action"] == "process_usage"
        assert body["result"] == {"processed": 1, "skipped": 0}
        assert "timestamp" in body
        db_session.expire_all()
        assert db_session.query(UsageEvent).filter(UsageEvent.processed.is_(False)).count() == 0

    def test_process_usage_scoped_to_organization(self, client, db_session):
        user = create_profile(db_session)
        create_event(db_session, "api_call", user_id=user.id)
        create_event(db_session, "api_call", organization_id=DEFAULT_ORG_ID)

        response = client.post(
            "/functions/billing-processor",
            json={"action": "process_usage", "organizationId": str(DEFAULT_ORG_ID)},
        )

        assert response.json()["result"] == {"processed": 1, "skipped": 0}

    def test_process_usage_period_with_offset_is_compared_in_utc(self, client, db_session):
        user = create_profile(db_session, stripe_customer_id=None)
        event = create_event(
            db_session,
            "api_call",
            user_id=user.id,
            created_at=datetime(2026, 9, 1, 1, 0, tzinfo=UTC),
        )

        # 22:00Z to 00:30Z, before the event
        response = client.post(
            "/functions/billing-processor",
            json={
                "action": "process_usage",
                "period": {
                    "start": "2026-09-01T00:00:00+02:00",
                    "end": "2026-09-01T02:30:00+02:00",
                },
            },
        )

        assert response.status_code == 200
        assert response.json()["result"] == {"processed": 0, "skipped": 0}
        db_session.expire_all()
        assert db_session.get(UsageEvent, event.id).processed is False

        # 00:30Z to 02:00Z, around the event
        response = client.post(
            "/functions/billing-processor",
            json={
                "action": "process_usage",
                "period": {
                    "start": "2026-09-01T02:30:00+02:00",
                    "end": "2026-09-01T04:00:00+02:00",
                },
            },
        )

        assert response.json()["result"] == {"processed": 1, "skipped": 0}

    def test_aggregate_monthly(self, client, db_session):
        start = datetime(2026, 9, 1, tzinfo=UTC)
        create_event(
            db_session,
            "custom_domain",
            quantity=2,
            organization_id=DEFAULT_ORG_ID,
            created_at=start + timedelta(days=3),
            unit_price=Decimal("5.00"),
            processed=True,
        )

        response = client.post(
            "/functions/billing-processor",
            json={
                "action": "aggregate_monthly",
                "period": {"start": "2026-09-01T00:00:00Z", "end": "2026-09-30T23:59:59Z"},
            },
        )

        assert response.status_code == 200
        agg = response.json()["result"][str(DEFAULT_ORG_ID)]["custom_domain"]
        assert agg["eventType"] == "custom_domain"
        assert agg["totalQuantity"] == 2
        assert agg["totalCost"] == pytest.approx(10.0)
        assert agg["eventCount"] == 1

    def test_aggregate_monthly_without_period_fails(self, client):
        response = client.post(
            "/functions/billing-processor", json={"action": "aggregate_monthly"}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Period is required for monthly aggregation"
        assert "timestamp" in body

    def test_check_quotas(self, client, db_session):
        create_quota(db_session, limit_value=100, current_usage=100, organization_id=DEFAULT_ORG_ID)

        response = client.post("/functions/billing-processor", json={"action": "check_quotas"})

        assert response.status_code == 200
        assert response.json()["result"] == {"alertsCreated": 1}
        assert db_session.query(BillingAlert).count() == 1

    def test_send_alerts(self, client, db_session):
        create_quota(db_session, limit_value=100, current_usage=100, organization_id=DEFAULT_ORG_ID)
        client.post("/functions/billing-processor", json={"action": "check_quotas"})

        with patch("usage_billing.services.email_service.settings") as mock_settings:
            mock_settings.EMAIL_PROVIDER_API_KEY = ""
            mock_settings.SMTP_HOST = ""
            response = client.post("/functions/billing-processor", json={"action": "send_alerts"})

        assert response.status_code == 200
        assert response.json()["result"] == {"emailsSent": 1}

    def test_unknown_action(self, client):
        response = client.post("/functions/billing-processor", json={"action": "explode"})

        assert response.status_code == 500
        assert response.json()["error"] == "Unknown action: explode"

    def test_missing_action(self, client):
        response = client.post("/functions/billing-processor", json={})

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestQuotaResetEndpoint:
    def test_period_reset_dry_run(self, client, db_session):
        user = create_profile(db_session)
        create_quota(
            db_session,
            current_usage=40,
            user_id=user.id,
            reset_period="daily",
            last_reset=datetime.now(UTC) - timedelta(days=3),
        )

        response = client.post(
            "/functions/quota-reset", json={"resetType": "daily", "dryRun": True}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["resetType"] == "daily"
        assert body["dryRun"] is True
        assert body["result"]["quotasToReset"] == 1
        assert body["result"]["quotas"][0]["previous_usage"] == 40

    def test_maintenance_by_default(self, client):
        response = client.post("/functions/quota-reset", json={})

        assert response.status_code == 200
        body = response.json()
        assert body["resetType"] is None
        assert body["dryRun"] is False
        assert set(body["result"]) == {"quotaResets", "alerts"}

    def test_maintenance_dry_run_leaves_quotas(self, client, db_session):
        user = create_profile(db_session)
        quota = create_quota(
            db_session,
            current_usage=40,
            user_id=user.id,
            reset_period="daily",
            last_reset=datetime.now(UTC) - timedelta(days=3),
        )

        response = client.post(
            "/functions/quota-reset", json={"resetType": "maintenance", "dryRun": True}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["dryRun"] is True
        assert body["result"]["quotaResets"]["daily"]["quotasToReset"] == 1
        assert body["result"]["alerts"]["dryRun"] is True
        db_session.refresh(quota)
        assert quota.current_usage == 40

    def test_invalid_reset_type(self, client):
        response = client.post("/functions/quota-reset", json={"resetType": "hourly"})

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid reset type: hourly"
