"""Tests for the /v1/usage endpoints."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from usage_billing.main import app
from usage_billing.models.shared import utc_now
from usage_billing.models.usage_event import UsageEvent
from tests.conftest import DEFAULT_ORG_ID, create_event, create_profile, create_quota


@pytest.fixture
def client():
    return TestClient(app)


class TestTrackUsage:
    def test_tracks_event_and_returns_quota_status(self, client, db_session):
        create_quota(db_session, "api_calls", limit_value=100, current_usage=50, organization_id=DEFAULT_ORG_ID)

        response = client.post(
            "/v1/usage/track",
            json={
                "organization_id": str(DEFAULT_ORG_ID),
                "event_type": "api_call",
                "quantity": 30,
                "metadata": {"endpoint": "/v1/things"},
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["event"]["event_type"] == "api_call"
        assert body["event"]["quantity"] == 30
        assert body["event"]["processed"] is False
        assert body["event"]["metadata"] == {"endpoint": "/v1/things"}
        assert body["quota_status"] == {
            "current": 80,
            "limit": 100,
            "remaining": 20,
            "percentage": 80.0,
        }
        assert [a["alert_type"] for a in body["alerts"]] == ["quota_warning"]
        assert db_session.query(UsageEvent).count() == 1

    def test_defaults_quantity_to_one(self, client, db_session):
        user = create_profile(db_session)

        response = client.post(
            "/v1/usage/track", json={"user_id": str(user.id), "event_type": "email_sent"}
        )

        assert response.status_code == 201
        assert response.json()["event"]["quantity"] == 1
        assert response.json()["quota_status"]["remaining"] is None

    @pytest.mark.parametrize("quantity", [0, -5])
    def test_rejects_non_positive_quantity(self, client, quantity):
        response = client.post(
            "/v1/usage/track",
            json={
                "organization_id": str(DEFAULT_ORG_ID),
                "event_type": "api_call",
                "quantity": quantity,
            },
        )

        assert response.status_code == 422

    def test_rejects_unknown_event_type(self, client):
        response = client.post(
            "/v1/usage/track",
            json={"organization_id": str(DEFAULT_ORG_ID), "event_type": "teleport"},
        )

        assert response.status_code == 422

    def test_requires_context(self, client):
        response = client.post("/v1/usage/track", json={"event_type": "api_call"})

        assert response.status_code == 422


class TestCheckQuota:
    def test_would_exceed(self, client, db_session):
        create_quota(db_session, "exports", limit_value=10, current_usage=8, organization_id=DEFAULT_ORG_ID)

        response = client.post(
            "/v1/usage/check-quota",
            json={
                "organization_id": str(DEFAULT_ORG_ID),
                "quota_type": "exports",
                "requested_amount": 5,
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "allowed": False,
            "remaining": 2,
            "would_exceed": True,
            "upgrade_required": True,
            "suggested_plan": "pro",
        }

    def test_missing_quota_is_allowed(self, client):
        response = client.post(
            "/v1/usage/check-quota",
            json={"organization_id": str(DEFAULT_ORG_ID), "quota_type": "backups"},
        )

        assert response.status_code == 200
        assert response.json()["allowed"] is True
        assert response.json()["remaining"] is None


class TestUsageAnalytics:
    def test_returns_totals(self, client, db_session):
        now = utc_now()
        create_event(
            db_session, "api_call", quantity=7, organization_id=DEFAULT_ORG_ID,
            created_at=now - timedelta(days=1),
        )
        create_event(
            db_session, "email_sent", quantity=2, organization_id=DEFAULT_ORG_ID,
            created_at=now - timedelta(days=1),
        )

        response = client.get(
            "/v1/usage/analytics",
            params={"organization_id": str(DEFAULT_ORG_ID), "time_range": "7d"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["time_range"] == "7d"
        assert body["total_usage"] == 9
        assert body["usage_by_type"] == {"api_call": 7, "email_sent": 2}
        assert len(body["usage_trend"]) == 1

    def test_invalid_time_range(self, client):
        response = client.get(
            "/v1/usage/analytics",
            params={"organization_id": str(DEFAULT_ORG_ID), "time_range": "2w"},
        )

        assert response.status_code == 422

    def test_requires_context(self, client):
        response = client.get("/v1/usage/analytics")

        assert response.status_code == 400
        assert response.json()["detail"] == "Either user_id or organization_id is required"
