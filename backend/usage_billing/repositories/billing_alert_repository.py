from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.billing_alert import BillingAlert, BillingAlertType
from usage_billing.models.shared import utc_now


class BillingAlertRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        context: BillingContext,
        skip: int = 0,
        limit: int = 10,
        alert_type: str | None = None,
        acknowledged: bool | None = None,
    ) -> list[BillingAlert]:
        query = context.apply(self.db.query(BillingAlert), BillingAlert)
        if alert_type is not None:
            query = query.filter(BillingAlert.alert_type == alert_type)
        if acknowledged is not None:
            query = query.filter(BillingAlert.acknowledged.is_(acknowledged))
        return (
            query.order_by(BillingAlert.triggered_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(
        self,
        context: BillingContext,
        alert_type: str | None = None,
        acknowledged: bool | None = None,
    ) -> int:
        query = context.apply(self.db.query(BillingAlert), BillingAlert)
        if alert_type is not None:
            query = query.filter(BillingAlert.alert_type == alert_type)
        if acknowledged is not None:
            query = query.filter(BillingAlert.acknowledged.is_(acknowledged))
        return query.count()

    def get_by_id(self, alert_id: UUID) -> BillingAlert | None:
        return self.db.query(BillingAlert).filter(BillingAlert.id == alert_id).first()

    def get_recent(
        self,
        context: BillingContext,
        alert_type: str,
        quota_type: str | None,
        since: datetime,
    ) -> BillingAlert | None:
        """Return an alert of the same kind triggered at or after ``since``."""
        query = context.apply(self.db.query(BillingAlert), BillingAlert).filter(
            BillingAlert.alert_type == alert_type,
            BillingAlert.quota_type == quota_type,
            BillingAlert.triggered_at >= since,
        )
        return query.order_by(BillingAlert.triggered_at.desc()).first()

    def create(
        self,
        context: BillingContext,
        alert_type: BillingAlertType,
        quota_type: str | None = None,
        threshold_percentage: int | None = None,
        current_usage: int | None = None,
        limit_value: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> BillingAlert:
        alert = BillingAlert(
            **context.row_values(),
            alert_type=alert_type.value,
            quota_type=quota_type,
            threshold_percentage=threshold_percentage,
            current_usage=current_usage,
            limit_value=limit_value,
            metadata_=metadata or {},
        )
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)
        return alert

    def get_unacknowledged(self, alert_types: tuple[BillingAlertType, ...]) -> list[BillingAlert]:
        return (
            self.db.query(BillingAlert)
            .filter(
                BillingAlert.acknowledged.is_(False),
                BillingAlert.alert_type.in_([t.value for t in alert_types]),
            )
            .order_by(BillingAlert.triggered_at.desc())
            .all()
        )

    def acknowledge(self, alert: BillingAlert) -> BillingAlert:
        alert.acknowledged = True  # type: ignore[assignment]
        alert.acknowledged_at = utc_now()  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(alert)
        return alert

    def delete(self, alert: BillingAlert) -> None:
        self.db.delete(alert)
        self.db.commit()

    def _acknowledged_before(self, cutoff: datetime):
        return self.db.query(BillingAlert.id).filter(
            BillingAlert.acknowledged.is_(True),
            BillingAlert.triggered_at < cutoff,
        )

    def count_acknowledged_before(self, cutoff: datetime) -> int:
        return self._acknowledged_before(cutoff).count()

    def delete_acknowledged_before(self, cutoff: datetime) -> int:
        ids = [row.id for row in self._acknowledged_before(cutoff).all()]
        if not ids:
            return 0
        self.db.query(BillingAlert).filter(BillingAlert.id.in_(ids)).delete(
            synchronize_session=False
        )
        self.db.commit()
        return len(ids)
