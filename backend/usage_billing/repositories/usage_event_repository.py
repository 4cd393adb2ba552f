import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.shared import utc_now
from usage_billing.models.usage_event import UsageEvent

logger = logging.getLogger(__name__)


class UsageEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: UUID) -> UsageEvent | None:
        return self.db.query(UsageEvent).filter(UsageEvent.id == event_id).first()

    def create(
        self,
        context: BillingContext,
        event_type: str,
        quantity: int,
        billing_period_start: datetime | None = None,
        billing_period_end: datetime | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> UsageEvent:
        event = UsageEvent(
            **context.row_values(),
            event_type=event_type,
            quantity=quantity,
            billing_period_start=billing_period_start,
            billing_period_end=billing_period_end,
            metadata_=metadata or {},
            processed=False,
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def claim_batch(
        self,
        limit: int,
        lease_seconds: int,
        from_timestamp: datetime | None = None,
        to_timestamp: datetime | None = None,
        context: BillingContext | None = None,
        exclude_ids: set[UUID] | None = None,
    ) -> list[UsageEvent]:
        """Atomically claim the next batch of unprocessed events.

        The conditional UPDATE only touches rows that are still unprocessed and
        unclaimed (or whose lease has expired), so two concurrent runs never
        receive the same event. Rows are returned oldest first.
        """
        now = utc_now()
        lease_cutoff = now - timedelta(seconds=lease_seconds)
        claimable = [
            UsageEvent.processed.is_(False),
            or_(UsageEvent.claim_token.is_(None), UsageEvent.claimed_at < lease_cutoff),
        ]

        candidates = select(UsageEvent.id).where(*claimable)
        if from_timestamp is not None:
            candidates = candidates.where(UsageEvent.created_at >= from_timestamp)
        if to_timestamp is not None:
            candidates = candidates.where(UsageEvent.created_at <= to_timestamp)
        if context is not None:
            candidates = context.apply(candidates, UsageEvent)
        if exclude_ids:
            candidates = candidates.where(UsageEvent.id.not_in(exclude_ids))
        candidates = candidates.order_by(UsageEvent.created_at.asc()).limit(limit)

        token = str(uuid4())
        self.db.execute(
            update(UsageEvent)
            .where(UsageEvent.id.in_(candidates), *claimable)
            .values(claim_token=token, claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        return (
            self.db.query(UsageEvent)
            .filter(UsageEvent.claim_token == token)
            .order_by(UsageEvent.created_at.asc())
            .populate_existing()
            .all()
        )

    def release_claim(self, event_id: UUID) -> None:
        self.db.execute(
            update(UsageEvent)
            .where(UsageEvent.id == event_id, UsageEvent.processed.is_(False))
            .values(claim_token=None, claimed_at=None)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def mark_processed(self, event: UsageEvent, unit_price: Decimal) -> None:
        """Stage the processed flag and resolved price; the caller commits."""
        event.unit_price = unit_price  # type: ignore[assignment]
        event.processed = True  # type: ignore[assignment]
        event.processed_at = utc_now()  # type: ignore[assignment]
        event.claim_token = None  # type: ignore[assignment]
        event.claimed_at = None  # type: ignore[assignment]

    def get_processed_between(
        self,
        from_timestamp: datetime,
        to_timestamp: datetime,
        context: BillingContext | None = None,
    ) -> list[UsageEvent]:
        query = self.db.query(UsageEvent).filter(
            UsageEvent.processed.is_(True),
            UsageEvent.created_at >= from_timestamp,
            UsageEvent.created_at <= to_timestamp,
        )
        if context is not None:
            query = context.apply(query, UsageEvent)
        return query.order_by(UsageEvent.created_at.asc()).all()

    def get_for_context(
        self,
        context: BillingContext,
        from_timestamp: datetime,
        to_timestamp: datetime,
        event_type: str | None = None,
    ) -> list[UsageEvent]:
        query = context.apply(self.db.query(UsageEvent), UsageEvent).filter(
            UsageEvent.created_at >= from_timestamp,
            UsageEvent.created_at <= to_timestamp,
        )
        if event_type:
            query = query.filter(UsageEvent.event_type == event_type)
        return query.order_by(UsageEvent.created_at.asc()).all()

    def count_unprocessed(self) -> int:
        return self.db.query(UsageEvent).filter(UsageEvent.processed.is_(False)).count()
