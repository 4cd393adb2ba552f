"""Read-side rollups of usage events for reporting and dashboards."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.models.shared import as_utc, utc_now
from usage_billing.repositories.usage_event_repository import UsageEventRepository

TIME_RANGE_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}


@dataclass
class UsageAggregation:
    event_type: str
    total_quantity: int = 0
    total_cost: Decimal = Decimal("0")
    event_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventType": self.event_type,
            "totalQuantity": self.total_quantity,
            "totalCost": self.total_cost,
            "eventCount": self.event_count,
        }


@dataclass
class DailyUsage:
    date: str
    usage: int = 0
    cost: Decimal = Decimal("0")


@dataclass
class UsageAnalytics:
    total_usage: int = 0
    usage_by_type: dict[str, int] = field(default_factory=dict)
    usage_trend: list[DailyUsage] = field(default_factory=list)


class UsageAggregationService:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = UsageEventRepository(db)

    def aggregate_monthly(
        self,
        from_timestamp: datetime,
        to_timestamp: datetime,
        context: BillingContext | None = None,
    ) -> dict[str, dict[str, UsageAggregation]]:
        """Group processed events by context and event type.

        Does not mutate anything; billing correctness lives in per-event
        invoicing, not in these totals.

        Returns:
            Mapping of context id to event type to aggregation.
        """
        aggregations: dict[str, dict[str, UsageAggregation]] = defaultdict(dict)

        events = self.event_repo.get_processed_between(from_timestamp, to_timestamp, context)
        for event in events:
            context_key = str(event.organization_id or event.user_id)
            event_type = str(event.event_type)
            agg = aggregations[context_key].get(event_type)
            if agg is None:
                agg = aggregations[context_key][event_type] = UsageAggregation(event_type)

            quantity = int(event.quantity or 0)
            unit_price = Decimal(str(event.unit_price)) if event.unit_price is not None else Decimal("0")
            agg.total_quantity += quantity
            agg.total_cost += unit_price * quantity
            agg.event_count += 1

        return dict(aggregations)

    def get_usage_analytics(
        self,
        context: BillingContext,
        time_range: str = "30d",
        event_type: str | None = None,
        now: datetime | None = None,
    ) -> UsageAnalytics:
        """Summarize a context's usage over a trailing time range."""
        if time_range not in TIME_RANGE_DAYS:
            raise ValueError(f"Invalid time range: {time_range}")

        end = now or utc_now()
        start = end - timedelta(days=TIME_RANGE_DAYS[time_range])
        events = self.event_repo.get_for_context(context, start, end, event_type=event_type)

        analytics = UsageAnalytics()
        daily: dict[str, DailyUsage] = {}
        for event in events:
            quantity = int(event.quantity or 0)
            analytics.total_usage += quantity
            event_type_key = str(event.event_type)
            analytics.usage_by_type[event_type_key] = (
                analytics.usage_by_type.get(event_type_key, 0) + quantity
            )

            day = as_utc(event.created_at).date().isoformat()  # type: ignore[arg-type]
            point = daily.setdefault(day, DailyUsage(date=day))
            point.usage += quantity
            if event.unit_price is not None:
                point.cost += Decimal(str(event.unit_price)) * quantity

        analytics.usage_trend = [daily[day] for day in sorted(daily)]
        return analytics
