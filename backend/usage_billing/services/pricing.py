"""Metered pricing for usage events.

Unit prices are in major currency units. The built-in table can be overridden
per event type through rows in ``usage_prices``.
"""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from usage_billing.models.usage_event import UsageEvent, UsageEventType
from usage_billing.repositories.usage_price_repository import UsagePriceRepository

DEFAULT_METERED_PRICING: dict[str, Decimal] = {
    UsageEventType.API_CALL.value: Decimal("0.001"),
    UsageEventType.STORAGE_USED.value: Decimal("0.10"),  # per GB per month
    UsageEventType.EMAIL_SENT.value: Decimal("0.001"),
    UsageEventType.EXPORT_GENERATED.value: Decimal("0.05"),
    UsageEventType.BACKUP_CREATED.value: Decimal("0.10"),
    UsageEventType.CUSTOM_DOMAIN.value: Decimal("5.00"),  # per domain per month
    UsageEventType.ADVANCED_FEATURE.value: Decimal("0.01"),
}


def calculate_cost(quantity: int, unit_price: Decimal) -> Decimal:
    return Decimal(quantity) * unit_price


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to integer cents, rounding half up."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PriceTable:
    """Lookup from event type to unit price. Unknown types price at zero."""

    def __init__(self, prices: Mapping[str, Decimal] | None = None):
        self._prices = dict(DEFAULT_METERED_PRICING if prices is None else prices)

    @classmethod
    def load(cls, db: Session) -> "PriceTable":
        """Build the table from the defaults overlaid with stored overrides."""
        prices = dict(DEFAULT_METERED_PRICING)
        for row in UsagePriceRepository(db).get_all():
            prices[str(row.event_type)] = Decimal(str(row.unit_price))
        return cls(prices)

    def unit_price_for(self, event_type: str) -> Decimal:
        return self._prices.get(event_type, Decimal("0"))

    def resolve_unit_price(self, event: UsageEvent) -> Decimal:
        """Prefer the price stored on the event, else the table price."""
        if event.unit_price is not None:
            return Decimal(str(event.unit_price))
        return self.unit_price_for(str(event.event_type))

    def as_dict(self) -> dict[str, Decimal]:
        return dict(self._prices)
