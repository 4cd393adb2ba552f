from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.models.invoice_item import InvoiceItem


class InvoiceItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_usage_event_id(self, usage_event_id: UUID) -> InvoiceItem | None:
        return (
            self.db.query(InvoiceItem)
            .filter(InvoiceItem.usage_event_id == usage_event_id)
            .first()
        )

    def get_by_subscription_id(self, subscription_id: UUID) -> list[InvoiceItem]:
        return (
            self.db.query(InvoiceItem)
            .filter(InvoiceItem.subscription_id == subscription_id)
            .order_by(InvoiceItem.period_start.asc())
            .all()
        )

    def add(
        self,
        subscription_id: UUID,
        usage_event_id: UUID,
        external_invoice_item_id: str,
        description: str,
        amount_cents: int,
        quantity: int,
        unit_price: Decimal,
        currency: str,
        period_start: datetime,
        period_end: datetime,
        usage_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> InvoiceItem:
        """Stage a mirror row in the current transaction; the caller commits."""
        item = InvoiceItem(
            subscription_id=subscription_id,
            usage_event_id=usage_event_id,
            external_invoice_item_id=external_invoice_item_id,
            description=description,
            amount_cents=amount_cents,
            quantity=quantity,
            unit_price=unit_price,
            currency=currency,
            period_start=period_start,
            period_end=period_end,
            usage_type=usage_type,
            metadata_=metadata or {},
        )
        self.db.add(item)
        return item
