from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from usage_billing.core.database import Base
from usage_billing.models.shared import UUIDType, generate_uuid


class InvoiceItem(Base):
    """Local mirror of a usage line item pushed to the payment processor."""

    __tablename__ = "invoice_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    subscription_id = Column(
        UUIDType,
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    usage_event_id = Column(
        UUIDType,
        ForeignKey("usage_events.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    external_invoice_item_id = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 6), nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    usage_type = Column(String(50), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
