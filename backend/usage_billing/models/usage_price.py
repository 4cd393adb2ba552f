from sqlalchemy import Column, DateTime, Numeric, String, func

from usage_billing.core.database import Base
from usage_billing.models.shared import UUIDType, generate_uuid


class UsagePrice(Base):
    """Per-event-type unit price override, in major currency units."""

    __tablename__ = "usage_prices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    event_type = Column(String(50), nullable=False, unique=True)
    unit_price = Column(Numeric(12, 6), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
