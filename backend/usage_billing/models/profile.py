from sqlalchemy import Column, DateTime, String, func

from usage_billing.core.database import Base
from usage_billing.models.shared import UUIDType, generate_uuid


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
