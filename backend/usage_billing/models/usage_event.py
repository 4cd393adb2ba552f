from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from usage_billing.core.database import Base
from usage_billing.models.shared import UUIDType, generate_uuid, utc_now


class UsageEventType(str, Enum):
    API_CALL = "api_call"
    STORAGE_USED = "storage_used"
    EMAIL_SENT = "email_sent"
    EXPORT_GENERATED = "export_generated"
    BACKUP_CREATED = "backup_created"
    CUSTOM_DOMAIN = "custom_domain"
    ADVANCED_FEATURE = "advanced_feature"


class UsageEvent(Base):
    __tablename__ = "usage_events"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=True,
    )
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
    )
    # Free-form string: unknown types are stored and priced at zero.
    event_type = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(12, 6), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    billing_period_start = Column(DateTime(timezone=True), nullable=True)
    billing_period_end = Column(DateTime(timezone=True), nullable=True)
    processed = Column(Boolean, nullable=False, default=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    claim_token = Column(String(36), nullable=True, index=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_usage_events_user_type_created", "user_id", "event_type", "created_at"),
        Index("ix_usage_events_org_type_created", "organization_id", "event_type", "created_at"),
        Index("ix_usage_events_processed_created", "processed", "created_at"),
    )
