from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String

from usage_billing.core.database import Base
from usage_billing.models.shared import UUIDType, generate_uuid, utc_now


class BillingAlertType(str, Enum):
    QUOTA_WARNING = "quota_warning"
    QUOTA_EXCEEDED = "quota_exceeded"
    PAYMENT_FAILED = "payment_failed"
    SUBSCRIPTION_EXPIRED = "subscription_expired"


# Alert types that are emailed; quota warnings only surface in the dashboard.
NOTIFIABLE_ALERT_TYPES = (
    BillingAlertType.QUOTA_EXCEEDED,
    BillingAlertType.PAYMENT_FAILED,
    BillingAlertType.SUBSCRIPTION_EXPIRED,
)


class BillingAlert(Base):
    __tablename__ = "billing_alerts"

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
    alert_type = Column(String(50), nullable=False)
    quota_type = Column(String(50), nullable=True)
    threshold_percentage = Column(Integer, nullable=True)
    current_usage = Column(Integer, nullable=True)
    limit_value = Column(Integer, nullable=True)
    triggered_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_billing_alerts_user_type", "user_id", "alert_type", "triggered_at"),
        Index("ix_billing_alerts_org_type", "organization_id", "alert_type", "triggered_at"),
        Index("ix_billing_alerts_acknowledged", "acknowledged", "triggered_at"),
    )
