from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from usage_billing.core.database import Base
from usage_billing.models.shared import UUIDType, generate_uuid, utc_now

UNLIMITED = -1


class QuotaType(str, Enum):
    API_CALLS = "api_calls"
    STORAGE_GB = "storage_gb"
    PROJECTS = "projects"
    TEAM_MEMBERS = "team_members"
    EMAIL_SENDS = "email_sends"
    EXPORTS = "exports"
    BACKUPS = "backups"
    CUSTOM_DOMAINS = "custom_domains"


class ResetPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class UsageQuota(Base):
    __tablename__ = "usage_quotas"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        UUIDType,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    quota_type = Column(String(50), nullable=False)
    limit_value = Column(Integer, nullable=False)  # -1 for unlimited
    current_usage = Column(Integer, nullable=False, default=0)
    reset_period = Column(String(20), nullable=False, default=ResetPeriod.MONTHLY.value)
    last_reset = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint(
            "user_id", "organization_id", "quota_type", name="uq_usage_quotas_context_type"
        ),
    )

    @property
    def is_unlimited(self) -> bool:
        return int(self.limit_value) == UNLIMITED
