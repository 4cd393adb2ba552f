from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from usage_billing.models.usage_quota import QuotaType, ResetPeriod
from usage_billing.schemas.usage import ContextRequest


class UsageQuotaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None = None
    organization_id: UUID | None = None
    quota_type: str
    limit_value: int
    current_usage: int
    reset_period: str
    last_reset: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UsageQuotaUpdate(ContextRequest):
    quota_type: QuotaType
    limit_value: int = Field(..., ge=-1)
    reset_period: ResetPeriod | None = None


class UsageQuotaResetRequest(ContextRequest):
    quota_types: list[QuotaType] | None = None
    reset_period: ResetPeriod | None = None


class UsageQuotaResetResponse(BaseModel):
    reset_count: int
