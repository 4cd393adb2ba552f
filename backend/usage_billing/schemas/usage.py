from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from usage_billing.models.usage_event import UsageEventType
from usage_billing.models.usage_quota import QuotaType
from usage_billing.schemas.billing_alert import BillingAlertResponse


class ContextRequest(BaseModel):
    """Request scoped to a user or an organization."""

    user_id: UUID | None = None
    organization_id: UUID | None = None

    @model_validator(mode="after")
    def require_context(self) -> "ContextRequest":
        if self.user_id is None and self.organization_id is None:
            raise ValueError("Either user_id or organization_id is required")
        return self


class UsageTrackRequest(ContextRequest):
    event_type: UsageEventType
    quantity: int = Field(default=1, gt=0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UsageEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID | None = None
    organization_id: UUID | None = None
    event_type: str
    quantity: int
    unit_price: Decimal | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    billing_period_start: datetime | None = None
    billing_period_end: datetime | None = None
    processed: bool
    created_at: datetime


class QuotaStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current: int
    limit: int
    remaining: int | None = None
    percentage: float


class UsageTrackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event: UsageEventResponse
    quota_status: QuotaStatusResponse
    alerts: list[BillingAlertResponse] = Field(default_factory=list)


class QuotaCheckRequest(ContextRequest):
    quota_type: QuotaType
    requested_amount: int = Field(default=1, ge=1)


class QuotaCheckResponse(BaseModel):
    allowed: bool
    remaining: int | None = None
    would_exceed: bool
    upgrade_required: bool
    suggested_plan: str | None = None


class DailyUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    usage: int
    cost: Decimal


class UsageAnalyticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time_range: Literal["7d", "30d", "90d", "1y"]
    total_usage: int
    usage_by_type: dict[str, int]
    usage_trend: list[DailyUsageResponse]
