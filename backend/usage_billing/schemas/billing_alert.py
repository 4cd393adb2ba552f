from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BillingAlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID | None = None
    organization_id: UUID | None = None
    alert_type: str
    quota_type: str | None = None
    threshold_percentage: int | None = None
    current_usage: int | None = None
    limit_value: int | None = None
    triggered_at: datetime
    acknowledged: bool
    acknowledged_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
