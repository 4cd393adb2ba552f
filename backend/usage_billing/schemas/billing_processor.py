from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from usage_billing.models.shared import as_utc


class BillingPeriod(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        """Stored timestamps are UTC wall clock; naive input is read as UTC."""
        return as_utc(value)


class BillingProcessorRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Left as a free string so unknown actions reach the dispatcher and fail there.
    action: str | None = None
    period: BillingPeriod | None = None
    organization_id: UUID | None = Field(default=None, alias="organizationId")
    user_id: UUID | None = Field(default=None, alias="userId")


class QuotaResetJobRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reset_type: str | None = Field(default=None, alias="resetType")
    dry_run: bool = Field(default=False, alias="dryRun")


class FunctionResponse(BaseModel):
    success: bool
    action: str | None = None
    result: Any = None
    error: str | None = None
    timestamp: datetime
