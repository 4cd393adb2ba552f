from usage_billing.schemas.billing_alert import BillingAlertResponse
from usage_billing.schemas.billing_processor import (
    BillingPeriod,
    BillingProcessorRequest,
    FunctionResponse,
    QuotaResetJobRequest,
)
from usage_billing.schemas.usage import (
    ContextRequest,
    DailyUsageResponse,
    QuotaCheckRequest,
    QuotaCheckResponse,
    QuotaStatusResponse,
    UsageAnalyticsResponse,
    UsageEventResponse,
    UsageTrackRequest,
    UsageTrackResponse,
)
from usage_billing.schemas.usage_quota import (
    UsageQuotaResetRequest,
    UsageQuotaResetResponse,
    UsageQuotaResponse,
    UsageQuotaUpdate,
)

__all__ = [
    "BillingAlertResponse",
    "BillingPeriod",
    "BillingProcessorRequest",
    "ContextRequest",
    "DailyUsageResponse",
    "FunctionResponse",
    "QuotaCheckRequest",
    "QuotaCheckResponse",
    "QuotaResetJobRequest",
    "QuotaStatusResponse",
    "UsageAnalyticsResponse",
    "UsageEventResponse",
    "UsageQuotaResetRequest",
    "UsageQuotaResetResponse",
    "UsageQuotaResponse",
    "UsageQuotaUpdate",
    "UsageTrackRequest",
    "UsageTrackResponse",
]
