from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext, get_billing_context
from usage_billing.core.database import get_db
from usage_billing.models.usage_quota import UsageQuota
from usage_billing.schemas.usage_quota import (
    UsageQuotaResetRequest,
    UsageQuotaResetResponse,
    UsageQuotaResponse,
    UsageQuotaUpdate,
)
from usage_billing.services.quota_service import QuotaService

router = APIRouter()


@router.get(
    "/",
    response_model=list[UsageQuotaResponse],
    summary="List quotas",
    responses={400: {"description": "Missing user_id or organization_id"}},
)
async def list_quotas(
    context: BillingContext = Depends(get_billing_context),
    db: Session = Depends(get_db),
) -> list[UsageQuota]:
    """List every quota owned by a user or organization."""
    return QuotaService(db).list_quotas(context)


@router.put(
    "/",
    response_model=UsageQuotaResponse,
    summary="Create or update a quota limit",
    responses={422: {"description": "Validation error"}},
)
async def upsert_quota(
    data: UsageQuotaUpdate,
    db: Session = Depends(get_db),
) -> UsageQuota:
    context = BillingContext.of(data.user_id, data.organization_id)
    return QuotaService(db).set_limit(
        context,
        data.quota_type.value,
        data.limit_value,
        reset_period=data.reset_period.value if data.reset_period else None,
    )


@router.post(
    "/reset",
    response_model=UsageQuotaResetResponse,
    summary="Reset quota usage",
)
async def reset_quotas(
    data: UsageQuotaResetRequest,
    db: Session = Depends(get_db),
) -> UsageQuotaResetResponse:
    """Zero current usage, optionally limited to quota types or a reset period."""
    context = BillingContext.of(data.user_id, data.organization_id)
    count = QuotaService(db).reset_quotas(
        context,
        quota_types=[q.value for q in data.quota_types] if data.quota_types else None,
        reset_period=data.reset_period.value if data.reset_period else None,
    )
    return UsageQuotaResetResponse(reset_count=count)
