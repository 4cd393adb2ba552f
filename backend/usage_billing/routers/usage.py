from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext, get_billing_context
from usage_billing.core.database import get_db
from usage_billing.models.usage_event import UsageEventType
from usage_billing.schemas.billing_alert import BillingAlertResponse
from usage_billing.schemas.usage import (
    DailyUsageResponse,
    QuotaCheckRequest,
    QuotaCheckResponse,
    QuotaStatusResponse,
    UsageAnalyticsResponse,
    UsageEventResponse,
    UsageTrackRequest,
    UsageTrackResponse,
)
from usage_billing.services.quota_service import QuotaService
from usage_billing.services.usage_aggregation import UsageAggregationService
from usage_billing.services.usage_tracking import UsageTrackingService

router = APIRouter()


@router.post(
    "/track",
    response_model=UsageTrackResponse,
    status_code=201,
    summary="Record a usage event",
    responses={422: {"description": "Validation error"}},
)
async def track_usage(
    data: UsageTrackRequest,
    db: Session = Depends(get_db),
) -> UsageTrackResponse:
    """Record usage, bump the matching quota and report its status."""
    context = BillingContext.of(data.user_id, data.organization_id)
    service = UsageTrackingService(db)
    try:
        result = service.track_usage(
            context,
            event_type=data.event_type.value,
            quantity=data.quantity,
            metadata=data.metadata,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return UsageTrackResponse(
        event=UsageEventResponse.model_validate(result.event),
        quota_status=QuotaStatusResponse.model_validate(result.quota_status),
        alerts=[BillingAlertResponse.model_validate(alert) for alert in result.alerts],
    )


@router.post(
    "/check-quota",
    response_model=QuotaCheckResponse,
    summary="Check whether usage fits a quota",
)
async def check_quota(
    data: QuotaCheckRequest,
    db: Session = Depends(get_db),
) -> QuotaCheckResponse:
    context = BillingContext.of(data.user_id, data.organization_id)
    result = QuotaService(db).check_quota(
        context, data.quota_type.value, requested_amount=data.requested_amount
    )
    return QuotaCheckResponse(
        allowed=result.allowed,
        remaining=result.remaining,
        would_exceed=result.would_exceed,
        upgrade_required=result.upgrade_required,
        suggested_plan=result.suggested_plan,
    )


@router.get(
    "/analytics",
    response_model=UsageAnalyticsResponse,
    summary="Usage totals and daily trend",
    responses={400: {"description": "Missing user_id or organization_id"}},
)
async def get_usage_analytics(
    time_range: Literal["7d", "30d", "90d", "1y"] = "30d",
    event_type: UsageEventType | None = None,
    context: BillingContext = Depends(get_billing_context),
    db: Session = Depends(get_db),
) -> UsageAnalyticsResponse:
    analytics = UsageAggregationService(db).get_usage_analytics(
        context,
        time_range=time_range,
        event_type=event_type.value if event_type else None,
    )
    return UsageAnalyticsResponse(
        time_range=time_range,
        total_usage=analytics.total_usage,
        usage_by_type=analytics.usage_by_type,
        usage_trend=[
            DailyUsageResponse(date=point.date, usage=point.usage, cost=point.cost)
            for point in analytics.usage_trend
        ],
    )
