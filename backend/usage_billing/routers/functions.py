"""Batch job entry points invoked by the scheduler or by operators."""

import logging

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext
from usage_billing.core.database import get_db
from usage_billing.models.shared import utc_now
from usage_billing.schemas.billing_processor import (
    BillingProcessorRequest,
    FunctionResponse,
    QuotaResetJobRequest,
)
from usage_billing.services.billing_processor import BillingProcessor
from usage_billing.services.quota_reset_service import QuotaResetService

logger = logging.getLogger(__name__)

router = APIRouter()

FAILURE_RESPONSES = {500: {"model": FunctionResponse, "description": "Action failed"}}


def _failure(error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=jsonable_encoder(
            {
                "success": False,
                "error": str(error) or "Internal server error",
                "timestamp": utc_now(),
            }
        ),
    )


@router.post(
    "/billing-processor",
    response_model=FunctionResponse,
    summary="Run a billing processor action",
    responses=FAILURE_RESPONSES,
)
async def run_billing_processor(
    data: BillingProcessorRequest,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Run one of process_usage, aggregate_monthly, check_quotas or send_alerts."""
    try:
        context = None
        if data.user_id is not None or data.organization_id is not None:
            context = BillingContext.of(data.user_id, data.organization_id)
        period = (data.period.start, data.period.end) if data.period else None
        result = await BillingProcessor(db).run(str(data.action), period, context)
    except Exception as e:
        logger.exception("Billing processor action %s failed", data.action)
        return _failure(e)

    return JSONResponse(
        content=jsonable_encoder(
            {
                "success": True,
                "action": data.action,
                "result": result,
                "timestamp": utc_now(),
            }
        )
    )


@router.post(
    "/quota-reset",
    summary="Reset quotas for a period or run maintenance",
    responses=FAILURE_RESPONSES,
)
async def run_quota_reset(
    data: QuotaResetJobRequest,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Reset one period's quotas, or run maintenance when no period is given."""
    try:
        result = QuotaResetService(db).run(data.reset_type, dry_run=data.dry_run)
    except Exception as e:
        logger.exception("Quota reset %s failed", data.reset_type)
        return _failure(e)

    return JSONResponse(
        content=jsonable_encoder(
            {
                "success": True,
                "resetType": data.reset_type,
                "dryRun": data.dry_run,
                "result": result,
                "timestamp": utc_now(),
            }
        )
    )
