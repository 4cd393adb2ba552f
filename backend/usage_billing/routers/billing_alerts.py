from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from usage_billing.core.context import BillingContext, get_billing_context
from usage_billing.core.database import get_db
from usage_billing.models.billing_alert import BillingAlert, BillingAlertType
from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.schemas.billing_alert import BillingAlertResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[BillingAlertResponse],
    summary="List billing alerts",
    responses={400: {"description": "Missing user_id or organization_id"}},
)
async def list_billing_alerts(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=10, ge=1, le=100),
    alert_type: BillingAlertType | None = None,
    acknowledged: bool | None = None,
    context: BillingContext = Depends(get_billing_context),
    db: Session = Depends(get_db),
) -> list[BillingAlert]:
    """List alerts newest first, optionally filtered by type and acknowledgement."""
    repo = BillingAlertRepository(db)
    type_value = alert_type.value if alert_type else None
    response.headers["X-Total-Count"] = str(
        repo.count(context, alert_type=type_value, acknowledged=acknowledged)
    )
    return repo.get_all(
        context,
        skip=skip,
        limit=limit,
        alert_type=type_value,
        acknowledged=acknowledged,
    )


@router.post(
    "/{alert_id}/acknowledge",
    response_model=BillingAlertResponse,
    summary="Acknowledge billing alert",
    responses={404: {"description": "Billing alert not found"}},
)
async def acknowledge_billing_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
) -> BillingAlert:
    repo = BillingAlertRepository(db)
    alert = repo.get_by_id(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Billing alert not found")
    return repo.acknowledge(alert)


@router.delete(
    "/{alert_id}",
    status_code=204,
    summary="Delete billing alert",
    responses={404: {"description": "Billing alert not found"}},
)
async def delete_billing_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    repo = BillingAlertRepository(db)
    alert = repo.get_by_id(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Billing alert not found")
    repo.delete(alert)
