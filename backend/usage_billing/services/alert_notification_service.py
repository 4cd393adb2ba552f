"""Service for emailing unacknowledged high-severity billing alerts."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.core.config import settings
from usage_billing.models.billing_alert import NOTIFIABLE_ALERT_TYPES, BillingAlert
from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.repositories.profile_repository import ProfileRepository
from usage_billing.services.email_service import EmailService

logger = logging.getLogger(__name__)


class AlertNotificationService:
    """Fire-and-forget email dispatch for billing alerts.

    Quota warnings are dashboard-only and never emailed.
    """

    def __init__(
        self,
        db: Session,
        email_service: EmailService | None = None,
        fallback_email: str | None = None,
    ):
        self.db = db
        self.email_service = email_service or EmailService()
        self.fallback_email = fallback_email or settings.BILLING_ALERT_FALLBACK_EMAIL
        self.alert_repo = BillingAlertRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def send_billing_alerts(self) -> int:
        """Email every unacknowledged severe alert, newest first.

        A failed send is logged and dropped; it does not stop the others.

        Returns:
            Number of emails sent successfully.
        """
        alerts = self.alert_repo.get_unacknowledged(NOTIFIABLE_ALERT_TYPES)

        emails_sent = 0
        for alert in alerts:
            try:
                if await self.send_alert_email(alert):
                    emails_sent += 1
            except Exception:
                logger.exception("Failed to send alert email for %s", alert.id)

        logger.info("Sent %d alert emails", emails_sent)
        return emails_sent

    async def send_alert_email(self, alert: BillingAlert) -> bool:
        to, recipient_name, organization_name = self.resolve_recipient(alert)
        return await self.email_service.send_billing_alert_email(
            alert,
            to=to,
            recipient_name=recipient_name,
            organization_name=organization_name,
        )

    def resolve_recipient(self, alert: BillingAlert) -> tuple[str, str | None, str | None]:
        """Find who should hear about an alert.

        User alerts go to the user; organization alerts go to the owner.

        Returns:
            ``(email, recipient_name, organization_name)``.
        """
        organization_name: str | None = None
        profile_id = alert.user_id

        if alert.organization_id is not None:
            organization = self.profile_repo.get_organization(UUID(str(alert.organization_id)))
            if organization is not None:
                organization_name = str(organization.name)
                profile_id = organization.owner_id

        profile = self.profile_repo.get_by_id(UUID(str(profile_id))) if profile_id else None
        if profile is None or not profile.email:
            return self.fallback_email, None, organization_name

        full_name = str(profile.full_name) if profile.full_name else None
        return str(profile.email), full_name, organization_name
