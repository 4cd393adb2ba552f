"""Email service for sending transactional emails.

Mail goes through the email provider's REST API when an API key is configured,
otherwise through SMTP. With neither configured, sends are logged and skipped.
"""

from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import TYPE_CHECKING

import httpx

from usage_billing.core.config import settings

if TYPE_CHECKING:
    from usage_billing.models.billing_alert import BillingAlert

logger = logging.getLogger(__name__)


def _humanize(value: object) -> str:
    """Turn ``quota_exceeded`` into ``quota exceeded``."""
    if value is None:
        return ""
    return str(value).replace("_", " ")


def _format_number(value: object) -> str:
    if value is None:
        return "0"
    return f"{int(str(value)):,}"


class EmailService:
    """Service for sending transactional emails."""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._http_client = http_client

    async def send_email(self, to: str, subject: str, html_body: str) -> bool:
        """Send an email.

        Args:
            to: Recipient email address.
            subject: Email subject line.
            html_body: HTML content of the email.

        Returns:
            True if sent successfully (or no-op when delivery is unconfigured).

        Raises:
            httpx.HTTPError: The provider rejected the request.
        """
        if settings.EMAIL_PROVIDER_API_KEY:
            return await self._send_via_provider(to, subject, html_body)

        if not settings.SMTP_HOST:
            logger.info("Email delivery not configured, skipping email to %s: %s", to, subject)
            return True

        return await self._send_via_smtp(to, subject, html_body)

    async def _send_via_provider(self, to: str, subject: str, html_body: str) -> bool:
        payload = {
            "from": settings.EMAIL_FROM,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        headers = {"Authorization": f"Bearer {settings.EMAIL_PROVIDER_API_KEY}"}

        if self._http_client is not None:
            response = await self._http_client.post(
                settings.EMAIL_PROVIDER_URL, json=payload, headers=headers
            )
        else:
            async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS) as client:
                response = await client.post(
                    settings.EMAIL_PROVIDER_URL, json=payload, headers=headers
                )
        response.raise_for_status()
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def _send_via_smtp(self, to: str, subject: str, html_body: str) -> bool:
        import aiosmtplib

        msg = EmailMessage()
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.EMAIL_FROM}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("Please view this email in an HTML-capable client.")
        msg.add_alternative(html_body, subtype="html")

        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_billing_alert_email(
        self,
        alert: BillingAlert,
        to: str,
        recipient_name: str | None = None,
        organization_name: str | None = None,
    ) -> bool:
        """Send a billing alert notification email.

        Args:
            alert: The alert to notify about.
            to: Recipient email address.
            recipient_name: Greeting name, if known.
            organization_name: Organization the alert belongs to, if any.

        Returns:
            True if sent successfully.
        """
        alert_label = _humanize(alert.alert_type)
        subject = f"Billing Alert: {alert_label}"

        rows = [f"<tr><td><strong>Alert:</strong></td><td>{alert_label}</td></tr>"]
        if organization_name:
            rows.append(
                f"<tr><td><strong>Organization:</strong></td><td>{organization_name}</td></tr>"
            )
        if alert.quota_type:
            rows.append(
                f"<tr><td><strong>Quota:</strong></td><td>{_humanize(alert.quota_type)}</td></tr>"
            )
            rows.append(
                f"<tr><td><strong>Usage:</strong></td>"
                f"<td>{_format_number(alert.current_usage)} of "
                f"{_format_number(alert.limit_value)}</td></tr>"
            )
        if alert.threshold_percentage is not None:
            rows.append(
                f"<tr><td><strong>Threshold:</strong></td>"
                f"<td>{alert.threshold_percentage}%</td></tr>"
            )

        html_body = (
            f"<h2>{subject}</h2>"
            f"<p>Hi {recipient_name or 'there'},</p>"
            f"<p>We detected a billing event on your account that needs your attention.</p>"
            f"<table>{''.join(rows)}</table>"
            f"<p>Visit your billing dashboard to review usage or upgrade your plan.</p>"
        )

        return await self.send_email(to=to, subject=subject, html_body=html_body)
