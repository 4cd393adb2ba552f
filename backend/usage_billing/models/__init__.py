from usage_billing.models.billing_alert import (
    NOTIFIABLE_ALERT_TYPES,
    BillingAlert,
    BillingAlertType,
)
from usage_billing.models.invoice_item import InvoiceItem
from usage_billing.models.organization import Organization
from usage_billing.models.profile import Profile
from usage_billing.models.subscription import Subscription, SubscriptionStatus
from usage_billing.models.usage_event import UsageEvent, UsageEventType
from usage_billing.models.usage_price import UsagePrice
from usage_billing.models.usage_quota import UNLIMITED, QuotaType, ResetPeriod, UsageQuota

__all__ = [
    "NOTIFIABLE_ALERT_TYPES",
    "UNLIMITED",
    "BillingAlert",
    "BillingAlertType",
    "InvoiceItem",
    "Organization",
    "Profile",
    "QuotaType",
    "ResetPeriod",
    "Subscription",
    "SubscriptionStatus",
    "UsageEvent",
    "UsageEventType",
    "UsagePrice",
    "UsageQuota",
]
