from usage_billing.repositories.billing_alert_repository import BillingAlertRepository
from usage_billing.repositories.invoice_item_repository import InvoiceItemRepository
from usage_billing.repositories.profile_repository import ProfileRepository
from usage_billing.repositories.subscription_repository import SubscriptionRepository
from usage_billing.repositories.usage_event_repository import UsageEventRepository
from usage_billing.repositories.usage_price_repository import UsagePriceRepository
from usage_billing.repositories.usage_quota_repository import UsageQuotaRepository

__all__ = [
    "BillingAlertRepository",
    "InvoiceItemRepository",
    "ProfileRepository",
    "SubscriptionRepository",
    "UsageEventRepository",
    "UsagePriceRepository",
    "UsageQuotaRepository",
]
