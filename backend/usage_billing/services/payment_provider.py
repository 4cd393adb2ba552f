"""Payment processor abstraction for pushing usage charges.

Only invoice line items are needed here; checkout, subscriptions and webhooks
belong to the payment processor itself.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from usage_billing.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ExternalInvoiceItem:
    """Invoice item as created on the provider side."""

    id: str
    amount_cents: int
    currency: str


class PaymentProviderBase(ABC):
    """Abstract base class for payment providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass  # pragma: no cover

    @abstractmethod
    def create_invoice_item(
        self,
        customer_id: str,
        amount_cents: int,
        currency: str,
        description: str,
        metadata: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> ExternalInvoiceItem:
        """Append a line item to the customer's upcoming invoice."""
        pass  # pragma: no cover


class StripeProvider(PaymentProviderBase):
    """Stripe payment provider implementation."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self._stripe: Any = None

    @property
    def stripe(self) -> Any:
        """Lazy-load stripe module."""
        if self._stripe is None:
            import stripe

            stripe.api_key = self.api_key
            self._stripe = stripe
        return self._stripe

    @property
    def provider_name(self) -> str:
        return "stripe"

    def create_invoice_item(
        self,
        customer_id: str,
        amount_cents: int,
        currency: str,
        description: str,
        metadata: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> ExternalInvoiceItem:
        """Create a Stripe invoice item.

        Stripe errors propagate to the caller. The idempotency key makes a
        retried call return the original item instead of billing twice.
        """
        params: dict[str, Any] = {
            "customer": customer_id,
            "amount": amount_cents,
            "currency": currency.lower(),
            "description": description,
            "metadata": metadata or {},
        }
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        item = self.stripe.InvoiceItem.create(**params)
        logger.info("Created Stripe invoice item %s for customer %s", item.id, customer_id)
        return ExternalInvoiceItem(
            id=str(item.id),
            amount_cents=int(item.amount),
            currency=str(item.currency),
        )


def get_payment_provider() -> PaymentProviderBase | None:
    """Return the configured provider, or None when no key is set."""
    if not settings.stripe_enabled:
        return None
    return StripeProvider()
