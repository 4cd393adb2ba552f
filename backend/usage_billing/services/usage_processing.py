"""Service for pricing unprocessed usage events and invoicing them."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.core.config import settings
from usage_billing.core.context import BillingContext
from usage_billing.models.usage_event import UsageEvent
from usage_billing.repositories.invoice_item_repository import InvoiceItemRepository
from usage_billing.repositories.profile_repository import ProfileRepository
from usage_billing.repositories.subscription_repository import SubscriptionRepository
from usage_billing.repositories.usage_event_repository import UsageEventRepository
from usage_billing.services.payment_provider import PaymentProviderBase, get_payment_provider
from usage_billing.services.pricing import PriceTable, calculate_cost, to_minor_units

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    processed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"processed": self.processed, "skipped": self.skipped}


def _usage_label(event_type: str) -> str:
    return event_type.replace("_", " ")


class UsageProcessingService:
    """Prices usage events and forwards their cost to the payment provider.

    Each event is handled exactly once: batches are claimed atomically, and an
    event is marked processed in the same commit that records its invoice
    item mirror.
    """

    def __init__(
        self,
        db: Session,
        payment_provider: PaymentProviderBase | None = None,
        price_table: PriceTable | None = None,
        batch_size: int | None = None,
        lease_seconds: int | None = None,
        currency: str | None = None,
    ):
        self.db = db
        self.payment_provider = payment_provider or get_payment_provider()
        self.price_table = price_table
        self.batch_size = batch_size or settings.USAGE_BATCH_SIZE
        self.lease_seconds = lease_seconds or settings.USAGE_CLAIM_LEASE_SECONDS
        self.currency = currency or settings.STRIPE_CURRENCY
        self.event_repo = UsageEventRepository(db)
        self.subscription_repo = SubscriptionRepository(db)
        self.profile_repo = ProfileRepository(db)
        self.invoice_item_repo = InvoiceItemRepository(db)

    def process_usage_events(
        self,
        from_timestamp: datetime | None = None,
        to_timestamp: datetime | None = None,
        context: BillingContext | None = None,
    ) -> ProcessingResult:
        """Price and invoice every claimable unprocessed event.

        Args:
            from_timestamp: Only events created at or after this instant.
            to_timestamp: Only events created at or before this instant.
            context: Only events owned by this user or organization.

        Returns:
            Counts of processed and skipped events. A skipped event failed
            during pricing or invoicing and stays unprocessed for a later run.
        """
        price_table = self.price_table or PriceTable.load(self.db)
        result = ProcessingResult()
        failed: set[UUID] = set()

        while True:
            batch = self.event_repo.claim_batch(
                limit=self.batch_size,
                lease_seconds=self.lease_seconds,
                from_timestamp=from_timestamp,
                to_timestamp=to_timestamp,
                context=context,
                exclude_ids=failed,
            )
            if not batch:
                break

            for event in batch:
                event_id = UUID(str(event.id))
                try:
                    self.process_event(event, price_table)
                    result.processed += 1
                except Exception:
                    logger.exception("Failed to process usage event %s", event_id)
                    self.db.rollback()
                    self.event_repo.release_claim(event_id)
                    failed.add(event_id)
                    result.skipped += 1

        logger.info("Processed %d usage events, skipped %d", result.processed, result.skipped)
        return result

    def process_event(self, event: UsageEvent, price_table: PriceTable) -> Decimal:
        """Price one event, invoice it when billable, and mark it processed.

        Returns:
            The total cost of the event.
        """
        unit_price = price_table.resolve_unit_price(event)
        quantity = int(event.quantity or 0)

        if quantity < 0:
            logger.warning(
                "Usage event %s has negative quantity %d; pricing it at zero",
                event.id,
                quantity,
            )
            total_cost = Decimal("0")
        else:
            total_cost = calculate_cost(quantity, unit_price)

        if total_cost > 0:
            self._invoice_event(event, unit_price, total_cost)

        self.event_repo.mark_processed(event, unit_price)
        self.db.commit()
        return total_cost

    def _invoice_event(self, event: UsageEvent, unit_price: Decimal, total_cost: Decimal) -> None:
        """Create the external invoice item and stage its local mirror.

        Missing subscription or customer id is not an error: the context has
        no paying customer to bill.
        """
        context = BillingContext.from_row(event)
        kind = "org" if context.is_organization else "user"

        subscription = self.subscription_repo.get_active_for_context(context)
        if not subscription:
            logger.info("No active subscription found for %s %s", kind, context.id)
            return

        owner_id = subscription.user_id if context.is_organization else context.user_id
        profile = self.profile_repo.get_by_id(UUID(str(owner_id))) if owner_id else None
        if not profile or not profile.stripe_customer_id:
            logger.info("No Stripe customer found for subscription %s", subscription.id)
            return

        if self.payment_provider is None:
            logger.warning("Payment provider not configured; usage event %s not invoiced", event.id)
            return

        event_id = UUID(str(event.id))
        if self.invoice_item_repo.get_by_usage_event_id(event_id):
            return

        amount_cents = to_minor_units(total_cost)
        if amount_cents == 0:
            logger.debug("Usage event %s rounds to zero cents; not invoiced", event_id)
            return

        event_type = str(event.event_type)
        quantity = int(event.quantity)
        external_item = self.payment_provider.create_invoice_item(
            customer_id=str(profile.stripe_customer_id),
            amount_cents=amount_cents,
            currency=self.currency,
            description=f"{_usage_label(event_type)} usage - {quantity} units",
            metadata={
                "usage_event_id": str(event_id),
                "event_type": event_type,
                "quantity": str(quantity),
            },
            idempotency_key=f"usage-event-{event_id}",
        )

        metadata: dict[str, Any] = dict(event.metadata_ or {})
        self.invoice_item_repo.add(
            subscription_id=UUID(str(subscription.id)),
            usage_event_id=event_id,
            external_invoice_item_id=external_item.id,
            description=f"{_usage_label(event_type)} usage",
            amount_cents=amount_cents,
            quantity=quantity,
            unit_price=unit_price,
            currency=self.currency,
            period_start=event.billing_period_start or event.created_at,
            period_end=event.billing_period_end or event.created_at,
            usage_type=event_type,
            metadata=metadata,
        )
