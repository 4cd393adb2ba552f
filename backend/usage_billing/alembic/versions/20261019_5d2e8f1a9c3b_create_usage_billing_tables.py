"""create usage billing tables

Revision ID: 5d2e8f1a9c3b
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5d2e8f1a9c3b"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
    ]


def _context_columns() -> list[sa.schema.SchemaItem]:
    return [
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("organization_id", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_profiles_stripe_customer_id"), "profiles", ["stripe_customer_id"]
    )

    op.create_table(
        "organizations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_organizations_owner_id"), "organizations", ["owner_id"])

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(length=36), nullable=False),
        *_context_columns(),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("plan", sa.String(length=50), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_subscription_id"),
    )
    op.create_index(op.f("ix_subscriptions_user_id"), "subscriptions", ["user_id"])
    op.create_index(
        op.f("ix_subscriptions_organization_id"), "subscriptions", ["organization_id"]
    )
    op.create_index(op.f("ix_subscriptions_status"), "subscriptions", ["status"])

    op.create_table(
        "usage_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        *_context_columns(),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(precision=12, scale=6), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("billing_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("billing_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed", sa.Boolean(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("claim_token", sa.String(length=36), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_usage_events_claim_token"), "usage_events", ["claim_token"])
    op.create_index(
        "ix_usage_events_user_type_created",
        "usage_events",
        ["user_id", "event_type", "created_at"],
    )
    op.create_index(
        "ix_usage_events_org_type_created",
        "usage_events",
        ["organization_id", "event_type", "created_at"],
    )
    op.create_index(
        "ix_usage_events_processed_created", "usage_events", ["processed", "created_at"]
    )

    op.create_table(
        "usage_quotas",
        sa.Column("id", sa.String(length=36), nullable=False),
        *_context_columns(),
        sa.Column("quota_type", sa.String(length=50), nullable=False),
        sa.Column("limit_value", sa.Integer(), nullable=False),
        sa.Column("current_usage", sa.Integer(), nullable=False),
        sa.Column("reset_period", sa.String(length=20), nullable=False),
        sa.Column("last_reset", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "organization_id", "quota_type", name="uq_usage_quotas_context_type"
        ),
    )
    op.create_index(op.f("ix_usage_quotas_user_id"), "usage_quotas", ["user_id"])
    op.create_index(
        op.f("ix_usage_quotas_organization_id"), "usage_quotas", ["organization_id"]
    )

    op.create_table(
        "billing_alerts",
        sa.Column("id", sa.String(length=36), nullable=False),
        *_context_columns(),
        sa.Column("alert_type", sa.String(length=50), nullable=False),
        sa.Column("quota_type", sa.String(length=50), nullable=True),
        sa.Column("threshold_percentage", sa.Integer(), nullable=True),
        sa.Column("current_usage", sa.Integer(), nullable=True),
        sa.Column("limit_value", sa.Integer(), nullable=True),
        sa.Column("triggered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("acknowledged", sa.Boolean(), nullable=False),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_billing_alerts_user_type", "billing_alerts", ["user_id", "alert_type", "triggered_at"]
    )
    op.create_index(
        "ix_billing_alerts_org_type",
        "billing_alerts",
        ["organization_id", "alert_type", "triggered_at"],
    )
    op.create_index(
        "ix_billing_alerts_acknowledged", "billing_alerts", ["acknowledged", "triggered_at"]
    )

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("subscription_id", sa.String(length=36), nullable=False),
        sa.Column("usage_event_id", sa.String(length=36), nullable=False),
        sa.Column("external_invoice_item_id", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(precision=12, scale=6), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("usage_type", sa.String(length=50), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["usage_event_id"], ["usage_events.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("usage_event_id"),
        sa.UniqueConstraint("external_invoice_item_id"),
    )
    op.create_index(
        op.f("ix_invoice_items_subscription_id"), "invoice_items", ["subscription_id"]
    )

    op.create_table(
        "usage_prices",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("unit_price", sa.Numeric(precision=12, scale=6), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_type"),
    )


def downgrade() -> None:
    op.drop_table("usage_prices")
    op.drop_index(op.f("ix_invoice_items_subscription_id"), table_name="invoice_items")
    op.drop_table("invoice_items")
    op.drop_index("ix_billing_alerts_acknowledged", table_name="billing_alerts")
    op.drop_index("ix_billing_alerts_org_type", table_name="billing_alerts")
    op.drop_index("ix_billing_alerts_user_type", table_name="billing_alerts")
    op.drop_table("billing_alerts")
    op.drop_index(op.f("ix_usage_quotas_organization_id"), table_name="usage_quotas")
    op.drop_index(op.f("ix_usage_quotas_user_id"), table_name="usage_quotas")
    op.drop_table("usage_quotas")
    op.drop_index("ix_usage_events_processed_created", table_name="usage_events")
    op.drop_index("ix_usage_events_org_type_created", table_name="usage_events")
    op.drop_index("ix_usage_events_user_type_created", table_name="usage_events")
    op.drop_index(op.f("ix_usage_events_claim_token"), table_name="usage_events")
    op.drop_table("usage_events")
    op.drop_index(op.f("ix_subscriptions_status"), table_name="subscriptions")
    op.drop_index(op.f("ix_subscriptions_organization_id"), table_name="subscriptions")
    op.drop_index(op.f("ix_subscriptions_user_id"), table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index(op.f("ix_organizations_owner_id"), table_name="organizations")
    op.drop_table("organizations")
    op.drop_index(op.f("ix_profiles_stripe_customer_id"), table_name="profiles")
    op.drop_table("profiles")
