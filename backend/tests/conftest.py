"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import usage_billing.models  # noqa: F401
from usage_billing.core import database as db_module
from usage_billing.core.database import Base
from usage_billing.models.organization import Organization
from usage_billing.models.profile import Profile
from usage_billing.models.subscription import Subscription, SubscriptionStatus
from usage_billing.models.usage_event import UsageEvent
from usage_billing.models.usage_quota import ResetPeriod, UsageQuota

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known owner profile and organization used across tests
DEFAULT_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEFAULT_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


def _seed_defaults(session: Session) -> None:
    """Insert the default owner profile and the organization it owns."""
    if session.query(Profile).filter(Profile.id == DEFAULT_USER_ID).first() is None:
        session.add(
            Profile(
                id=DEFAULT_USER_ID,
                email="owner@example.com",
                full_name="Olive Owner",
                stripe_customer_id="cus_owner",
            )
        )
        session.flush()
    if session.query(Organization).filter(Organization.id == DEFAULT_ORG_ID).first() is None:
        session.add(
            Organization(
                id=DEFAULT_ORG_ID,
                name="Default Test Organization",
                owner_id=DEFAULT_USER_ID,
            )
        )
    session.commit()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed_defaults(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def default_user_id():
    return DEFAULT_USER_ID


@pytest.fixture
def default_org_id():
    return DEFAULT_ORG_ID


def create_profile(
    db: Session,
    email: str | None = "user@example.com",
    full_name: str | None = "Uma User",
    stripe_customer_id: str | None = "cus_user",
) -> Profile:
    profile = Profile(email=email, full_name=full_name, stripe_customer_id=stripe_customer_id)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def create_subscription(
    db: Session,
    user_id: uuid.UUID | None = None,
    organization_id: uuid.UUID | None = None,
    status: str = SubscriptionStatus.ACTIVE.value,
    created_at: datetime | None = None,
) -> Subscription:
    sub = Subscription(
        user_id=user_id,
        organization_id=organization_id,
        status=status,
        plan="starter",
    )
    if created_at is not None:
        sub.created_at = created_at
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return sub


def create_event(
    db: Session,
    event_type: str = "api_call",
    quantity: int = 1,
    user_id: uuid.UUID | None = None,
    organization_id: uuid.UUID | None = None,
    created_at: datetime | None = None,
    unit_price: Decimal | None = None,
    processed: bool = False,
) -> UsageEvent:
    event = UsageEvent(
        user_id=user_id,
        organization_id=organization_id,
        event_type=event_type,
        quantity=quantity,
        unit_price=unit_price,
        processed=processed,
    )
    if created_at is not None:
        event.created_at = created_at
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def create_quota(
    db: Session,
    quota_type: str = "api_calls",
    limit_value: int = 100,
    current_usage: int = 0,
    user_id: uuid.UUID | None = None,
    organization_id: uuid.UUID | None = None,
    reset_period: str = ResetPeriod.MONTHLY.value,
    last_reset: datetime | None = None,
) -> UsageQuota:
    quota = UsageQuota(
        user_id=user_id,
        organization_id=organization_id,
        quota_type=quota_type,
        limit_value=limit_value,
        current_usage=current_usage,
        reset_period=reset_period,
    )
    if last_reset is not None:
        quota.last_reset = last_reset
    db.add(quota)
    db.commit()
    db.refresh(quota)
    return quota
