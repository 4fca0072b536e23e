"""Shared test configuration and fixtures.

Each test gets its own temporary SQLite database (via aiosqlite) so services
can commit freely. External collaborators (SendGrid, MamoPay) are replaced by
in-memory fakes through FastAPI dependency overrides.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-digitalsite-billing-tests")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from digitalsite.api.deps import get_gateway, get_mailer  # noqa: E402
from digitalsite.auth.jwt import create_access_token  # noqa: E402
from digitalsite.auth.passwords import hash_password  # noqa: E402
from digitalsite.config import Settings, settings  # noqa: E402
from digitalsite.database import Base, get_db  # noqa: E402
from digitalsite.errors import ExternalServiceError  # noqa: E402
from digitalsite.main import app  # noqa: E402
from digitalsite.models.enums import IntervalUnit, ItemType, SubscriptionStatus, UserPlan  # noqa: E402
from digitalsite.models.subscription import Subscription  # noqa: E402
from digitalsite.models.user import User  # noqa: E402
from digitalsite.notifications.templates import EmailContent  # noqa: E402

# ---------------------------------------------------------------------------
# Fakes for external collaborators
# ---------------------------------------------------------------------------


class FakeMailer:
    """Records sent emails; raises on send when ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, EmailContent]] = []

    async def send(self, to_email: str, content: EmailContent) -> None:
        if self.fail:
            raise ExternalServiceError("SendGrid is down")
        self.sent.append((to_email, content))

    def subjects_for(self, email: str) -> list[str]:
        return [content.subject for to, content in self.sent if to == email]


class FakeGateway:
    """Records MamoPay calls; raises when ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.lookups: list[str] = []
        self.cancelled: list[tuple[str, str]] = []

    async def get_subscriber_id(self, subscription_id: str) -> str:
        if self.fail:
            raise ExternalServiceError("MamoPay is unreachable")
        self.lookups.append(subscription_id)
        return f"MPB-SUBR-{subscription_id}"

    async def cancel_subscription(self, subscription_id: str, subscriber_id: str) -> None:
        if self.fail:
            raise ExternalServiceError("MamoPay is unreachable")
        self.cancelled.append((subscription_id, subscriber_id))


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Engine bound to a fresh SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session on the per-test database."""
    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def app_settings() -> Settings:
    return settings


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, mailer: FakeMailer, gateway: FakeGateway
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test DB and fake collaborators."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_payload():
    """Build a ``charge.succeeded`` webhook payload.

    Keyword arguments matching customer-detail keys (camelCase) go into
    ``custom_data.details``; anything else overrides a top-level field.
    """

    def _make(
        transaction_id: str | None = None,
        email: str | None = None,
        affiliate_link: dict | None = None,
        **overrides,
    ) -> dict:
        unique = uuid.uuid4().hex[:8]
        details = {
            "email": email or f"buyer-{unique}@example.com",
            "firstName": "Jane",
            "lastName": "Doe",
            "planType": "BUSINESS",
            "frequency": "monthly",
            "frequencyInterval": 1,
        }
        detail_keys = {
            "firstName", "lastName", "planType", "frequency", "frequencyInterval",
            "paymentType", "addonType", "funnels", "customDomains", "subdomains", "admins",
        }
        for key in list(overrides):
            if key in detail_keys:
                details[key] = overrides.pop(key)

        payload = {
            "event_type": "charge.succeeded",
            "id": transaction_id or f"MPB-CHRG-{unique}",
            "amount": 99.0,
            "amount_currency": "USD",
            "created_date": "2025-01-15-10-30-00",
            "status": "captured",
            "subscription_id": f"MPB-SUB-{unique}",
            "custom_data": {"details": details},
        }
        if affiliate_link is not None:
            payload["custom_data"]["affiliateLink"] = affiliate_link
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def create_user(db_session: AsyncSession):
    """Insert and commit a user. Defaults to a verified BUSINESS account."""

    async def _create(**overrides) -> User:
        unique = uuid.uuid4().hex[:8]
        fields = {
            "email": f"user-{unique}@example.com",
            "username": f"user{unique}",
            "hashed_password": hash_password("testpass123"),
            "first_name": "Test",
            "last_name": "User",
            "plan": UserPlan.BUSINESS,
            "verified": True,
            "is_active": True,
            "maximum_funnels": 10,
            "maximum_custom_domains": 5,
            "maximum_subdomains": 5,
            "maximum_admins": 3,
        }
        fields.update(overrides)
        user = User(**fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _create


@pytest.fixture
def create_subscription(db_session: AsyncSession):
    """Insert and commit an ACTIVE monthly subscription for a user."""

    async def _create(user: User, **overrides) -> Subscription:
        unique = uuid.uuid4().hex[:8]
        starts_at = datetime(2025, 1, 5, 9, 0, 0)
        fields = {
            "user_id": user.id,
            "subscription_id": f"MPB-SUB-{unique}",
            "subscriber_id": f"MPB-SUBR-{unique}",
            "starts_at": starts_at,
            "ends_at": starts_at + timedelta(days=31),
            "status": SubscriptionStatus.ACTIVE,
            "interval_unit": IntervalUnit.MONTH,
            "interval_count": 1,
            "item_type": ItemType.PLAN,
            "subscription_type": UserPlan.BUSINESS,
            "raw_data": {},
        }
        fields.update(overrides)
        subscription = Subscription(**fields)
        db_session.add(subscription)
        await db_session.commit()
        return subscription

    return _create


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(create_user) -> User:
    return await create_user()


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    """Return Authorization headers for the test user."""
    return auth_headers_for(test_user)


@pytest.fixture
def headers_for():
    """Factory for Authorization headers of an arbitrary user."""
    return auth_headers_for
