import uuid
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from facepet.core.database import Base, get_db
from facepet.models import User, UserRole
from facepet.routers.auth import current_active_user
from facepet.services.rate_limiter import EmailRateLimiter, GeocodeRateLimiter
from facepet.services.verification_store import VerificationStore
from facepet.utils.email import get_email_service
from facepet.utils.stores import get_email_rate_limiter, get_geocode_rate_limiter, get_verification_store


class FakeClock:
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeMailer:
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_verification_email(self, to_email, verification_code, first_name="there", ttl_minutes=10):
        self.sent.append({"to": to_email, "code": verification_code, "ttl_minutes": ttl_minutes})
        return not self.fail

    async def send_password_reset_email(self, to_email, reset_token, first_name="there"):
        self.sent.append({"to": to_email, "reset_token": reset_token})
        return not self.fail

    async def send_password_change_notification(self, to_email, first_name="there"):
        self.sent.append({"to": to_email, "notice": "password_changed"})
        return not self.fail

    async def send_welcome_email(self, to_email, first_name="there"):
        self.sent.append({"to": to_email, "notice": "welcome"})
        return not self.fail


def make_user(role: UserRole = UserRole.USER, **kwargs) -> User:
    values = dict(
        id=uuid.uuid4(),
        email="owner@example.com",
        hashed_password="not-a-real-hash",
        is_active=True,
        is_verified=True,
        is_superuser=False,
        role=role,
        full_name="Dana Levi",
    )
    values.update(kwargs)
    return User(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return VerificationStore(default_ttl_minutes=10, clock=clock)


@pytest.fixture
def limiter(clock):
    return EmailRateLimiter(max_requests=5, window_minutes=15, clock=clock)


@pytest.fixture
def geocode_limiter(clock):
    return GeocodeRateLimiter(max_requests=10, window_minutes=15, clock=clock)


@pytest.fixture
def mailer():
    return FakeMailer()


async def _no_db():
    yield None


@pytest.fixture
def client(store, limiter, geocode_limiter, mailer):
    app.dependency_overrides[get_verification_store] = lambda: store
    app.dependency_overrides[get_email_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_geocode_rate_limiter] = lambda: geocode_limiter
    app.dependency_overrides[get_email_service] = lambda: mailer
    app.dependency_overrides[get_db] = _no_db
    # Not used as a context manager: the lifespan would connect to the database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make requests run as the given user."""
    def _login(user: User):
        app.dependency_overrides[current_active_user] = lambda: user
        return user
    return _login


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
async def session_factory():
    """A fresh in-memory sqlite database per test."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def api(session_factory, store, limiter, geocode_limiter, mailer, monkeypatch):
    """Async client whose requests run against the sqlite database."""
    async def _db():
        async with session_factory() as session:
            yield session

    # Welcome mail goes through the module level service
    monkeypatch.setattr("facepet.utils.auth.email_service", mailer)

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_verification_store] = lambda: store
    app.dependency_overrides[get_email_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_geocode_rate_limiter] = lambda: geocode_limiter
    app.dependency_overrides[get_email_service] = lambda: mailer
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def act_as():
    """Make requests run as a user stored in the database."""
    def _act_as(user: User):
        user_id = user.id

        async def _current_user(db: AsyncSession = Depends(get_db)):
            return await db.get(User, user_id)

        app.dependency_overrides[current_active_user] = _current_user
        return user
    return _act_as


@pytest.fixture
def add_rows(session_factory):
    async def _add(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows
    return _add
