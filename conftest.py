import os

os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LEMON_WEBHOOK_SECRET"] = "whsec-test"
os.environ["LEMON_CHECKOUT_URL"] = "https://codehire.lemonsqueezy.com/buy/variant-test"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from codehire import models  # noqa: F401
from codehire.database import Base, get_db
from codehire.dependencies import get_clock, get_dispatcher
from codehire.main import app
from codehire.models.user import User, UserRole
from codehire.routers.auth import create_access_token
from codehire.services.dispatcher import NotificationDispatcher


class FakeClock:
    """Settable clock; every service reads time through it in tests."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now += timedelta(**delta)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'codehire-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher(session_factory, clock):
    return NotificationDispatcher(session_factory, clock=clock)


@pytest.fixture
async def users(session_factory):
    hirer = User(email="hana@codehire.io", full_name="Hana Hirer", role=UserRole.HIRER)
    other_hirer = User(email="omar@codehire.io", full_name="Omar Owner", role=UserRole.HIRER)
    alice = User(email="alice@codehire.io", full_name="Alice Builder", role=UserRole.CODER)
    bob = User(email="bob@codehire.io", full_name="Bob Designer", role=UserRole.CODER)
    async with session_factory() as session:
        session.add_all([hirer, other_hirer, alice, bob])
        await session.commit()
    return SimpleNamespace(hirer=hirer, other_hirer=other_hirer, alice=alice, bob=bob)


@pytest.fixture
async def client(session_factory, clock, dispatcher):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
