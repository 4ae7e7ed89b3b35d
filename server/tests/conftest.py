"""
Shared fixtures for the Agency Desk test suite.

Every test gets a fresh in-memory SQLite database. API tests talk to the
FastAPI app through ``httpx.AsyncClient`` over ``ASGITransport``; the
lifespan is not run, so the integration manager and assistant are installed
on ``app.state`` by the fixtures below.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-agency-desk")

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from agency_desk.api.dependencies.database import get_db
from agency_desk.core.config import clear_settings_cache
from agency_desk.core.security import create_access_token, get_password_hash
from agency_desk.db.session import build_engine, build_session_factory, init_models
from agency_desk.main import app as fastapi_app
from agency_desk.models import Agency, Client, ClientType, User, UserRole
from agency_desk.services.integration_service import IntegrationLifecycleManager
from agency_desk.services.settings_store import InMemorySettingsStore, StorageError
from agency_desk.services.sync_scheduler import SyncCompletion


class ManualScheduler:
    """Collects scheduled completions; tests decide when they run."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[SyncCompletion, float, Any]] = []

    def schedule(self, completion, delay_seconds, handler) -> None:
        self.scheduled.append((completion, delay_seconds, handler))

    async def run_all(self) -> None:
        pending, self.scheduled = self.scheduled, []
        for completion, _, handler in pending:
            await handler(completion)


class SteppingClock:
    """Deterministic UTC clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class FlakyStore(InMemorySettingsStore):
    """In-memory store whose writes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False

    async def read_integration(self, agency_id, integration_id):
        if self.fail_reads:
            raise StorageError("read failed")
        return await super().read_integration(agency_id, integration_id)

    async def update_integration(self, agency_id, integration_id, transition):
        if self.fail_writes:
            raise StorageError("write failed")
        return await super().update_integration(agency_id, integration_id, transition)


class RecordingConnector:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, str, dict | None]] = []

    async def sync(self, agency_id, integration, config) -> None:
        self.calls.append((agency_id, integration.id, config))
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def settings_store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def connector() -> RecordingConnector:
    return RecordingConnector()


@pytest.fixture
def manager(settings_store, scheduler, connector, clock) -> IntegrationLifecycleManager:
    return IntegrationLifecycleManager(
        settings_store,
        scheduler,
        connector,
        clock=clock,
        sync_delay_seconds=3.0,
        sync_timeout_seconds=1.0,
    )


@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(session_factory, manager):
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.state.integration_manager = manager
    fastapi_app.state.assistant = None
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.integration_manager = None
    fastapi_app.state.assistant = None


@pytest_asyncio.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest_asyncio.fixture
async def agency(db_session) -> Agency:
    agency = Agency(name="Golden Gate Insurance", settings={"theme": "light"})
    db_session.add(agency)
    await db_session.commit()
    return agency


@pytest_asyncio.fixture
async def other_agency(db_session) -> Agency:
    agency = Agency(name="Bay Area Brokers", settings={})
    db_session.add(agency)
    await db_session.commit()
    return agency


@pytest.fixture
def make_user(db_session):
    async def _make_user(
        agency: Agency,
        *,
        email: str,
        role: UserRole = UserRole.AGENT,
        password: str | None = "correct-horse-battery",
        is_active: bool = True,
        full_name: str = "Test User",
    ) -> User:
        user = User(
            agency_id=agency.id,
            email=email,
            full_name=full_name,
            role=role,
            hashed_password=get_password_hash(password) if password else None,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def admin_user(agency, make_user) -> User:
    return await make_user(agency, email="owner@goldengate-ins.com", role=UserRole.ADMIN, full_name="Olivia Owner")


@pytest_asyncio.fixture
async def agent_user(agency, make_user) -> User:
    return await make_user(agency, email="agent@goldengate-ins.com", role=UserRole.AGENT, full_name="Andy Agent")


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
def agent_headers(agent_user) -> dict[str, str]:
    return auth_headers_for(agent_user)


@pytest.fixture
def headers_for():
    return auth_headers_for


@pytest.fixture
def make_client(db_session):
    async def _make_client(agency: Agency, **fields: Any) -> Client:
        values = {"type": ClientType.INDIVIDUAL, "first_name": "Mei", "last_name": "Chen"}
        values.update(fields)
        client = Client(agency_id=agency.id, **values)
        db_session.add(client)
        await db_session.commit()
        return client

    return _make_client
