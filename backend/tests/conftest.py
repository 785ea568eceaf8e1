"""
Pytest fixtures for test database, client, identities and events.

Tables are created and dropped around every test for isolation. The
default database is a local SQLite file (aiosqlite); point
TEST_DATABASE_URL at PostgreSQL to exercise real row locks.
"""

import os
import uuid
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_craftfair.db"
)
# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["REDIS_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from craftfair.main import app
from craftfair.db.base import Base
from craftfair.db.session import get_db
from craftfair.core.security import create_access_token
from craftfair.models import Event, EventRegistration, User, Vendor
from craftfair.models.status import SEAT_HOLDING, UserRole
from craftfair.services.identity import Caller

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    user = User(email="admin@example.com", role=UserRole.ADMIN.value)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin(admin_user: User) -> Caller:
    return Caller(user_id=admin_user.id, role=UserRole.ADMIN)


@pytest.fixture
def make_vendor(db_session: AsyncSession):
    """Factory: persist a vendor-role user with a vendor profile, return its Caller."""

    async def _make(business_name: str) -> Caller:
        slug = business_name.lower().replace(" ", "-")
        user = User(email=f"{slug}@example.com", role=UserRole.VENDOR.value)
        db_session.add(user)
        await db_session.flush()
        vendor = Vendor(user_id=user.id, business_name=business_name)
        db_session.add(vendor)
        await db_session.commit()
        return Caller(user_id=user.id, role=UserRole.VENDOR, vendor_id=vendor.id)

    return _make


@pytest.fixture
def make_event(db_session: AsyncSession):
    """Factory: persist a published event 30 days out, capacity 2 unless overridden."""

    async def _make(**overrides) -> Event:
        now = datetime.now(timezone.utc)
        values = {
            "name": "Spring Craft Fair",
            "slug": f"spring-craft-fair-{uuid.uuid4().hex[:8]}",
            "category": "craft_fair",
            "event_type": "physical",
            "location": "Town Hall",
            "start_date": now + timedelta(days=30),
            "end_date": now + timedelta(days=31),
            "registration_deadline": now + timedelta(days=20),
            "max_capacity": 2,
            "current_participants": 0,
            "status": "published",
        }
        values.update(overrides)
        event = Event(**values)
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make


@pytest.fixture
def add_registration(db_session: AsyncSession):
    """
    Factory: insert a registration row directly, bypassing the lifecycle.
    Used to seed states (waitlist, attended) no operation assigns initially.
    """

    async def _add(event: Event, caller: Caller, status: str, registered_at: datetime = None):
        registration = EventRegistration(
            event_id=event.id,
            vendor_id=caller.vendor_id,
            status=status,
            registration_date=registered_at or datetime.now(timezone.utc),
        )
        db_session.add(registration)
        if status in {s.value for s in SEAT_HOLDING}:
            event.current_participants += 1
        await db_session.commit()
        await db_session.refresh(registration)
        return registration

    return _add


def auth_headers_for(caller: Caller) -> dict:
    token = create_access_token(data={"sub": caller.user_id, "role": caller.role.value})
    return {"Authorization": f"Bearer {token}"}


async def participant_count(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(select(Event.current_participants).where(Event.id == event_id))
    return result.scalar_one()


async def seat_holding_count(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(EventRegistration)
        .where(
            EventRegistration.event_id == event_id,
            EventRegistration.status.in_([s.value for s in SEAT_HOLDING]),
        )
    )
    return result.scalar_one()


async def registration_status(db: AsyncSession, registration_id: str) -> str:
    result = await db.execute(
        select(EventRegistration.status).where(EventRegistration.id == registration_id)
    )
    return result.scalar_one()
