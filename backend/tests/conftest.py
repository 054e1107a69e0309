import datetime as dt
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from portal.config import Settings
from portal.database import create_engine, create_schema, create_session_factory
from portal.infrastructure.repositories import SqlAlchemySlotRepository
from portal.main import create_app
from portal.models import Slot, User
from portal.utils.auth import create_access_token
from portal.utils.time import utc_now_naive

AUTH_SECRET = "testsecret"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}",
        auth_secret=AUTH_SECRET,
        booking_retry_backoff_ms=0,
        display_timezone="Asia/Tokyo",
    )


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def make_member(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[User]]:
    async def _make(
        email: str,
        *,
        first_name: str = "Test",
        last_name: str = "Member",
        is_admin: bool = False,
    ) -> User:
        async with session_factory() as session:
            async with session.begin():
                user = User(
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    is_admin=is_admin,
                    created_at=utc_now_naive(),
                )
                session.add(user)
            return user

    return _make


@pytest.fixture
def make_slot(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[Slot]]:
    async def _make(
        *,
        date: dt.date = dt.date(2025, 3, 1),
        time_start: dt.time = dt.time(10, 0),
        time_end: dt.time = dt.time(10, 30),
        capacity: int = 1,
    ) -> Slot:
        async with session_factory() as session:
            async with session.begin():
                return await SqlAlchemySlotRepository(session).create(
                    date=date,
                    time_start=time_start,
                    time_end=time_end,
                    capacity=capacity,
                )

    return _make


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    def _headers(email: str) -> dict[str, str]:
        token = create_access_token(subject=f"auth|{email}", email=email, secret=AUTH_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def client(settings: Settings, engine: AsyncEngine) -> AsyncIterator[AsyncClient]:
    app = create_app(settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    await app.state.engine.dispose()
