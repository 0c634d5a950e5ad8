"""
Shared fixtures: in-memory aiosqlite database, fake live connections and an
httpx client bound to the ASGI app with its dependencies overridden.
"""

import json
import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("DB", json.dumps({
    "DB_HOST": "localhost",
    "DB_NAME": "relaychat_test",
    "DB_USER": "relaychat",
    "DB_PASSWORD": "relaychat",
    "DB_URL": "sqlite+aiosqlite://",
}))
os.environ.setdefault("SECURITY", json.dumps({
    "JWT_SECRET_KEY": "test-secret-key-not-for-production",
    "RATE_LIMIT_ENABLED": False,
}))
os.environ.setdefault("MEDIA", json.dumps({
    "UPLOAD_DIR": tempfile.mkdtemp(prefix="relaychat-uploads-"),
}))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from relaychat.core.database import db_helper
from relaychat.core.security import create_access_token, get_password_hash
from relaychat.core.utils import get_dispatcher, get_registry, get_session_factory
from relaychat.models import Base, Media, Message
from relaychat.repositories.user_repository import UserRepository
from relaychat.services.dispatcher import DeliveryDispatcher
from relaychat.services.ws_manager import ConnectionRegistry

PASSWORD = "correct horse battery staple"


class FakeConnection:
    """Stands in for a WebSocket: records every text frame pushed to it."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("connection dropped")
        self.sent.append(json.loads(data))


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(registry):
    return DeliveryDispatcher(registry)


@pytest.fixture
def reports(dispatcher):
    collected = []
    dispatcher.add_listener(collected.append)
    return collected


@pytest.fixture
def make_user(session):
    async def _make_user(username: str, email: str = None):
        repo = UserRepository(session)
        return await repo.create(username, email or f"{username}@example.com", get_password_hash(PASSWORD))
    return _make_user


@pytest.fixture
def auth_headers():
    def _headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers


@pytest.fixture
def count_rows(session_factory):
    async def _count(model) -> int:
        async with session_factory() as session:
            return (await session.execute(select(func.count()).select_from(model))).scalar_one()
    return _count


@pytest.fixture
def message_count(count_rows):
    async def _count() -> int:
        return await count_rows(Message)
    return _count


@pytest.fixture
def media_count(count_rows):
    async def _count() -> int:
        return await count_rows(Media)
    return _count


@pytest_asyncio.fixture
async def client(session_factory, registry, dispatcher):
    from relaychat.main import app

    async def _session_getter():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[db_helper.session_getter] = _session_getter
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
