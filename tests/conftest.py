"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database wired into the app through
a `get_session` override, and an httpx client talking to the ASGI app.
"""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="intranet-uploads-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker

from main import app
from intranet.apps.auth.models import User
from intranet.db.database import build_engine, get_session, init_models

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_models(bind=engine)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_session():
        async with factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    yield factory
    app.dependency_overrides.pop(get_session, None)
    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register through the API; returns (token, user payload)."""

    async def _make(name="Maria Silva", email=None, password=DEFAULT_PASSWORD, **extra):
        email = email or f"{name.lower().replace(' ', '.')}@prefeitura.gov.br"
        payload = {"name": name, "email": email, "password": password, "position": "Analista", **extra}
        resp = await client.post("/api/auth/register", json=payload)
        assert resp.status_code == 201, resp.text
        client.cookies.clear()
        body = resp.json()
        return body["token"], body["data"]

    return _make


@pytest.fixture
def make_admin(make_user, session_factory):
    """Register a user and promote it to the admin role."""

    async def _make(name="Admin Geral", **extra):
        token, user = await make_user(name=name, **extra)
        async with session_factory() as session:
            await session.execute(update(User).where(User.email == user["email"]).values(role="admin"))
            await session.commit()
        user["role"] = "admin"
        return token, user

    return _make
