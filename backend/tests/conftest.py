from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

# Add backend folder to sys.path so `import vegbills...` works in tests when running from backend root
BACKEND_DIR = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for _path in (BACKEND_DIR, TESTS_DIR):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

# The module-level engine must never point at a developer database
_TMP_DB = Path(tempfile.mkdtemp(prefix="vegbills-tests-")) / "import.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DB}"
os.environ.setdefault("SENTRY_DSN", "")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from vegbills.api import dependencies as deps
from vegbills.api.main import create_app
from vegbills.core.database import Base, build_session_factory
from vegbills.models import tables  # noqa: F401
from vegbills.services.cache import CacheService
from vegbills.services.rate_limiter import SlidingWindowRateLimiter

from fakes import FakeRedis

@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", connect_args={"timeout": 5})
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return CacheService(fake_redis)


@pytest.fixture
def rate_limiter():
    return SlidingWindowRateLimiter(limit=1000, window_seconds=60)


@pytest.fixture
def app(session_factory, cache, rate_limiter):
    application = create_app()

    async def _session():
        async with session_factory() as session:
            yield session

    async def _cache():
        return cache

    application.dependency_overrides[deps.get_db_session] = _session
    application.dependency_overrides[deps.get_cache_service] = _cache
    application.dependency_overrides[deps.get_bills_rate_limiter] = lambda: rate_limiter
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def provider(client):
    resp = await client.post("/api/providers", json={"name": "Acme", "mobile": "+15550100"})
    assert resp.status_code == 201
    return resp.json()
