import os
import tempfile
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# TEST SETTINGS
# These must be set BEFORE importing sevadaan.main: the engine and the
# rate limiter are both built from the environment at import time.
# ------------------------------------------------------------------
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="sevadaan-uploads-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret-key"
for name in ("SMTP_HOST", "REDIS_URL", "SUPER_ADMIN_EMAIL", "SUPER_ADMIN_PASSWORD"):
    os.environ.pop(name, None)

from sevadaan.main import app  # noqa: E402
from sevadaan.api.deps import get_db_session  # noqa: E402
from sevadaan.core.database import build_engine, build_session_factory, init_db  # noqa: E402
from sevadaan.core.permissions import Role  # noqa: E402
from sevadaan.core.security import create_access_token, hash_password  # noqa: E402
from sevadaan.models.enums import NGOStatus  # noqa: E402
from sevadaan.models.ngo import NGO  # noqa: E402
from sevadaan.models.user import User  # noqa: E402

TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
def settings():
    return app.state.settings


@pytest.fixture
def override_settings(monkeypatch):
    """Swaps in a copy of the app settings with the given fields changed."""

    def _override(**changes):
        updated = app.state.settings.model_copy(update=changes)
        monkeypatch.setattr(app.state, "settings", updated)
        return updated

    return _override


# ------------------------------------------------------------------
# DATABASE: a fresh in-memory database per test
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(settings):
    test_engine = build_engine(settings)
    await init_db(bind=test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    async with build_session_factory(engine)() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine):
    session_factory = build_session_factory(engine)

    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _session_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.pop(get_db_session, None)


# ------------------------------------------------------------------
# DATA HELPERS
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def make_user(db_session):
    async def _make(role=Role.CITIZEN, email=None, ngo_id=None, permissions=None, name=None):
        user = User(
            name=name or f"{role.value.title()} User",
            email=email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=TEST_PASSWORD_HASH,
            role=role,
            ngo_id=ngo_id,
            permissions=list(permissions or []),
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def make_ngo(db_session):
    async def _make(admin=None, status=NGOStatus.Verified, name="Helping Hands Foundation"):
        ngo = NGO(
            name=name,
            contact_email="contact@helpinghands.org",
            registration_number=f"REG-{uuid.uuid4().hex[:8]}",
            status=status,
            is_verified=status == NGOStatus.Verified,
            admin_id=admin.id if admin else None,
        )
        db_session.add(ngo)
        await db_session.commit()
        await db_session.refresh(ngo)

        if admin:
            admin.ngo_id = ngo.id
            db_session.add(admin)
            await db_session.commit()
        return ngo

    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        token = create_access_token(settings, subject=user.id, data={"role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers
