"""
Pytest fixtures for the quantura test suite.

Provides:
- An in-memory SQLite database (aiosqlite) with the full schema, per test
- Users, an owning business and principals built through the repositories
- ActionContext factories wired to a LogMailer outbox

SQLite runs with foreign keys enforced so tenant deletes cascade the way they
do on PostgreSQL.
"""

import os

os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")

from typing import Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from quantura.actions.factory import ActionContext, Principal  # noqa: E402
from quantura.core.cache import TaggedTTLCache  # noqa: E402
from quantura.core.security import get_password_hash  # noqa: E402
from quantura.core.settings import AppSettings  # noqa: E402
from quantura.db import models  # noqa: E402,F401
from quantura.db.base import Base  # noqa: E402
from quantura.db.session import make_session_maker  # noqa: E402
from quantura.repositories.business import BusinessRepository  # noqa: E402
from quantura.repositories.security import UserRepository  # noqa: E402
from quantura.schemas.business import BusinessCreate  # noqa: E402
from quantura.services.notifications import LogMailer  # noqa: E402

TEST_PASSWORD = "secret-pass"


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    maker = make_session_maker(engine)
    async with maker() as session:
        yield session


@pytest.fixture
def cache():
    return TaggedTTLCache(default_ttl=300)


@pytest.fixture
def mailer():
    return LogMailer()


@pytest.fixture
def settings():
    return AppSettings(
        MAIL_BACKEND="log",
        PUBLIC_BASE_URL="https://app.example.com",
        INVITATION_TTL_HOURS=48,
        RUN_MIGRATIONS_ON_STARTUP=False,
    )


@pytest.fixture
def make_user(session):
    """Register a user that belongs to no business."""

    async def _make(email: str, name: Optional[str] = None, password: str = TEST_PASSWORD):
        result = await UserRepository(session).register(
            email=email, hashed_password=get_password_hash(password), name=name
        )
        assert result.is_ok, result.error
        return result.data

    return _make


@pytest.fixture
def make_business(session, make_user):
    """Register a user and have them create a business; returns (user, business)."""

    async def _make(email: str, name: str = "Acme Store", user_name: Optional[str] = None):
        user = await make_user(email, name=user_name)
        result = await BusinessRepository(session).create(user.id, BusinessCreate(name=name))
        assert result.is_ok, result.error
        return user, result.data

    return _make


@pytest_asyncio.fixture
async def owner(make_business):
    user, _ = await make_business("owner@example.com", user_name="Olive Owner")
    return user


@pytest.fixture
def business_id(owner):
    return owner.business_id


@pytest.fixture
def make_ctx(session, cache, mailer, settings):
    """Build an ActionContext acting as `principal` (or anonymously)."""

    def _make(principal: Optional[Principal] = None) -> ActionContext:
        async def resolve() -> Optional[Principal]:
            return principal

        return ActionContext(
            session=session,
            cache=cache,
            mailer=mailer,
            settings=settings,
            resolve_principal=resolve,
        )

    return _make


@pytest.fixture
def owner_ctx(owner, make_ctx):
    return make_ctx(Principal.from_user(owner))
