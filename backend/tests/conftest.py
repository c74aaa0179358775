"""Pytest fixtures for testing."""
import itertools
import os

# Must be set before any app imports that trigger Settings validation
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# Tests exercise real authentication regardless of local .env
os.environ["DEV_MODE"] = "false"

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from datetime import UTC, datetime  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from core.capabilities import Capabilities  # noqa: E402
from core.config import Settings  # noqa: E402
from db.session import build_engine  # noqa: E402
from models import Base, Post, Term, User  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

_user_ids = itertools.count(1)


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests, independent of the environment and any .env file."""
    values: dict[str, Any] = {
        "database_url": TEST_DATABASE_URL,
        "dev_mode": False,
        "site_url": "https://stories.test",
        "publisher_logo_url_template": "https://stories.test/media/{id}",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory database for each test.

    StaticPool keeps the single in-memory connection alive for the engine's
    lifetime, so every session in the test sees the same data.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create an async session for the test database."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_settings() -> Settings:
    """Settings served to the app under test."""
    return make_settings()


@pytest.fixture
def capabilities() -> Capabilities:
    """A fresh capability registry, so tests can revoke caps without leaking."""
    return Capabilities()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for users with unique logins."""
    async def _make(role: str = "administrator", **kwargs: Any) -> User:
        kwargs.setdefault("login", f"{role}-{next(_user_ids)}")
        kwargs.setdefault("display_name", kwargs["login"])
        user = User(role=role, **kwargs)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture
def make_term(db_session: AsyncSession) -> Callable[..., Awaitable[Term]]:
    """Factory for taxonomy terms."""
    async def _make(taxonomy: str, name: str, **kwargs: Any) -> Term:
        kwargs.setdefault("slug", name.lower().replace(" ", "-"))
        term = Term(taxonomy=taxonomy, name=name, **kwargs)
        db_session.add(term)
        await db_session.flush()
        return term

    return _make


@pytest.fixture
def make_story(db_session: AsyncSession) -> Callable[..., Awaitable[Post]]:
    """
    Factory for stories.

    Stories are published on 2024-01-01 unless `date` is given. Server-side
    timestamps are loaded after the insert so responses can be built without
    further I/O.
    """
    async def _make(terms: list[Term] | None = None, **kwargs: Any) -> Post:
        kwargs.setdefault("status", "publish")
        kwargs.setdefault("title", "Story")
        kwargs.setdefault("date", datetime(2024, 1, 1, tzinfo=UTC))
        post = Post(**kwargs)
        post.terms = list(terms or [])
        db_session.add(post)
        await db_session.flush()
        await db_session.refresh(post, attribute_names=["created_at", "updated_at"])
        return post

    return _make


@pytest.fixture
async def client(
    db_session: AsyncSession,
    test_settings: Settings,
    capabilities: Capabilities,
) -> AsyncGenerator[AsyncClient]:
    """Create an anonymous test client with database session and settings overrides."""
    from api.main import app
    from core.capabilities import get_capabilities
    from core.config import get_settings
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_capabilities] = lambda: capabilities

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client: AsyncClient) -> Callable[[User | None], None]:
    """Make subsequent requests from `client` run as the given user (None for anonymous)."""
    from api.main import app
    from core.auth import get_optional_user

    def _login(user: User | None) -> None:
        app.dependency_overrides[get_optional_user] = lambda: user

    return _login
