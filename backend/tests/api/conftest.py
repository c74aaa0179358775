"""Shared fixtures for API tests."""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.main import app
from models.user import User
from services.token_service import create_token


@asynccontextmanager
async def create_token_client(
    db_session: AsyncSession,
    user: User,
) -> AsyncGenerator[AsyncClient]:
    """
    Create an AsyncClient authenticated as `user` via a real PAT.

    Relies on the dependency overrides installed by the `client` fixture
    (session, settings with DEV_MODE off, capabilities), so request it too.
    """
    _, token = await create_token(db_session, user.id, "Test Token")
    await db_session.flush()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as token_client:
        yield token_client
