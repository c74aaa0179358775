"""Authentication via Personal Access Tokens, with a DEV_MODE bypass."""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User
from services import token_service

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

DEV_USER_LOGIN = "dev-local-development-user"


async def get_or_create_dev_user(db: AsyncSession) -> User:
    """
    Get or create the development user for DEV_MODE.

    Handles the race where concurrent requests both try to create the user: on
    IntegrityError the insert is rolled back and the existing row is fetched.
    """
    query = select(User).where(User.login == DEV_USER_LOGIN)
    result = await db.execute(query)
    user = result.scalar_one_or_none()
    if user is not None:
        return user

    user = User(
        login=DEV_USER_LOGIN,
        display_name="Developer",
        email="dev@localhost",
        role="administrator",
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(query)
        user = result.scalar_one()
    return user


async def validate_pat(db: AsyncSession, token: str) -> User:
    """
    Validate a Personal Access Token and return the associated user.

    Raises:
        HTTPException: If token is invalid, expired, or its user is gone.
    """
    api_token = await token_service.validate_token(db, token)

    if api_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == api_token.user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> User | None:
    """
    Dependency that returns the current user, or None for anonymous requests.

    A token that is present but invalid is still rejected with 401.
    In DEV_MODE, bypasses auth and returns the development user.
    """
    if settings.dev_mode:
        return await get_or_create_dev_user(db)

    if credentials is None:
        return None

    token = credentials.credentials
    if not token.startswith(token_service.TOKEN_PREFIX):
        logger.warning("Rejected bearer token with unknown prefix")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await validate_pat(db, token)


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    """Dependency that requires an authenticated user."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
