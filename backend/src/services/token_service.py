"""Service layer for API token (PAT) operations."""
import hashlib
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.api_token import ApiToken
from services.utils import as_utc

TOKEN_PREFIX = "ws_"


def generate_token() -> tuple[str, str, str]:
    """
    Generate a secure API token.

    Returns:
        Tuple of (plaintext_token, token_hash, token_prefix).
        The plaintext should only be shown once at creation.
    """
    raw = secrets.token_urlsafe(32)
    plaintext = f"{TOKEN_PREFIX}{raw}"
    return plaintext, hash_token(plaintext), plaintext[:12]


def hash_token(token: str) -> str:
    """Hash a token for comparison against stored hashes."""
    return hashlib.sha256(token.encode()).hexdigest()


async def create_token(
    db: AsyncSession,
    user_id: int,
    name: str,
    expires_in_days: int | None = None,
) -> tuple[ApiToken, str]:
    """
    Create a new API token for a user.

    Returns:
        Tuple of (ApiToken model, plaintext_token).

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    plaintext, token_hash, token_prefix = generate_token()

    expires_at = None
    if expires_in_days is not None:
        expires_at = datetime.now(UTC) + timedelta(days=expires_in_days)

    api_token = ApiToken(
        user_id=user_id,
        name=name,
        token_hash=token_hash,
        token_prefix=token_prefix,
        expires_at=expires_at,
    )
    db.add(api_token)
    await db.flush()
    await db.refresh(api_token)

    return api_token, plaintext


async def validate_token(
    db: AsyncSession,
    plaintext_token: str,
) -> ApiToken | None:
    """
    Validate a plaintext token and return the associated ApiToken if valid.

    The token is hashed before lookup, so the plaintext never reaches the
    database. Updates last_used_at on success (flush, not commit).

    Returns:
        ApiToken if valid and not expired, None otherwise.
    """
    result = await db.execute(
        select(ApiToken).where(ApiToken.token_hash == hash_token(plaintext_token)),
    )
    api_token = result.scalar_one_or_none()

    if api_token is None:
        return None

    if api_token.expires_at is not None and datetime.now(UTC) > as_utc(api_token.expires_at):
        return None

    api_token.last_used_at = datetime.now(UTC)
    await db.flush()

    return api_token
