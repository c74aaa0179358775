"""Service layer for named options (key/value configuration storage)."""
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.option import Option

STYLE_PRESETS_OPTION = "web_stories_style_presets"
PUBLISHER_LOGOS_OPTION = "web_stories_publisher_logos"
ACTIVE_PUBLISHER_LOGO_OPTION = "web_stories_active_publisher_logo"


async def get_option(db: AsyncSession, name: str, default: Any = None) -> Any:
    """Get an option value, or `default` if the option is not set."""
    result = await db.execute(select(Option).where(Option.name == name))
    option = result.scalar_one_or_none()
    if option is None:
        return default
    return option.value


async def update_option(db: AsyncSession, name: str, value: Any) -> Option:
    """
    Set an option value, creating the option if needed.

    Writing the same value twice leaves the same state. Does not commit.
    """
    result = await db.execute(select(Option).where(Option.name == name))
    option = result.scalar_one_or_none()
    if option is None:
        option = Option(name=name, value=value)
        db.add(option)
    else:
        option.value = value
        option.updated_at = func.now()
    await db.flush()
    return option


async def add_publisher_logo(db: AsyncSession, logo_id: int) -> list[int]:
    """
    Register a publisher logo and make it the active one.

    The logo list keeps insertion order without duplicates.

    Returns:
        The updated list of publisher logo ids.
    """
    logos = await get_option(db, PUBLISHER_LOGOS_OPTION, [])
    if not isinstance(logos, list):
        logos = []
    if logo_id not in logos:
        logos = [*logos, logo_id]
    await update_option(db, PUBLISHER_LOGOS_OPTION, logos)
    await update_option(db, ACTIVE_PUBLISHER_LOGO_OPTION, logo_id)
    return logos
