"""Tests for option storage and publisher logo registration."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.option import Option
from services.option_service import (
    ACTIVE_PUBLISHER_LOGO_OPTION,
    PUBLISHER_LOGOS_OPTION,
    STYLE_PRESETS_OPTION,
    add_publisher_logo,
    get_option,
    update_option,
)


async def test__get_option__returns_default_when_unset(db_session: AsyncSession) -> None:
    """Missing options fall back to the given default."""
    assert await get_option(db_session, "missing") is None
    assert await get_option(db_session, "missing", []) == []


async def test__update_option__creates_then_replaces(db_session: AsyncSession) -> None:
    """The first write creates the option; later writes replace its value."""
    await update_option(db_session, STYLE_PRESETS_OPTION, {"colors": ["#fff"]})
    await update_option(db_session, STYLE_PRESETS_OPTION, {"colors": ["#000"]})

    result = await db_session.execute(select(Option).where(Option.name == STYLE_PRESETS_OPTION))
    options = result.scalars().all()
    assert len(options) == 1
    assert await get_option(db_session, STYLE_PRESETS_OPTION) == {"colors": ["#000"]}


async def test__update_option__is_idempotent(db_session: AsyncSession) -> None:
    """Writing the same value twice leaves the same state."""
    await update_option(db_session, "flag", True)
    await update_option(db_session, "flag", True)

    assert await get_option(db_session, "flag") is True


async def test__add_publisher_logo__registers_and_activates(db_session: AsyncSession) -> None:
    """A new logo is appended and becomes the active logo."""
    logos = await add_publisher_logo(db_session, 12)

    assert logos == [12]
    assert await get_option(db_session, PUBLISHER_LOGOS_OPTION) == [12]
    assert await get_option(db_session, ACTIVE_PUBLISHER_LOGO_OPTION) == 12


async def test__add_publisher_logo__deduplicates(db_session: AsyncSession) -> None:
    """Re-adding a known logo keeps the list unchanged but reactivates it."""
    await add_publisher_logo(db_session, 12)
    await add_publisher_logo(db_session, 34)

    logos = await add_publisher_logo(db_session, 12)

    assert logos == [12, 34]
    assert await get_option(db_session, ACTIVE_PUBLISHER_LOGO_OPTION) == 12


async def test__add_publisher_logo__replaces_malformed_list(db_session: AsyncSession) -> None:
    """A logo option that is not a list is started over."""
    await update_option(db_session, PUBLISHER_LOGOS_OPTION, "broken")

    logos = await add_publisher_logo(db_session, 5)

    assert logos == [5]
