"""Service layer for single-story operations and item shaping."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.taxonomies import STORY_TAXONOMIES, TaxonomyConfig, rest_taxonomies
from models.post import STORY_POST_TYPE, Post
from schemas.story import EMPTY_STYLE_PRESETS, StoryUpdate, fields_for_context, get_item_schema
from services import option_service
from services.exceptions import StoryNotFoundError
from services.utils import as_utc

logger = logging.getLogger(__name__)

# StoryUpdate fields that map directly onto Post columns
STORY_COLUMNS = ("title", "excerpt", "content", "story_data", "slug", "status", "menu_order")


@dataclass
class ResponseExtras:
    """Site-wide values added to every story in a response (loaded once per request)."""

    publisher_logo_url: str = ""
    style_presets: dict[str, Any] = field(default_factory=lambda: dict(EMPTY_STYLE_PRESETS))


async def get_story(db: AsyncSession, story_id: int) -> Post | None:
    """Get a story by ID with its terms loaded. Posts of other types are not returned."""
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.terms))
        .where(Post.id == story_id, Post.post_type == STORY_POST_TYPE),
    )
    return result.scalar_one_or_none()


async def require_story(db: AsyncSession, story_id: int) -> Post:
    """
    Get a story by ID.

    Raises:
        StoryNotFoundError: If the ID does not exist or is not a story.
    """
    post = await get_story(db, story_id)
    if post is None:
        raise StoryNotFoundError(story_id)
    return post


async def load_response_extras(
    db: AsyncSession,
    publisher_logo_url_template: str,
) -> ResponseExtras:
    """
    Read the publisher logo and style presets options.

    Style presets fall back to empty colors/textStyles when the option is
    unset or not a mapping.
    """
    active_logo = await option_service.get_option(
        db, option_service.ACTIVE_PUBLISHER_LOGO_OPTION,
    )
    logo_url = ""
    if active_logo:
        logo_url = publisher_logo_url_template.format(id=active_logo)

    style_presets = await option_service.get_option(
        db, option_service.STYLE_PRESETS_OPTION, EMPTY_STYLE_PRESETS,
    )
    if not isinstance(style_presets, dict):
        style_presets = dict(EMPTY_STYLE_PRESETS)

    return ResponseExtras(publisher_logo_url=logo_url, style_presets=style_presets)


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).isoformat()


def story_link(post: Post, site_url: str) -> str:
    """Public permalink for a story."""
    return f"{site_url.rstrip('/')}/web-stories/{post.slug or post.id}/"


def prepare_story_for_response(
    post: Post,
    *,
    context: str = "view",
    requested_fields: list[str] | None = None,
    extras: ResponseExtras | None = None,
    site_url: str = "",
    taxonomies: tuple[TaxonomyConfig, ...] = STORY_TAXONOMIES,
) -> dict[str, Any]:
    """
    Build the response representation of a story.

    Fields are limited to those the item schema declares for `context`, then
    narrowed to `requested_fields` (the `_fields` parameter) when given.
    """
    extras = extras or ResponseExtras()
    schema = get_item_schema(taxonomies)
    allowed = fields_for_context(schema, context)
    if requested_fields:
        allowed = [name for name in allowed if name in requested_fields]

    data: dict[str, Any] = {
        "id": post.id,
        "date": _isoformat(post.date),
        "modified": _isoformat(post.updated_at),
        "slug": post.slug,
        "status": post.status,
        "type": post.post_type,
        "link": story_link(post, site_url),
        "title": post.title,
        "excerpt": post.excerpt,
        "content": post.content,
        "story_data": post.story_data or {},
        "author": post.author_id,
        "parent": post.parent_id,
        "menu_order": post.menu_order,
        "publisher_logo_url": extras.publisher_logo_url,
        "style_presets": extras.style_presets,
    }
    for taxonomy in rest_taxonomies(taxonomies):
        data[taxonomy.param_name] = sorted(
            term.id for term in post.terms if term.taxonomy == taxonomy.name
        )

    return {name: data[name] for name in allowed}


async def update_story(
    db: AsyncSession,
    post: Post,
    data: StoryUpdate,
) -> Post:
    """
    Apply an update to a story.

    Besides the story columns, `publisher_logo` registers and activates a
    publisher logo, and `style_presets` replaces the site-wide presets. Each
    option write is an independent key/value write.

    Note:
        Permission checks happen in the router. Does not commit.
    """
    update_data = data.model_dump(exclude_unset=True)

    for column in STORY_COLUMNS:
        if column in update_data and update_data[column] is not None:
            setattr(post, column, update_data[column])
    post.updated_at = func.now()
    await db.flush()

    if data.publisher_logo:
        await option_service.add_publisher_logo(db, data.publisher_logo)
        logger.info("Story %s set active publisher logo %s", post.id, data.publisher_logo)

    if data.style_presets is not None:
        await option_service.update_option(
            db, option_service.STYLE_PRESETS_OPTION, data.style_presets,
        )

    await db.refresh(post)
    await db.refresh(post, attribute_names=["terms"])
    return post
