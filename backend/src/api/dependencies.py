"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.auth import get_current_user, get_optional_user
from core.capabilities import get_capabilities
from core.config import Settings, get_settings
from core.taxonomies import STORY_TAXONOMIES, TaxonomyConfig
from db.session import get_async_session
from services.story_query import FilterAssembler


def get_story_taxonomies() -> tuple[TaxonomyConfig, ...]:
    """Taxonomies attached to stories. Overridden in tests."""
    return STORY_TAXONOMIES


def get_filter_assembler(
    settings: Settings = Depends(get_settings),
    taxonomies: tuple[TaxonomyConfig, ...] = Depends(get_story_taxonomies),
) -> FilterAssembler:
    """Build the filter assembler from configuration."""
    return FilterAssembler(
        taxonomies=taxonomies,
        per_page_default=settings.stories_per_page_default,
        per_page_max=settings.stories_per_page_max,
    )


__all__ = [
    "get_async_session",
    "get_capabilities",
    "get_current_user",
    "get_filter_assembler",
    "get_optional_user",
    "get_settings",
    "get_story_taxonomies",
]
