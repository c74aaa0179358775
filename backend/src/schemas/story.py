"""Pydantic schemas and the item schema for story endpoints."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.taxonomies import STORY_TAXONOMIES, TaxonomyConfig, rest_taxonomies
from schemas.story_params import StoryStatus

EMPTY_STYLE_PRESETS: dict[str, list] = {
    "colors": [],
    "textStyles": [],
}


class StoryUpdate(BaseModel):
    """Schema for updating an existing story."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    excerpt: str | None = None
    content: str | None = None
    story_data: dict[str, Any] | None = None
    slug: str | None = Field(default=None, max_length=200)
    status: StoryStatus | None = None
    menu_order: int | None = None
    # Side effects on site-wide options, not story columns
    publisher_logo: int | None = Field(default=None, ge=1)
    style_presets: dict[str, Any] | None = None

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        """Slugs are lowercase with no surrounding whitespace."""
        if v is None:
            return None
        return v.strip().lower()


def get_item_schema(
    taxonomies: tuple[TaxonomyConfig, ...] = STORY_TAXONOMIES,
) -> dict[str, Any]:
    """
    JSON schema for a story item.

    Each property's `context` lists the request contexts ("view", "edit") in
    which the field is returned.
    """
    view_edit = ["view", "edit"]
    properties: dict[str, dict[str, Any]] = {
        "id": {"description": "Unique identifier for the story.", "type": "integer", "context": view_edit, "readonly": True},  # noqa: E501
        "date": {"description": "The date the story was published.", "type": "string", "format": "date-time", "context": view_edit},  # noqa: E501
        "modified": {"description": "The date the story was last modified.", "type": "string", "format": "date-time", "context": view_edit, "readonly": True},  # noqa: E501
        "slug": {"description": "An alphanumeric identifier for the story unique to its type.", "type": "string", "context": view_edit},  # noqa: E501
        "status": {
            "description": "A named status for the story.",
            "type": "string",
            "enum": ["publish", "future", "draft", "pending", "private", "auto-draft"],
            "context": view_edit,
        },
        "type": {"description": "Type of post.", "type": "string", "context": view_edit, "readonly": True},  # noqa: E501
        "link": {"description": "URL to the story.", "type": "string", "format": "uri", "context": view_edit, "readonly": True},  # noqa: E501
        "title": {"description": "The title for the story.", "type": "string", "context": view_edit},  # noqa: E501
        "excerpt": {"description": "The excerpt for the story.", "type": "string", "context": view_edit},  # noqa: E501
        "content": {"description": "The rendered markup for the story.", "type": "string", "context": ["edit"]},  # noqa: E501
        "story_data": {"description": "Story data stored by the editor.", "type": "object", "context": ["edit"]},  # noqa: E501
        "author": {"description": "The ID for the author of the story.", "type": ["integer", "null"], "context": view_edit},  # noqa: E501
        "parent": {"description": "The ID for the parent of the story.", "type": ["integer", "null"], "context": view_edit},  # noqa: E501
        "menu_order": {"description": "The order of the story in relation to other stories.", "type": "integer", "context": view_edit},  # noqa: E501
        "publisher_logo_url": {
            "description": "Publisher logo URL.",
            "type": "string",
            "format": "uri",
            "context": view_edit,
            "default": "",
        },
        "style_presets": {
            "description": "Style presets used by all stories",
            "type": "object",
            "context": view_edit,
        },
    }
    for taxonomy in rest_taxonomies(taxonomies):
        properties[taxonomy.param_name] = {
            "description": f"The terms assigned to the story in the {taxonomy.name} taxonomy.",
            "type": "array",
            "items": {"type": "integer"},
            "context": view_edit,
        }

    return {
        "$schema": "http://json-schema.org/draft-04/schema#",
        "title": "web-story",
        "type": "object",
        "properties": properties,
    }


def fields_for_context(schema: dict[str, Any], context: str) -> list[str]:
    """Names of the schema properties returned in the given context."""
    return [
        name for name, prop in schema["properties"].items()
        if context in prop.get("context", [])
    ]
