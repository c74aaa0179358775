"""
Collection parameters for the story listing endpoint.

get_collection_params() is the registry of enabled parameters (also served by
GET /stories/schema). parse_collection_params() validates raw query strings
against it and returns only parameters that were sent, plus declared defaults.
"""
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.taxonomies import STORY_TAXONOMIES, TaxonomyConfig, rest_taxonomies
from services.exceptions import ValidationError
from services.utils import as_utc

StoryStatus = Literal["publish", "future", "draft", "pending", "private", "auto-draft"]
StatusParam = Literal["publish", "future", "draft", "pending", "private", "any"]
OrderBy = Literal[
    "author", "date", "id", "include", "modified", "parent", "relevance",
    "slug", "include_slugs", "title", "menu_order", "story_author",
]

LIST_PARAMS = frozenset({
    "author", "author_exclude", "include", "exclude", "parent", "parent_exclude",
    "slug", "status", "_fields",
})

# orderby values that sort by position in a list parameter, which must be sent
POSITIONAL_ORDERBY_PARAMS = {"include": "include", "include_slugs": "slug"}

_term_ids_adapter = TypeAdapter(list[int])


class StoryCollectionParams(BaseModel):
    """Validated standard listing parameters. Taxonomy parameters are checked separately."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    context: Literal["view", "edit"] = "view"
    page: int = Field(default=1, ge=1)
    # Clamped to the configured maximum by the filter assembler, never rejected
    per_page: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)
    search: str | None = None
    after: datetime | None = None
    before: datetime | None = None
    author: list[int] | None = None
    author_exclude: list[int] | None = None
    include: list[int] | None = None
    exclude: list[int] | None = None
    menu_order: int | None = None
    order: Literal["asc", "desc"] = "desc"
    orderby: OrderBy = "date"
    parent: list[int] | None = None
    parent_exclude: list[int] | None = None
    slug: list[str] | None = None
    status: list[StatusParam] = Field(default_factory=lambda: ["publish"])
    tax_relation: Literal["AND", "OR"] | None = None
    fields_: list[str] | None = Field(default=None, alias="_fields")
    web_stories_envelope: bool = Field(default=False, alias="_web_stories_envelope")

    @field_validator("after", "before")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        """Naive datetimes are interpreted as UTC."""
        if v is None:
            return None
        return as_utc(v)


def get_collection_params(
    per_page_default: int = 10,
    per_page_max: int = 100,
    taxonomies: tuple[TaxonomyConfig, ...] = STORY_TAXONOMIES,
) -> dict[str, dict[str, Any]]:
    """
    Registry of enabled collection parameters.

    Returns:
        Dict mapping parameter name to its description, type and default.
    """
    params: dict[str, dict[str, Any]] = {
        "context": {
            "description": "Scope under which the request is made; determines fields present in response.",  # noqa: E501
            "type": "string", "enum": ["view", "edit"], "default": "view",
        },
        "page": {
            "description": "Current page of the collection.",
            "type": "integer", "default": 1, "minimum": 1,
        },
        "per_page": {
            "description": f"Maximum number of items to be returned in result set (capped at {per_page_max}).",  # noqa: E501
            "type": "integer", "default": per_page_default, "minimum": 1,
        },
        "offset": {
            "description": "Offset the result set by a specific number of items.",
            "type": "integer",
        },
        "search": {
            "description": "Limit results to those matching a string.",
            "type": "string",
        },
        "after": {
            "description": "Limit response to stories published after a given ISO8601 compliant date.",  # noqa: E501
            "type": "string", "format": "date-time",
        },
        "before": {
            "description": "Limit response to stories published before a given ISO8601 compliant date.",  # noqa: E501
            "type": "string", "format": "date-time",
        },
        "author": {
            "description": "Limit result set to stories assigned to specific authors.",
            "type": "array", "items": {"type": "integer"},
        },
        "author_exclude": {
            "description": "Ensure result set excludes stories assigned to specific authors.",
            "type": "array", "items": {"type": "integer"},
        },
        "include": {
            "description": "Limit result set to specific IDs.",
            "type": "array", "items": {"type": "integer"},
        },
        "exclude": {
            "description": "Ensure result set excludes specific IDs.",
            "type": "array", "items": {"type": "integer"},
        },
        "menu_order": {
            "description": "Limit result set to stories with a specific menu_order value.",
            "type": "integer",
        },
        "order": {
            "description": "Order sort attribute ascending or descending.",
            "type": "string", "enum": ["asc", "desc"], "default": "desc",
        },
        "orderby": {
            "description": "Sort collection by story attribute.",
            "type": "string", "enum": list(OrderBy.__args__), "default": "date",
        },
        "parent": {
            "description": "Limit result set to items with particular parent IDs.",
            "type": "array", "items": {"type": "integer"},
        },
        "parent_exclude": {
            "description": "Limit result set to all items except those of a particular parent ID.",
            "type": "array", "items": {"type": "integer"},
        },
        "slug": {
            "description": "Limit result set to stories with one or more specific slugs.",
            "type": "array", "items": {"type": "string"},
        },
        "status": {
            "description": "Limit result set to stories assigned one or more statuses.",
            "type": "array", "items": {"type": "string", "enum": list(StatusParam.__args__)},
            "default": ["publish"],
        },
        "tax_relation": {
            "description": "Limit result set based on relationship between multiple taxonomies.",
            "type": "string", "enum": ["AND", "OR"],
        },
        "_fields": {
            "description": "Limit response to specific fields.",
            "type": "array", "items": {"type": "string"},
        },
        "_web_stories_envelope": {
            "description": "Envelope request for preloading.",
            "type": "boolean", "default": False,
        },
    }

    for taxonomy in rest_taxonomies(taxonomies):
        params[taxonomy.param_name] = {
            "description": f"Limit result set to items with specific terms assigned in the {taxonomy.name} taxonomy.",  # noqa: E501
            "type": "array", "items": {"type": "integer"},
        }
        params[taxonomy.exclude_param_name] = {
            "description": f"Limit result set to items except those with specific terms assigned in the {taxonomy.name} taxonomy.",  # noqa: E501
            "type": "array", "items": {"type": "integer"},
        }

    return params


def _split_values(values: Sequence[str]) -> list[str]:
    """Flatten repeated and comma-separated list values."""
    result: list[str] = []
    for value in values:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def _collect_raw(
    query_params: Any,
    registered: Mapping[str, dict[str, Any]],
) -> dict[str, Any]:
    """
    Group raw query strings by registered parameter name. Unknown names are ignored.

    A list parameter sent without any value (`?status=`, `?include=,`) is
    treated as absent, so its declared default applies.
    """
    raw: dict[str, Any] = {}
    for key in query_params.keys():
        name = key.removesuffix("[]")
        if name not in registered:
            continue
        values = query_params.getlist(key)
        if registered[name].get("type") == "array":
            raw.setdefault(name, []).extend(_split_values(values))
        else:
            raw[name] = values[-1]
    return {name: value for name, value in raw.items() if value != []}


def parse_collection_params(
    query_params: Any,
    registered: Mapping[str, dict[str, Any]],
    taxonomies: tuple[TaxonomyConfig, ...] = STORY_TAXONOMIES,
) -> dict[str, Any]:
    """
    Validate raw listing query parameters.

    Args:
        query_params: Multi-valued mapping with getlist() (e.g. Starlette QueryParams).
        registered: Output of get_collection_params().
        taxonomies: Taxonomies attached to stories.

    Returns:
        Dict keyed by public parameter name holding parameters that were sent,
        plus declared defaults. Parameters with no value and no default are absent.

    Raises:
        ValidationError: If any parameter is malformed.
    """
    raw = _collect_raw(query_params, registered)
    errors: dict[str, str] = {}

    try:
        model = StoryCollectionParams.model_validate(raw)
    except PydanticValidationError as e:
        for error in e.errors():
            name = str(error["loc"][0]) if error["loc"] else "request"
            errors.setdefault(name, error["msg"])
        model = None

    term_params: dict[str, list[int]] = {}
    for taxonomy in rest_taxonomies(taxonomies):
        for name in (taxonomy.param_name, taxonomy.exclude_param_name):
            if name not in raw:
                continue
            try:
                term_params[name] = _term_ids_adapter.validate_python(raw[name])
            except PydanticValidationError as e:
                errors[name] = e.errors()[0]["msg"]

    if model is not None:
        for orderby, list_param in POSITIONAL_ORDERBY_PARAMS.items():
            if model.orderby == orderby and not getattr(model, list_param):
                errors["orderby"] = f"You need to define a {list_param} parameter to order by {orderby}."  # noqa: E501

    if errors or model is None:
        raise ValidationError(errors)

    params = model.model_dump(by_alias=True, exclude_none=True)
    params.update(term_params)
    return params
