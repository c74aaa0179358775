"""Story endpoints: listing with per-status counts, single-story read/update, schema."""
import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_capabilities,
    get_current_user,
    get_filter_assembler,
    get_optional_user,
    get_settings,
    get_story_taxonomies,
)
from api.helpers import (
    authorization_error,
    check_can_edit_story,
    check_can_read_story,
    check_can_set_status,
    check_context_permission,
    resolve_status_filter,
)
from core.capabilities import Capabilities
from core.config import Settings
from core.taxonomies import TaxonomyConfig
from models.user import User
from schemas.story import StoryUpdate, get_item_schema
from schemas.story_params import get_collection_params, parse_collection_params
from services import story_list_service, story_service
from services.exceptions import StatusForbiddenError, StoryNotFoundError
from services.response_envelope import build_collection_headers, envelope_response
from services.story_query import FilterAssembler, build_query_spec

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["stories"])


def _pagination_links(request: Request, page: int, total_pages: int) -> list[str]:
    """Build Link header entries for the previous and next pages."""
    links = []
    if page > 1:
        prev_page = min(page - 1, total_pages) if total_pages else 1
        prev_url = request.url.include_query_params(page=prev_page)
        links.append(f'<{prev_url}>; rel="prev"')
    if page < total_pages:
        next_url = request.url.include_query_params(page=page + 1)
        links.append(f'<{next_url}>; rel="next"')
    return links


@router.get("/schema")
async def get_story_schema(
    settings: Settings = Depends(get_settings),
    taxonomies: tuple[TaxonomyConfig, ...] = Depends(get_story_taxonomies),
) -> dict[str, Any]:
    """Return the story item schema and the listing parameter registry."""
    return {
        "schema": get_item_schema(taxonomies),
        "collection_params": get_collection_params(
            settings.stories_per_page_default,
            settings.stories_per_page_max,
            taxonomies,
        ),
    }


@router.get("/")
async def list_stories(
    request: Request,
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    caps: Capabilities = Depends(get_capabilities),
    assembler: FilterAssembler = Depends(get_filter_assembler),
    taxonomies: tuple[TaxonomyConfig, ...] = Depends(get_story_taxonomies),
) -> JSONResponse:
    """
    List stories with filtering, sorting and pagination.

    Query parameters are described by GET /stories/schema. Totals are returned
    in X-WP-Total / X-WP-TotalPages; with context=edit, X-WP-TotalByStatus holds
    a JSON object of per-status counts. With _web_stories_envelope=true the
    status, headers and body are wrapped into the response body.
    """
    registered = get_collection_params(
        settings.stories_per_page_default,
        settings.stories_per_page_max,
        taxonomies,
    )
    params = parse_collection_params(request.query_params, registered, taxonomies)

    context = params["context"]
    check_context_permission(context, current_user, caps)
    try:
        params["status"] = resolve_status_filter(params["status"], current_user, caps)
    except StatusForbiddenError as e:
        raise authorization_error(current_user, str(e))

    spec = build_query_spec(params, registered, assembler)
    result, status_counts = await story_list_service.list_stories(
        db,
        spec,
        with_status_counts=context == "edit",
        timeout=settings.query_timeout_seconds,
    )

    extras = await story_service.load_response_extras(db, settings.publisher_logo_url_template)
    body = [
        story_service.prepare_story_for_response(
            post,
            context=context,
            requested_fields=params.get("_fields"),
            extras=extras,
            site_url=settings.site_url,
            taxonomies=taxonomies,
        )
        for post in result.items
    ]
    headers = build_collection_headers(
        result.total,
        result.total_pages,
        status_counts=status_counts,
        links=_pagination_links(request, spec.page, result.total_pages),
    )

    if params["_web_stories_envelope"]:
        return JSONResponse(envelope_response(200, headers, body))
    return JSONResponse(body, headers=headers)


@router.get("/{story_id}")
async def get_story(
    story_id: int,
    context: Literal["view", "edit"] = Query(default="view"),
    fields: list[str] | None = Query(default=None, alias="_fields"),
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    caps: Capabilities = Depends(get_capabilities),
    taxonomies: tuple[TaxonomyConfig, ...] = Depends(get_story_taxonomies),
) -> dict[str, Any]:
    """Get a single story."""
    try:
        post = await story_service.require_story(db, story_id)
    except StoryNotFoundError:
        raise HTTPException(status_code=404, detail="Story not found")

    check_context_permission(context, current_user, caps)
    check_can_read_story(post, current_user, caps)

    extras = await story_service.load_response_extras(db, settings.publisher_logo_url_template)
    return story_service.prepare_story_for_response(
        post,
        context=context,
        requested_fields=fields,
        extras=extras,
        site_url=settings.site_url,
        taxonomies=taxonomies,
    )


@router.patch("/{story_id}")
async def update_story(
    story_id: int,
    data: StoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    caps: Capabilities = Depends(get_capabilities),
    taxonomies: tuple[TaxonomyConfig, ...] = Depends(get_story_taxonomies),
) -> dict[str, Any]:
    """
    Update a story.

    `publisher_logo` registers and activates a publisher logo; `style_presets`
    replaces the presets shared by all stories.
    """
    try:
        post = await story_service.require_story(db, story_id)
    except StoryNotFoundError:
        raise HTTPException(status_code=404, detail="Story not found")

    check_can_edit_story(post, current_user, caps)
    try:
        check_can_set_status(data.status, current_user, caps)
    except StatusForbiddenError as e:
        raise authorization_error(current_user, str(e))

    post = await story_service.update_story(db, post, data)

    extras = await story_service.load_response_extras(db, settings.publisher_logo_url_template)
    return story_service.prepare_story_for_response(
        post,
        context="edit",
        extras=extras,
        site_url=settings.site_url,
        taxonomies=taxonomies,
    )
