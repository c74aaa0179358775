"""Permission gating for story endpoints."""
from fastapi import HTTPException, status

from core.capabilities import (
    EDIT_OTHERS_STORIES,
    EDIT_STORIES,
    PUBLISH_STORIES,
    READ_PRIVATE_STORIES,
    Capabilities,
)
from models.post import Post
from models.user import User
from services.exceptions import StatusForbiddenError

PUBLIC_STATUSES = frozenset({"publish"})
PUBLISHING_STATUSES = frozenset({"publish", "future"})

# Statuses "any" expands to for callers that may edit stories
ANY_STATUSES = ("publish", "future", "draft", "pending", "private")


def authorization_error(user: User | None, detail: str) -> HTTPException:
    """401 for anonymous callers, 403 for authenticated ones."""
    if user is None:
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def check_context_permission(context: str, user: User | None, caps: Capabilities) -> None:
    """The edit context is reserved for users who can edit stories."""
    if context == "edit" and not caps.user_can(user, EDIT_STORIES):
        raise authorization_error(
            user, "Sorry, you are not allowed to edit stories in this context.",
        )


def resolve_status_filter(
    statuses: list[str],
    user: User | None,
    caps: Capabilities,
) -> list[str]:
    """
    Check the requested listing statuses against the caller's capabilities.

    "any" expands to every listable status the caller may see, so private
    stories are left out for callers without the read-private capability.
    Anything other than published stories needs the edit capability; an
    explicitly requested private status also needs the read-private
    capability. An empty request falls back to published stories.

    Raises:
        StatusForbiddenError: If any requested status is not visible to the caller.
    """
    can_read_private = caps.user_can(user, READ_PRIVATE_STORIES)
    requested: list[str] = []
    for value in statuses or ["publish"]:
        if value == "any":
            expanded_statuses = tuple(
                s for s in ANY_STATUSES if s != "private" or can_read_private
            )
        else:
            expanded_statuses = (value,)
        for expanded in expanded_statuses:
            if expanded not in requested:
                requested.append(expanded)

    forbidden = [
        s for s in requested
        if s not in PUBLIC_STATUSES and not caps.user_can(user, EDIT_STORIES)
    ]
    if "private" in requested and not can_read_private:
        forbidden.append("private")
    if forbidden:
        raise StatusForbiddenError(sorted(set(forbidden)))
    return requested


def check_can_read_story(post: Post, user: User | None, caps: Capabilities) -> None:
    """Published stories are public; anything else needs edit rights on the story."""
    if post.status in PUBLIC_STATUSES:
        return
    check_can_edit_story(post, user, caps)


def check_can_edit_story(post: Post, user: User | None, caps: Capabilities) -> None:
    """Editing needs the edit capability, plus edit-others for someone else's story."""
    if not caps.user_can(user, EDIT_STORIES):
        raise authorization_error(user, "Sorry, you are not allowed to edit this story.")
    is_owner = user is not None and post.author_id == user.id
    if not is_owner and not caps.user_can(user, EDIT_OTHERS_STORIES):
        raise authorization_error(
            user, "Sorry, you are not allowed to edit stories by other users.",
        )


def check_can_set_status(new_status: str | None, user: User | None, caps: Capabilities) -> None:
    """Publishing or scheduling needs the publish capability."""
    if new_status in PUBLISHING_STATUSES and not caps.user_can(user, PUBLISH_STORIES):
        raise StatusForbiddenError([new_status])
