"""API helper utilities."""
from api.helpers.permissions import (
    authorization_error,
    check_can_edit_story,
    check_can_read_story,
    check_can_set_status,
    check_context_permission,
    resolve_status_filter,
)

__all__ = [
    "authorization_error",
    "check_can_edit_story",
    "check_can_read_story",
    "check_can_set_status",
    "check_context_permission",
    "resolve_status_filter",
]
