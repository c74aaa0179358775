"""Role-based capabilities for the story post type."""
from collections.abc import Iterable

from models.user import User

EDIT_STORIES = "edit_web-stories"
EDIT_OTHERS_STORIES = "edit_others_web-stories"
PUBLISH_STORIES = "publish_web-stories"
READ_PRIVATE_STORIES = "read_private_web-stories"

STORY_CAPABILITIES: tuple[str, ...] = (
    EDIT_STORIES,
    EDIT_OTHERS_STORIES,
    PUBLISH_STORIES,
    READ_PRIVATE_STORIES,
)

# Story capabilities granted to each role when story support is enabled
DEFAULT_ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "administrator": frozenset(STORY_CAPABILITIES),
    "editor": frozenset(STORY_CAPABILITIES),
    "author": frozenset({EDIT_STORIES, PUBLISH_STORIES}),
    "contributor": frozenset({EDIT_STORIES}),
    "subscriber": frozenset(),
}


class Capabilities:
    """
    Mutable role -> capability registry.

    Story capabilities can be granted to and revoked from roles as a unit;
    tests use this to check behaviour with and without story support.
    """

    def __init__(self, role_capabilities: dict[str, Iterable[str]] | None = None) -> None:
        source = DEFAULT_ROLE_CAPABILITIES if role_capabilities is None else role_capabilities
        self._roles: dict[str, set[str]] = {role: set(caps) for role, caps in source.items()}

    def add_caps_to_roles(self) -> None:
        """Grant the default story capabilities to every known role."""
        for role, caps in DEFAULT_ROLE_CAPABILITIES.items():
            self._roles.setdefault(role, set()).update(caps)

    def remove_caps_from_roles(self) -> None:
        """Revoke all story capabilities from every role."""
        for caps in self._roles.values():
            caps.difference_update(STORY_CAPABILITIES)

    def role_has_cap(self, role: str, capability: str) -> bool:
        return capability in self._roles.get(role, set())

    def user_can(self, user: User | None, capability: str) -> bool:
        """Anonymous callers have no capabilities."""
        if user is None:
            return False
        return self.role_has_cap(user.role, capability)


_capabilities = Capabilities()


def get_capabilities() -> Capabilities:
    """Return the process-wide capability registry (FastAPI dependency)."""
    return _capabilities
