"""Shared utility functions for service layer."""
from datetime import UTC, datetime


def escape_like(value: str) -> str:
    r"""
    Escape LIKE/ILIKE wildcard characters so they match literally.

    Patterns built from the result must be compiled with escape="\\":
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_terms(search: str) -> list[str]:
    """Split a free-text search into whitespace-separated terms."""
    return [term for term in search.split() if term]


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
