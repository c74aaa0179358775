"""SQLAlchemy models."""
from models.api_token import ApiToken
from models.base import Base, TimestampMixin
from models.term import Term, post_terms  # Must be before post due to import
from models.option import Option
from models.post import STORY_POST_TYPE, Post
from models.user import User

__all__ = [
    "STORY_POST_TYPE",
    "ApiToken",
    "Base",
    "Option",
    "Post",
    "Term",
    "TimestampMixin",
    "User",
    "post_terms",
]
