"""User model for storing authors and API callers."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.api_token import ApiToken
    from models.post import Post


class User(Base, TimestampMixin):
    """User model - story authors and the identity store for author-name sorting."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    login: Mapped[str] = mapped_column(String(60), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(250), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        default="subscriber",
        comment="Role name resolved against the capability map in core.capabilities",
    )

    posts: Mapped[list["Post"]] = relationship(back_populates="author")
    api_tokens: Mapped[list["ApiToken"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )
