"""Post model - shared content table for stories and other post types."""
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin
from models.term import post_terms

if TYPE_CHECKING:
    from models.term import Term
    from models.user import User


STORY_POST_TYPE = "web-story"


class Post(Base, TimestampMixin):
    """
    Post model - one content item of a given post_type.

    Stories are posts with post_type == STORY_POST_TYPE. `date` is the publish
    date (in the future for scheduled posts); `updated_at` is exposed as the
    modified date.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_type_status_date", "post_type", "status", "date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    post_type: Mapped[str] = mapped_column(String(20), nullable=False, default=STORY_POST_TYPE)
    author_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("posts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    slug: Mapped[str] = mapped_column(String(200), nullable=False, default="", index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    excerpt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Structured editor payload for the story
    story_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    menu_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    author: Mapped["User"] = relationship(back_populates="posts")
    terms: Mapped[list["Term"]] = relationship(
        secondary=post_terms,
        back_populates="posts",
    )
