"""Taxonomy term model and the post/term junction table."""
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.post import Post


# Junction table for many-to-many relationship between posts and terms
post_terms = Table(
    "post_terms",
    Base.metadata,
    Column(
        "post_id",
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "term_id",
        Integer,
        ForeignKey("terms.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    # Index for lookups by term (composite PK already indexes post_id first)
    Index("ix_post_terms_term_id", "term_id"),
)


class Term(Base):
    """Term model - one entry in a taxonomy (e.g. a story category or tag)."""

    __tablename__ = "terms"
    __table_args__ = (
        UniqueConstraint("taxonomy", "slug", name="uq_terms_taxonomy_slug"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    taxonomy: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    # Hierarchy is stored but listing filters never expand to descendants
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("terms.id", ondelete="SET NULL"),
        nullable=True,
    )

    posts: Mapped[list["Post"]] = relationship(
        secondary=post_terms,
        back_populates="terms",
    )
