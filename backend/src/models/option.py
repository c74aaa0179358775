"""Option model - generic key/value configuration storage."""
from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin


class Option(Base, TimestampMixin):
    """A named JSON value (style presets, publisher logos, ...)."""

    __tablename__ = "options"

    name: Mapped[str] = mapped_column(String(191), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
