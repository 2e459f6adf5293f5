"""SQLAlchemy ORM models for PostgreSQL.

The models are the schema definition only: repositories query through raw
asyncpg SQL, and ``init_db`` compiles these tables into DDL.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..models.enums import Region
from ..models.requests import (
    CULTURAL_CONTEXT_MAX_LENGTH,
    STORY_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)

REGION_VALUES = ", ".join(f"'{region.value}'" for region in Region)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


class User(Base):
    """User model - registered storytellers."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)  # bcrypt hash
    institution: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )


class Tale(Base):
    """Tale model - a story record with its cultural metadata."""

    __tablename__ = "tales"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    story: Mapped[str] = mapped_column(String(STORY_MAX_LENGTH), nullable=False)
    cultural_context: Mapped[Optional[str]] = mapped_column(String(CULTURAL_CONTEXT_MAX_LENGTH))
    region: Mapped[str] = mapped_column(String(32), nullable=False)
    # Plain column, not a foreign key: a tale may outlive its author
    author_id: Mapped[str] = mapped_column(String(36), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    audio_url: Mapped[Optional[str]] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    views: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )

    __table_args__ = (
        CheckConstraint(f"region IN ({REGION_VALUES})", name="ck_tales_region"),
        CheckConstraint("views >= 0", name="ck_tales_views_non_negative"),
        Index("idx_tales_public_created_at", "is_public", "created_at"),
        Index("idx_tales_author_id", "author_id"),
    )


class AnalyticsEvent(Base):
    """Append-only analytics events. Tale and user ids are weak references."""

    __tablename__ = "analytics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)  # 'tale_view', 'map_interaction', ...
    tale_id: Mapped[Optional[str]] = mapped_column(String(36))
    user_id: Mapped[Optional[str]] = mapped_column(String(36))
    metadata_: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSONB)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )

    __table_args__ = (
        Index("idx_analytics_tale_id", "tale_id"),
        Index("idx_analytics_type", "type"),
    )
