"""SQLAlchemy ORM models for game logs and user curated lists.

``game_logs`` holds one row per (user, game) pair the user has interacted with,
including the 1-based ``favorite_position`` that orders the top-5 ranking.
``lists`` and ``list_items`` back the named, ordered collections whose 0-based
``position`` column the services keep dense.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow():
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class GameLog(Base):
    """A user's relationship to a single game."""

    __tablename__ = "game_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "game_id", name="uq_game_logs_user_game"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        index=True,
        nullable=False,
        doc=(
            "Opaque identifier for the owning user, forwarded by whatever"
            " authentication layer fronts the API."
        ),
    )
    game_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    game_slug: Mapped[str] = mapped_column(String(255), nullable=False)
    game_name: Mapped[str] = mapped_column(String(512), nullable=False)
    game_cover_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        doc="Either 'want_to_play' or 'played'.",
    )
    rating: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        doc="Half-star rating between 0.5 and 5.0; always null for want_to_play.",
    )
    review: Mapped[str | None] = mapped_column(Text, nullable=True)
    favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
    )
    favorite_position: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc=(
            "1-based slot in the user's top-5 ranking.  Null whenever"
            " ``favorite`` is false."
        ),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class GameList(Base):
    """A named, ordered collection of games owned by a single user."""

    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="1",
    )
    is_ranked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
        doc="Display-only flag; storage order is always ``position``.",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class ListItem(Base):
    """Membership row linking a game to a list at a given position."""

    __tablename__ = "list_items"
    __table_args__ = (
        UniqueConstraint("list_id", "game_id", name="uq_list_items_list_game"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    list_id: Mapped[int] = mapped_column(
        ForeignKey("lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        doc=(
            "Owner of the parent list, duplicated so every membership a user"
            " holds can be fetched with a single equality query."
        ),
    )
    game_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    game_slug: Mapped[str] = mapped_column(String(255), nullable=False)
    game_name: Mapped[str] = mapped_column(String(512), nullable=False)
    game_cover_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        doc="Zero-based, dense ordering index within the parent list.",
    )
    notes: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


__all__ = ["Base", "GameList", "GameLog", "ListItem", "utcnow"]
