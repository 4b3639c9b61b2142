"""Value objects shared by the curation services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from gamediary.store.base import Record


@dataclass(frozen=True, slots=True)
class GameRef:
    """Game metadata supplied by the caller when a row may need creating."""

    game_id: int
    slug: str
    name: str
    cover_id: str | None = None

    def record_fields(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "game_slug": self.slug,
            "game_name": self.name,
            "game_cover_id": self.cover_id,
        }


@dataclass(frozen=True, slots=True)
class FavoriteEntry:
    """One favorited game log as shown in the top-5 ranking."""

    game_log_id: int
    game_id: int
    game_slug: str
    game_name: str
    game_cover_id: str | None
    rating: float | None
    position: int | None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: Record) -> FavoriteEntry:
        return cls(
            game_log_id=record["id"],
            game_id=record["game_id"],
            game_slug=record["game_slug"],
            game_name=record["game_name"],
            game_cover_id=record.get("game_cover_id"),
            rating=record.get("rating"),
            position=record.get("favorite_position"),
            updated_at=record.get("updated_at"),
        )


@dataclass(frozen=True, slots=True)
class ListItemView:
    """A list membership.  ``id`` is ``None`` while the insert is in flight."""

    id: int | None
    list_id: int
    game_id: int
    game_slug: str
    game_name: str
    game_cover_id: str | None
    position: int
    notes: str | None = None

    @classmethod
    def from_record(cls, record: Record) -> ListItemView:
        return cls(
            id=record["id"],
            list_id=record["list_id"],
            game_id=record["game_id"],
            game_slug=record["game_slug"],
            game_name=record["game_name"],
            game_cover_id=record.get("game_cover_id"),
            position=record["position"],
            notes=record.get("notes"),
        )


@dataclass(frozen=True, slots=True)
class GameListView:
    """List metadata together with its items in position order."""

    id: int
    user_id: str
    name: str
    description: str | None
    is_public: bool
    is_ranked: bool
    items: tuple[ListItemView, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(
        cls, record: Record, items: tuple[ListItemView, ...] = ()
    ) -> GameListView:
        return cls(
            id=record["id"],
            user_id=record["user_id"],
            name=record["name"],
            description=record.get("description"),
            is_public=bool(record.get("is_public", True)),
            is_ranked=bool(record.get("is_ranked", False)),
            items=items,
            created_at=record.get("created_at"),
            updated_at=record.get("updated_at"),
        )


@dataclass(frozen=True, slots=True)
class ListMembership:
    """Whether one of the user's lists contains a given game."""

    list_id: int
    list_name: str
    contains_game: bool
    item_id: int | None = None


__all__ = [
    "FavoriteEntry",
    "GameListView",
    "GameRef",
    "ListItemView",
    "ListMembership",
]
