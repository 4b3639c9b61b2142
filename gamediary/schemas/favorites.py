"""Schemas for the ranked favorites endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gamediary.services.types import FavoriteEntry


class FavoriteSlot(BaseModel):
    """One favorited game at its 1-based ranking position."""

    model_config = ConfigDict(from_attributes=True)

    game_log_id: int
    game_id: int
    game_slug: str
    game_name: str
    game_cover_id: str | None = None
    rating: float | None = None
    position: int | None = Field(None, description="1-based slot; null until ranked")


class FavoritesResponse(BaseModel):
    capacity: int = Field(..., description="Number of slots a user may fill")
    favorites: list[FavoriteSlot] = Field(default_factory=list)
    slots: list[FavoriteSlot | None] = Field(
        default_factory=list,
        description="Exactly ``capacity`` entries, null where a slot is empty",
    )

    @classmethod
    def build(
        cls,
        capacity: int,
        entries: tuple[FavoriteEntry, ...],
        slots: tuple[FavoriteEntry | None, ...],
    ) -> FavoritesResponse:
        return cls(
            capacity=capacity,
            favorites=[FavoriteSlot.model_validate(entry) for entry in entries],
            slots=[
                FavoriteSlot.model_validate(entry) if entry is not None else None
                for entry in slots
            ],
        )


class FavoriteOrderRequest(BaseModel):
    """Desired top-to-bottom ranking; current favorites left out are un-favorited."""

    game_log_ids: list[int] = Field(default_factory=list)
