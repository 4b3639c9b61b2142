"""Request and response models for the per-game log endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gamediary.services.log_state import LogState, LogStatus
from gamediary.services.types import GameRef


class GameInfo(BaseModel):
    """Metadata the client already has for the game being logged."""

    slug: str = Field(..., min_length=1, max_length=255, description="URL slug of the game")
    name: str = Field(..., min_length=1, max_length=512, description="Display name of the game")
    cover_id: str | None = Field(None, max_length=128, description="Cover image identifier")

    def to_ref(self, game_id: int) -> GameRef:
        return GameRef(game_id=game_id, slug=self.slug, name=self.name, cover_id=self.cover_id)


class WantToPlayRequest(BaseModel):
    game: GameInfo


class RatingRequest(BaseModel):
    game: GameInfo
    rating: float | None = Field(
        None, description="Half-star rating between 0.5 and 5.0, or null to clear"
    )


class StarClickRequest(BaseModel):
    game: GameInfo


class ReviewRequest(BaseModel):
    game: GameInfo
    review: str | None = Field(None, description="Review text; blank clears the review")


class FavoriteRequest(BaseModel):
    game: GameInfo
    favorite: bool = Field(..., description="Whether the game should hold a favorite slot")


class GameLogResponse(BaseModel):
    """Current state of one user's log for one game."""

    model_config = ConfigDict(use_enum_values=True)

    game_id: int
    exists: bool
    log_id: int | None = None
    status: LogStatus | None = None
    rating: float | None = None
    active_star: int = 0
    review: str | None = None
    favorite: bool = False
    favorite_position: int | None = None

    @classmethod
    def from_state(cls, game_id: int, state: LogState) -> GameLogResponse:
        return cls(
            game_id=game_id,
            exists=state.exists,
            log_id=state.log_id,
            status=state.status,
            rating=state.rating,
            active_star=state.active_star,
            review=state.review,
            favorite=state.favorite,
            favorite_position=state.favorite_position,
        )
