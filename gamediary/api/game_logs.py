"""FastAPI router exposing one user's log for one game."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gamediary.schemas.game_log import (
    FavoriteRequest,
    GameLogResponse,
    RatingRequest,
    ReviewRequest,
    StarClickRequest,
    WantToPlayRequest,
)
from gamediary.services.dependencies import get_current_user_id, get_game_log_service
from gamediary.services.game_log_service import GameLogService

router = APIRouter()


@router.get("/{game_id}", response_model=GameLogResponse)
async def get_game_log(
    game_id: int,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    """Return the caller's stored log for ``game_id`` (absent logs report ``exists=false``)."""

    state = await service.load(user_id, game_id)
    return GameLogResponse.from_state(game_id, state)


@router.put("/{game_id}/want-to-play", response_model=GameLogResponse)
async def toggle_want_to_play(
    game_id: int,
    payload: WantToPlayRequest,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    """Toggle want-to-play; toggling off an existing want-to-play log removes it."""

    state = await service.set_want_to_play(user_id, payload.game.to_ref(game_id))
    return GameLogResponse.from_state(game_id, state)


@router.put("/{game_id}/rating", response_model=GameLogResponse)
async def set_rating(
    game_id: int,
    payload: RatingRequest,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    state = await service.set_rating(user_id, payload.game.to_ref(game_id), payload.rating)
    return GameLogResponse.from_state(game_id, state)


@router.post("/{game_id}/stars/{star}", response_model=GameLogResponse)
async def click_star(
    game_id: int,
    star: int,
    payload: StarClickRequest,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    """Apply one click on a star of the rating widget."""

    state = await service.click_star(user_id, payload.game.to_ref(game_id), star)
    return GameLogResponse.from_state(game_id, state)


@router.put("/{game_id}/review", response_model=GameLogResponse)
async def set_review(
    game_id: int,
    payload: ReviewRequest,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    state = await service.set_review(user_id, payload.game.to_ref(game_id), payload.review)
    return GameLogResponse.from_state(game_id, state)


@router.put("/{game_id}/favorite", response_model=GameLogResponse)
async def set_favorite(
    game_id: int,
    payload: FavoriteRequest,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    state = await service.set_favorite(
        user_id, payload.game.to_ref(game_id), payload.favorite
    )
    return GameLogResponse.from_state(game_id, state)


@router.delete("/{game_id}", response_model=GameLogResponse)
async def remove_game_log(
    game_id: int,
    user_id: str = Depends(get_current_user_id),
    service: GameLogService = Depends(get_game_log_service),
) -> GameLogResponse:
    """Remove the game from the caller's library, vacating any favorite slot."""

    state = await service.remove(user_id, game_id)
    return GameLogResponse.from_state(game_id, state)
