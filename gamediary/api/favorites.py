"""FastAPI router for the ranked favorites shelf."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gamediary.schemas.favorites import FavoriteOrderRequest, FavoritesResponse
from gamediary.services.dependencies import get_favorites_ranker
from gamediary.services.favorites_ranker import FavoritesRanker

router = APIRouter()


def _response(ranker: FavoritesRanker) -> FavoritesResponse:
    entries = ranker.confirmed_entries
    return FavoritesResponse.build(ranker.capacity, entries, ranker.padded(entries))


@router.get("", response_model=FavoritesResponse)
async def get_favorites(
    ranker: FavoritesRanker = Depends(get_favorites_ranker),
) -> FavoritesResponse:
    """Return the caller's stored favorites in ranked order plus the padded slot view."""

    await ranker.load()
    return _response(ranker)


@router.put("/order", response_model=FavoritesResponse)
async def save_favorite_order(
    payload: FavoriteOrderRequest,
    ranker: FavoritesRanker = Depends(get_favorites_ranker),
) -> FavoritesResponse:
    """Apply a complete edit session in one request.

    The body lists the favorites top to bottom; current favorites that are
    left out are un-favorited.  Every request starts from freshly loaded
    favorites and a failed commit leaves nothing behind, so the same
    request can simply be retried.
    """

    await ranker.load()
    ranker.discard_edit()
    ranker.enter_edit()
    try:
        ranker.apply_order(payload.game_log_ids)
        await ranker.exit_edit()
    finally:
        ranker.discard_edit()
    return _response(ranker)
