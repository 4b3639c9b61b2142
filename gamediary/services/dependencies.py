"""FastAPI dependency wiring for the curation services.

Routers resolve the engine built during application startup and the id of
the already-authenticated caller; the services themselves stay free of
web-layer concerns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Header, Request

from gamediary.errors import ensure_authenticated
from gamediary.services.engine import CurationEngine
from gamediary.services.favorites_ranker import FavoritesRanker
from gamediary.services.game_log_service import GameLogService
from gamediary.services.list_service import ListCollectionManager


def get_curation_engine(request: Request) -> CurationEngine:
    return request.app.state.engine


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Identity of the caller as forwarded by the authenticating proxy."""

    return ensure_authenticated(x_user_id)


def get_optional_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def get_game_log_service(
    engine: CurationEngine = Depends(get_curation_engine),
) -> GameLogService:
    return engine.game_logs


def get_list_manager(
    engine: CurationEngine = Depends(get_curation_engine),
) -> ListCollectionManager:
    return engine.lists


async def get_favorites_ranker(
    engine: CurationEngine = Depends(get_curation_engine),
    user_id: str = Depends(get_current_user_id),
) -> AsyncIterator[FavoritesRanker]:
    async with engine.leased_favorites_ranker(user_id) as ranker:
        yield ranker


__all__ = [
    "get_curation_engine",
    "get_current_user_id",
    "get_favorites_ranker",
    "get_game_log_service",
    "get_list_manager",
    "get_optional_user_id",
]
