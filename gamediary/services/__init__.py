"""Curation services: game logs, ranked favorites and ordered lists."""

from gamediary.services.engine import CurationEngine
from gamediary.services.favorites_ranker import FavoritesRanker
from gamediary.services.game_log_service import GameLogService
from gamediary.services.list_service import ListCollectionManager
from gamediary.services.log_state import CLEAR_RATING, LogState, LogStatus
from gamediary.services.types import (
    FavoriteEntry,
    GameListView,
    GameRef,
    ListItemView,
    ListMembership,
)

__all__ = [
    "CLEAR_RATING",
    "CurationEngine",
    "FavoriteEntry",
    "FavoritesRanker",
    "GameListView",
    "GameLogService",
    "GameRef",
    "ListCollectionManager",
    "ListItemView",
    "ListMembership",
    "LogState",
    "LogStatus",
]
