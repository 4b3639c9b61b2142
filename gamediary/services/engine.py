"""Composition root wiring the curation components over one record store."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from gamediary.errors import ensure_authenticated
from gamediary.services.favorites_ranker import FavoritesRanker
from gamediary.services.game_log_service import GameLogService
from gamediary.services.list_service import ListCollectionManager
from gamediary.services.mutation_queue import KeyedMutationQueue
from gamediary.settings import AppSettings, get_settings
from gamediary.store.base import RecordStore

logger = logging.getLogger(__name__)


class CurationEngine:
    """Shares one mutation queue between the game log, favorites and list components."""

    def __init__(self, store: RecordStore, app_settings: AppSettings | None = None) -> None:
        config = app_settings or get_settings()
        self.store = store
        self.settings = config
        self.queue = KeyedMutationQueue()
        self.game_logs = GameLogService(
            store,
            self.queue,
            favorite_slots=config.favorite_slots,
            batch_write_attempts=config.batch_write_attempts,
            batch_write_backoff_seconds=config.batch_write_backoff_seconds,
            view_cache_size=config.view_cache_size,
        )
        self.lists = ListCollectionManager(
            store,
            self.queue,
            batch_write_attempts=config.batch_write_attempts,
            batch_write_backoff_seconds=config.batch_write_backoff_seconds,
            view_cache_size=config.view_cache_size,
        )
        self._rankers: dict[str, FavoritesRanker] = {}
        self._ranker_leases: Counter[str] = Counter()

    def favorites_ranker(self, user_id: str) -> FavoritesRanker:
        user_id = ensure_authenticated(user_id)
        ranker = self._rankers.get(user_id)
        if ranker is None:
            ranker = FavoritesRanker(
                user_id,
                self.store,
                self.queue,
                capacity=self.settings.favorite_slots,
                batch_write_attempts=self.settings.batch_write_attempts,
                batch_write_backoff_seconds=self.settings.batch_write_backoff_seconds,
            )
            self._rankers[user_id] = ranker
        return ranker

    @asynccontextmanager
    async def leased_favorites_ranker(self, user_id: str) -> AsyncIterator[FavoritesRanker]:
        """Lend the user's ranker for one request, dropping it once nobody uses it."""

        ranker = self.favorites_ranker(user_id)
        self._ranker_leases[ranker.user_id] += 1
        try:
            yield ranker
        finally:
            self._ranker_leases[ranker.user_id] -= 1
            if self._ranker_leases[ranker.user_id] <= 0:
                del self._ranker_leases[ranker.user_id]
                self.release_ranker(ranker.user_id)

    def release_ranker(self, user_id: str) -> bool:
        """Forget an idle ranker; one that is editing or committing is kept."""

        ranker = self._rankers.get(user_id)
        if ranker is None or ranker.editing or ranker.committing:
            return False
        if self._ranker_leases.get(user_id):
            return False
        del self._rankers[user_id]
        return True

    async def close(self) -> None:
        """Wait for in-flight favorites commits before shutting down."""

        pending = [ranker for ranker in self._rankers.values() if ranker.committing]
        if pending:
            logger.info("Waiting for %d favorites commit(s) to settle", len(pending))
            await asyncio.gather(*(ranker.wait_for_commit() for ranker in pending))


__all__ = ["CurationEngine"]
