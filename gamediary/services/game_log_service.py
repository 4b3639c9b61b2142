"""Per-(user, game) log mutations: status, rating, review and favorite flag.

Every mutation re-reads the confirmed record inside its entity lock, computes
the next state from the transition table in :mod:`gamediary.services.log_state`
and applies it optimistically to the local view before writing.  Operations
that may take or vacate a favorite slot also hold the user's favorites lock,
and compact the remaining positions back to ``1..N`` after a slot is vacated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import Any

from gamediary.errors import RemoteStoreError, ensure_authenticated
from gamediary.services.batch_writes import run_to_completion, write_batch
from gamediary.services.log_state import (
    ABSENT,
    Effect,
    LogState,
    Transition,
    favorite_transition,
    next_star_rating,
    rating_transition,
    remove_transition,
    review_transition,
    state_from_record,
    validate_rating,
    validate_star,
    want_to_play_transition,
)
from gamediary.services.mutation_queue import (
    KeyedMutationQueue,
    favorites_key,
    game_log_key,
)
from gamediary.services.optimistic import ViewRegistry
from gamediary.services.positions import position_updates, sort_favorites
from gamediary.services.types import GameRef
from gamediary.store.base import GAME_LOGS, Record, RecordStore

logger = logging.getLogger(__name__)


class GameLogService:
    """Owns the status, rating, review and favorite rules of one user's game logs."""

    def __init__(
        self,
        store: RecordStore,
        queue: KeyedMutationQueue,
        *,
        favorite_slots: int,
        batch_write_attempts: int,
        batch_write_backoff_seconds: float,
        view_cache_size: int,
    ) -> None:
        self._store = store
        self._queue = queue
        self._favorite_slots = favorite_slots
        self._attempts = batch_write_attempts
        self._backoff = batch_write_backoff_seconds
        self._views: ViewRegistry[tuple[str, int], LogState] = ViewRegistry(
            ABSENT, max_settled=view_cache_size
        )

    @property
    def favorite_slots(self) -> int:
        return self._favorite_slots

    def view(self, user_id: str, game_id: int) -> LogState:
        """Pending state while a mutation is in flight, else the last confirmed one."""

        user_id = ensure_authenticated(user_id)
        return self._views.current((user_id, game_id))

    def _release(self, key: tuple[str, int]) -> None:
        # absent logs have nothing worth remembering
        self._views.release(key, keep=self._views.current(key).exists)

    async def _read(self, user_id: str, game_id: int) -> Record | None:
        records = await self._store.query(
            GAME_LOGS, {"user_id": user_id, "game_id": game_id}
        )
        return records[0] if records else None

    async def _favorites(self, user_id: str) -> list[Record]:
        return await self._store.query(GAME_LOGS, {"user_id": user_id, "favorite": True})

    async def load(self, user_id: str, game_id: int) -> LogState:
        user_id = ensure_authenticated(user_id)
        state = state_from_record(await self._read(user_id, game_id))
        key = (user_id, game_id)
        view = self._views.open(key)
        view.reset(state)
        current = view.current
        self._release(key)
        return current

    async def favorite_count(self, user_id: str) -> int:
        user_id = ensure_authenticated(user_id)
        return len(await self._favorites(user_id))

    async def set_want_to_play(self, user_id: str, game: GameRef) -> LogState:
        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._mutate(user_id, game, want_to_play_transition, slot_lock=True)
        )

    async def set_rating(self, user_id: str, game: GameRef, value: float | None) -> LogState:
        user_id = ensure_authenticated(user_id)
        rating = validate_rating(value)
        return await run_to_completion(
            self._mutate(user_id, game, lambda state: rating_transition(state, rating))
        )

    async def click_star(self, user_id: str, game: GameRef, star: int) -> LogState:
        """Apply one click on ``star``; the next rating is computed from the stored one."""

        user_id = ensure_authenticated(user_id)
        star = validate_star(star)
        return await run_to_completion(
            self._mutate(
                user_id,
                game,
                lambda state: rating_transition(state, next_star_rating(state.rating, star)),
            )
        )

    async def set_review(self, user_id: str, game: GameRef, text: str | None) -> LogState:
        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._mutate(user_id, game, lambda state: review_transition(state, text))
        )

    async def set_favorite(self, user_id: str, game: GameRef, on: bool) -> LogState:
        user_id = ensure_authenticated(user_id)
        return await run_to_completion(self._set_favorite(user_id, game, on))

    async def remove(self, user_id: str, game_id: int) -> LogState:
        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._mutate(user_id, None, remove_transition, slot_lock=True, game_id=game_id)
        )

    async def _set_favorite(self, user_id: str, game: GameRef, on: bool) -> LogState:
        async with self._queue.hold(
            favorites_key(user_id), game_log_key(user_id, game.game_id)
        ):
            count = 0
            if on:
                count = len(await self._compact_favorites(user_id))
            state = state_from_record(await self._read(user_id, game.game_id))
            transition = favorite_transition(
                state, on, favorite_count=count, capacity=self._favorite_slots
            )
            return await self._settle(user_id, game.game_id, game, state, transition)

    async def _mutate(
        self,
        user_id: str,
        game: GameRef | None,
        decide: Callable[[LogState], Transition],
        *,
        slot_lock: bool = False,
        game_id: int | None = None,
    ) -> LogState:
        if game_id is None:
            assert game is not None
            game_id = game.game_id
        keys = [game_log_key(user_id, game_id)]
        if slot_lock:
            keys.append(favorites_key(user_id))

        async with self._queue.hold(*keys):
            state = state_from_record(await self._read(user_id, game_id))
            transition = decide(state)
            return await self._settle(user_id, game_id, game, state, transition)

    async def _settle(
        self,
        user_id: str,
        game_id: int,
        game: GameRef | None,
        state: LogState,
        transition: Transition,
    ) -> LogState:
        key = (user_id, game_id)
        view = self._views.open(key)
        view.reset(state)
        try:
            if transition.effect is Effect.NONE:
                return state

            async def write() -> LogState:
                return await self._write(user_id, game, state, transition)

            try:
                confirmed = await view.apply(transition.state, write)
            except RemoteStoreError as exc:
                logger.warning(
                    "Rolled back %s of game %s for user %s: %s",
                    transition.effect.value,
                    game_id,
                    user_id,
                    exc,
                )
                raise

            if transition.vacates_slot:
                await self._compact_favorites(user_id)
            return confirmed
        finally:
            self._release(key)

    async def _write(
        self,
        user_id: str,
        game: GameRef | None,
        state: LogState,
        transition: Transition,
    ) -> LogState:
        if transition.effect is Effect.CREATE:
            assert game is not None
            fields: dict[str, Any] = {"user_id": user_id, **game.record_fields()}
            fields.update(transition.changes)
            return state_from_record(await self._store.insert(GAME_LOGS, fields))
        if transition.effect is Effect.DELETE:
            await self._store.delete(GAME_LOGS, state.log_id)
            return ABSENT
        record = await self._store.update(GAME_LOGS, state.log_id, transition.changes)
        return state_from_record(record)

    async def _compact_favorites(self, user_id: str) -> list[Record]:
        """Renumber the user's favorites to ``1..N``; caller holds the favorites lock.

        Also repairs gaps or duplicate slots left by an earlier compaction that
        failed part way.  Returns the favorites in slot order.
        """

        favorites = sort_favorites(await self._favorites(user_id))
        updates = position_updates(favorites, "favorite_position", start=1)
        if not updates:
            return favorites

        writes = {
            log_id: partial(
                self._store.update, GAME_LOGS, log_id, {"favorite_position": position}
            )
            for log_id, position in updates.items()
        }
        results = await write_batch(
            writes,
            attempts=self._attempts,
            backoff_seconds=self._backoff,
            label=f"favorite compaction for {user_id}",
        )
        for record in results.values():
            cached = self._views.get((user_id, record["game_id"]))
            if cached is not None:
                cached.reset(state_from_record(record))
        logger.info("Compacted %d favorite position(s) for %s", len(updates), user_id)
        return favorites


__all__ = ["GameLogService"]
