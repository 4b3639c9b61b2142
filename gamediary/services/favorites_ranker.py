"""Edit-buffer-then-commit ranking of one user's favorite games."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace
from functools import partial

from gamediary.errors import EditModeRequired, RemoteStoreError, ValidationError
from gamediary.services.batch_writes import log_detached_failure, write_batch
from gamediary.services.mutation_queue import KeyedMutationQueue, favorites_key
from gamediary.services.optimistic import OptimisticValue
from gamediary.services.positions import in_range, moved, sort_favorites
from gamediary.services.types import FavoriteEntry
from gamediary.store.base import GAME_LOGS, RecordStore

logger = logging.getLogger(__name__)


class FavoritesRanker:
    """Ordered top-N view over a user's favorited game logs.

    Outside edit mode :attr:`entries` mirrors the confirmed ranking.  Inside
    edit mode every gesture mutates a local buffer only; :meth:`commit`
    reconciles the buffer to storage with one concurrent batch of absolute
    position writes and un-favorites whatever was removed from the buffer.
    """

    def __init__(
        self,
        user_id: str,
        store: RecordStore,
        queue: KeyedMutationQueue,
        *,
        capacity: int,
        batch_write_attempts: int,
        batch_write_backoff_seconds: float,
    ) -> None:
        self.user_id = user_id
        self._store = store
        self._queue = queue
        self._capacity = capacity
        self._attempts = batch_write_attempts
        self._backoff = batch_write_backoff_seconds
        self._entries: OptimisticValue[tuple[FavoriteEntry, ...]] = OptimisticValue(())
        self._buffer: list[FavoriteEntry] | None = None
        self._commit_task: asyncio.Future[tuple[FavoriteEntry, ...]] | None = None

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def editing(self) -> bool:
        return self._buffer is not None

    @property
    def entries(self) -> tuple[FavoriteEntry, ...]:
        if self._buffer is not None:
            return tuple(self._buffer)
        return self._entries.current

    @property
    def confirmed_entries(self) -> tuple[FavoriteEntry, ...]:
        """The stored ranking, ignoring any open edit buffer."""

        return self._entries.confirmed

    def padded(
        self, entries: tuple[FavoriteEntry, ...]
    ) -> tuple[FavoriteEntry | None, ...]:
        entries = entries[: self._capacity]
        return entries + (None,) * (self._capacity - len(entries))

    @property
    def slots(self) -> tuple[FavoriteEntry | None, ...]:
        return self.padded(self.entries)

    @property
    def committing(self) -> bool:
        return self._commit_task is not None and not self._commit_task.done()

    async def load(self) -> tuple[FavoriteEntry, ...]:
        records = await self._store.query(
            GAME_LOGS, {"user_id": self.user_id, "favorite": True}
        )
        self._entries.reset(
            tuple(FavoriteEntry.from_record(record) for record in sort_favorites(records))
        )
        return self.entries

    def enter_edit(self) -> None:
        if self._buffer is None:
            self._buffer = list(self._entries.current)

    async def exit_edit(self) -> None:
        """Commit pending changes, then leave edit mode.

        A failed commit propagates and leaves the ranker in edit mode with
        the buffer intact so the user can retry.
        """

        if self._buffer is None:
            return
        if self.has_pending_changes:
            await self.commit()
        self._buffer = None

    def discard_edit(self) -> None:
        """Leave edit mode without writing; the buffer is dropped."""

        self._buffer = None

    def _require_buffer(self) -> list[FavoriteEntry]:
        if self._buffer is None:
            raise EditModeRequired("Enter edit mode before rearranging favorites")
        return self._buffer

    def move_up(self, index: int) -> None:
        buffer = self._require_buffer()
        if 0 < index < len(buffer):
            buffer[index - 1], buffer[index] = buffer[index], buffer[index - 1]

    def move_down(self, index: int) -> None:
        buffer = self._require_buffer()
        if 0 <= index < len(buffer) - 1:
            buffer[index], buffer[index + 1] = buffer[index + 1], buffer[index]

    def move(self, from_index: int, to_index: int) -> None:
        buffer = self._require_buffer()
        if from_index == to_index or not (
            in_range(buffer, from_index) and in_range(buffer, to_index)
        ):
            return
        self._buffer = moved(buffer, from_index, to_index)

    def remove_from_buffer(self, game_log_id: int) -> None:
        buffer = self._require_buffer()
        self._buffer = [entry for entry in buffer if entry.game_log_id != game_log_id]

    def apply_order(self, game_log_ids: Sequence[int]) -> None:
        """Replace the buffer with ``game_log_ids``; confirmed ids left out count as removed."""

        self._require_buffer()
        known = {entry.game_log_id: entry for entry in self._entries.confirmed}
        if len(set(game_log_ids)) != len(game_log_ids):
            raise ValidationError("Favorite order contains duplicate entries")
        unknown = [log_id for log_id in game_log_ids if log_id not in known]
        if unknown:
            raise ValidationError(f"Not among the current favorites: {unknown}")
        self._buffer = [known[log_id] for log_id in game_log_ids]

    @property
    def has_pending_changes(self) -> bool:
        if self._buffer is None:
            return False
        if len(self._buffer) != len(self._entries.confirmed):
            return True
        return any(
            entry.position != index
            for index, entry in enumerate(self._buffer, start=1)
        )

    async def commit(self) -> tuple[FavoriteEntry, ...]:
        """Persist the buffer order and removals; raises ``BatchWriteError`` on failure.

        The batch runs in its own task, so cancelling the caller never leaves
        it half applied; :meth:`wait_for_commit` blocks until it settles.
        """

        buffer = tuple(self._require_buffer())
        buffered_ids = {entry.game_log_id for entry in buffer}
        removed = tuple(
            entry for entry in self._entries.confirmed if entry.game_log_id not in buffered_ids
        )
        task = asyncio.ensure_future(self._commit(buffer, removed))
        self._commit_task = task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(log_detached_failure)
            raise

    async def wait_for_commit(self) -> None:
        task = self._commit_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def _commit(
        self,
        buffer: tuple[FavoriteEntry, ...],
        removed: tuple[FavoriteEntry, ...],
    ) -> tuple[FavoriteEntry, ...]:
        async with self._queue.hold(favorites_key(self.user_id)):
            current = {
                record["id"]: record
                for record in await self._store.query(
                    GAME_LOGS, {"user_id": self.user_id, "favorite": True}
                )
            }
            buffered_ids = {entry.game_log_id for entry in buffer}
            removed_ids = {entry.game_log_id for entry in removed}
            # Favorites added elsewhere during the edit keep their relative order after the buffer.
            ordered = [entry for entry in buffer if entry.game_log_id in current] + [
                FavoriteEntry.from_record(record)
                for record in sort_favorites(current.values())
                if record["id"] not in buffered_ids and record["id"] not in removed_ids
            ]
            unfavorited = [entry for entry in removed if entry.game_log_id in current]

            writes = {
                entry.game_log_id: partial(
                    self._store.update,
                    GAME_LOGS,
                    entry.game_log_id,
                    {"favorite_position": position},
                )
                for position, entry in enumerate(ordered, start=1)
            }
            for entry in unfavorited:
                writes[entry.game_log_id] = partial(
                    self._store.update,
                    GAME_LOGS,
                    entry.game_log_id,
                    {"favorite": False, "favorite_position": None},
                )

            staged = tuple(
                replace(entry, position=position)
                for position, entry in enumerate(ordered, start=1)
            )

            async def write() -> tuple[FavoriteEntry, ...]:
                results = await write_batch(
                    writes,
                    attempts=self._attempts,
                    backoff_seconds=self._backoff,
                    label=f"favorites commit for {self.user_id}",
                )
                return tuple(
                    FavoriteEntry.from_record(results[entry.game_log_id])
                    for entry in ordered
                )

            try:
                confirmed = await self._entries.apply(staged, write)
            except RemoteStoreError as exc:
                logger.warning(
                    "Favorites commit for %s failed, buffer kept for retry: %s",
                    self.user_id,
                    exc,
                )
                raise

            if self._buffer is not None:
                self._buffer = list(confirmed)
            logger.info(
                "Committed %d favorite position(s) and %d removal(s) for %s",
                len(ordered),
                len(unfavorited),
                self.user_id,
            )
            return confirmed


__all__ = ["FavoritesRanker"]
