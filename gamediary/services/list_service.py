"""Named, ordered game lists and the multi-list membership query."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from functools import partial
from typing import Any

from gamediary.errors import (
    BatchWriteError,
    DuplicateItem,
    ItemNotFound,
    ListAccessDenied,
    ListNotFound,
    RemoteStoreError,
    ValidationError,
    ensure_authenticated,
)
from gamediary.services.batch_writes import run_to_completion, write_batch
from gamediary.services.mutation_queue import KeyedMutationQueue, list_key
from gamediary.services.optimistic import ViewRegistry
from gamediary.services.positions import in_range, moved, position_updates
from gamediary.services.types import (
    GameListView,
    GameRef,
    ListItemView,
    ListMembership,
)
from gamediary.store.base import LIST_ITEMS, LISTS, Record, RecordStore

logger = logging.getLogger(__name__)

Items = tuple[ListItemView, ...]


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("List name is required")
    return cleaned


def _clean_optional(text: str | None) -> str | None:
    if text is None:
        return None
    return text.strip() or None


def _renumbered(items: list[ListItemView]) -> Items:
    return tuple(
        item if item.position == index else replace(item, position=index)
        for index, item in enumerate(items)
    )


class ListCollectionManager:
    """Owner-only mutation of lists whose items stay at positions ``0..M-1``."""

    def __init__(
        self,
        store: RecordStore,
        queue: KeyedMutationQueue,
        *,
        batch_write_attempts: int,
        batch_write_backoff_seconds: float,
        view_cache_size: int,
    ) -> None:
        self._store = store
        self._queue = queue
        self._attempts = batch_write_attempts
        self._backoff = batch_write_backoff_seconds
        self._views: ViewRegistry[int, Items] = ViewRegistry(
            (), max_settled=view_cache_size
        )

    def items(self, list_id: int) -> Items:
        """Items of a loaded list, including any in-flight optimistic change."""

        return self._views.current(list_id)

    @asynccontextmanager
    async def _mutating(self, list_id: int) -> AsyncIterator[None]:
        async with self._queue.hold(list_key(list_id)):
            try:
                yield
            finally:
                self._views.release(list_id)

    # ------------------------------------------------------------------ reads

    async def get_list(self, list_id: int, *, viewer_id: str | None = None) -> GameListView:
        """Private lists resolve only for their owner."""

        record = await self._store.get(LISTS, list_id)
        if record is None or (
            not record.get("is_public", True) and record["user_id"] != viewer_id
        ):
            raise ListNotFound(f"List {list_id} not found")
        items = tuple(
            ListItemView.from_record(item) for item in await self._item_records(list_id)
        )
        self._views.open(list_id).reset(items)
        current = self.items(list_id)
        self._views.release(list_id)
        return GameListView.from_record(record, current)

    async def lists_for_user(
        self, user_id: str, *, viewer_id: str | None = None
    ) -> list[GameListView]:
        """The owner's lists, newest first; other viewers see only public ones."""

        filters: dict[str, Any] = {"user_id": user_id}
        if viewer_id != user_id:
            filters["is_public"] = True
        lists = await self._store.query(LISTS, filters, order_by="-created_at")
        grouped: dict[int, list[ListItemView]] = defaultdict(list)
        for item in await self._store.query(
            LIST_ITEMS, {"user_id": user_id}, order_by="position"
        ):
            grouped[item["list_id"]].append(ListItemView.from_record(item))
        return [
            GameListView.from_record(record, tuple(grouped.get(record["id"], ())))
            for record in lists
        ]

    async def lists_containing(self, user_id: str, game_id: int) -> list[ListMembership]:
        """Membership of ``game_id`` across every list the user owns.

        Two queries regardless of list count; a store failure degrades to an
        empty result.
        """

        user_id = ensure_authenticated(user_id)
        try:
            lists = await self._store.query(
                LISTS, {"user_id": user_id}, order_by="-created_at"
            )
            memberships = await self._store.query(LIST_ITEMS, {"user_id": user_id})
        except RemoteStoreError as exc:
            logger.warning(
                "Could not resolve list membership of game %s for %s: %s",
                game_id,
                user_id,
                exc,
            )
            return []

        item_by_list = {
            item["list_id"]: item["id"]
            for item in memberships
            if item["game_id"] == game_id
        }
        return [
            ListMembership(
                list_id=record["id"],
                list_name=record["name"],
                contains_game=record["id"] in item_by_list,
                item_id=item_by_list.get(record["id"]),
            )
            for record in lists
        ]

    # ------------------------------------------------------------- list CRUD

    async def create_list(
        self,
        user_id: str,
        name: str,
        description: str | None = None,
        is_public: bool = True,
        is_ranked: bool = False,
    ) -> GameListView:
        user_id = ensure_authenticated(user_id)
        record = await self._store.insert(
            LISTS,
            {
                "user_id": user_id,
                "name": _clean_name(name),
                "description": _clean_optional(description),
                "is_public": is_public,
                "is_ranked": is_ranked,
            },
        )
        self._views.open(record["id"]).reset(())
        self._views.release(record["id"])
        logger.info("Created list %s for %s", record["id"], user_id)
        return GameListView.from_record(record)

    async def update_list(
        self,
        user_id: str,
        list_id: int,
        *,
        name: str | None = None,
        description: str | None = None,
        is_public: bool | None = None,
    ) -> GameListView:
        user_id = ensure_authenticated(user_id)
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = _clean_name(name)
        if description is not None:
            changes["description"] = _clean_optional(description)
        if is_public is not None:
            changes["is_public"] = is_public
        return await run_to_completion(self._update_list(user_id, list_id, changes))

    async def set_ranked(self, user_id: str, list_id: int, is_ranked: bool) -> GameListView:
        """Display flag only; item positions are untouched."""

        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._update_list(user_id, list_id, {"is_ranked": bool(is_ranked)})
        )

    async def _update_list(
        self, user_id: str, list_id: int, changes: dict[str, Any]
    ) -> GameListView:
        async with self._mutating(list_id):
            record = await self._owned_list(user_id, list_id)
            if changes:
                record = await self._store.update(LISTS, list_id, changes)
            items = await self._stable_items(list_id)
            return GameListView.from_record(record, items)

    async def delete_list(self, user_id: str, list_id: int) -> None:
        user_id = ensure_authenticated(user_id)
        await run_to_completion(self._delete_list(user_id, list_id))

    async def _delete_list(self, user_id: str, list_id: int) -> None:
        async with self._mutating(list_id):
            await self._owned_list(user_id, list_id)
            items = await self._store.query(LIST_ITEMS, {"list_id": list_id})
            await write_batch(
                {
                    item["id"]: partial(self._store.delete, LIST_ITEMS, item["id"])
                    for item in items
                },
                attempts=self._attempts,
                backoff_seconds=self._backoff,
                label=f"list {list_id} deletion",
            )
            await self._store.delete(LISTS, list_id)
            self._views.discard(list_id)
            logger.info("Deleted list %s with %d item(s)", list_id, len(items))

    # ------------------------------------------------------------ membership

    async def add_item(
        self,
        user_id: str,
        list_id: int,
        game: GameRef,
        notes: str | None = None,
    ) -> ListItemView:
        user_id = ensure_authenticated(user_id)
        return await run_to_completion(self._add_item(user_id, list_id, game, notes))

    async def _add_item(
        self, user_id: str, list_id: int, game: GameRef, notes: str | None
    ) -> ListItemView:
        async with self._mutating(list_id):
            await self._owned_list(user_id, list_id)
            items = await self._stable_items(list_id)
            if any(item.game_id == game.game_id for item in items):
                raise DuplicateItem(list_id, game.game_id)

            fields = {
                "list_id": list_id,
                "user_id": user_id,
                **game.record_fields(),
                "position": len(items),
                "notes": _clean_optional(notes),
            }
            pending = ListItemView(
                id=None,
                list_id=list_id,
                game_id=game.game_id,
                game_slug=game.slug,
                game_name=game.name,
                game_cover_id=game.cover_id,
                position=len(items),
                notes=fields["notes"],
            )
            added: list[ListItemView] = []

            async def write() -> Items:
                record = await self._store.insert(LIST_ITEMS, fields)
                added.append(ListItemView.from_record(record))
                return items + tuple(added)

            try:
                await self._views.open(list_id).apply(items + (pending,), write)
            except RemoteStoreError as exc:
                logger.warning(
                    "Rolled back add of game %s to list %s: %s", game.game_id, list_id, exc
                )
                if exc.conflict:
                    raise DuplicateItem(list_id, game.game_id) from exc
                raise
            return added[0]

    async def remove_item(self, user_id: str, list_id: int, item_id: int) -> Items:
        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._remove_where(user_id, list_id, lambda item: item.id == item_id, item_id)
        )

    async def remove_game(self, user_id: str, list_id: int, game_id: int) -> Items:
        """Remove the membership of ``game_id``, as the list toggle does."""

        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._remove_where(
                user_id, list_id, lambda item: item.game_id == game_id, f"game {game_id}"
            )
        )

    async def _remove_where(self, user_id: str, list_id: int, match, label: Any) -> Items:
        async with self._mutating(list_id):
            await self._owned_list(user_id, list_id)
            items = await self._stable_items(list_id)
            index = next((i for i, item in enumerate(items) if match(item)), None)
            if index is None:
                raise ItemNotFound(f"Item {label} is not in list {list_id}")

            target = items[index]
            remaining = _renumbered([item for item in items if item is not target])
            shifted = remaining[index:]

            async def write() -> Items:
                await self._store.delete(LIST_ITEMS, target.id)
                await self._write_positions(list_id, shifted, label="compaction")
                return remaining

            try:
                return await self._views.open(list_id).apply(remaining, write)
            except BatchWriteError as exc:
                # the delete landed; only some shifted positions are stale
                logger.warning(
                    "Removed item %s from list %s but compaction failed: %s",
                    target.id,
                    list_id,
                    exc,
                )
                await self._refresh_view(list_id)
                raise
            except RemoteStoreError as exc:
                logger.warning(
                    "Removal of item %s from list %s failed: %s", target.id, list_id, exc
                )
                raise

    async def reorder(
        self, user_id: str, list_id: int, from_index: int, to_index: int
    ) -> Items:
        """Move one item, then rewrite every item's position in the new order."""

        user_id = ensure_authenticated(user_id)
        return await run_to_completion(
            self._reorder(user_id, list_id, from_index, to_index)
        )

    async def _reorder(
        self, user_id: str, list_id: int, from_index: int, to_index: int
    ) -> Items:
        async with self._mutating(list_id):
            await self._owned_list(user_id, list_id)
            items = await self._stable_items(list_id)
            if not (in_range(items, from_index) and in_range(items, to_index)):
                raise ValidationError(
                    f"Reorder indexes {from_index}->{to_index} outside 0..{len(items) - 1}"
                )
            if from_index == to_index:
                return items

            reordered = _renumbered(moved(items, from_index, to_index))

            async def write() -> Items:
                await self._write_positions(list_id, reordered, label="reorder")
                return reordered

            try:
                return await self._views.open(list_id).apply(reordered, write)
            except RemoteStoreError as exc:
                logger.warning("Reorder of list %s failed: %s", list_id, exc)
                raise

    # --------------------------------------------------------------- helpers

    async def _owned_list(self, user_id: str, list_id: int) -> Record:
        record = await self._store.get(LISTS, list_id)
        if record is None:
            raise ListNotFound(f"List {list_id} not found")
        if record["user_id"] != user_id:
            raise ListAccessDenied(f"List {list_id} belongs to another user")
        return record

    async def _item_records(self, list_id: int) -> list[Record]:
        return await self._store.query(LIST_ITEMS, {"list_id": list_id}, order_by="position")

    async def _refresh_view(self, list_id: int) -> None:
        """Reset the view to what storage holds after a partially applied write."""

        try:
            records = await self._item_records(list_id)
        except RemoteStoreError as exc:
            logger.warning("Could not refresh list %s after a failed write: %s", list_id, exc)
            return
        self._views.open(list_id).reset(
            tuple(ListItemView.from_record(record) for record in records)
        )

    async def _stable_items(self, list_id: int) -> Items:
        """Fresh items in order, renumbered to ``0..M-1`` if storage drifted."""

        records = await self._item_records(list_id)
        updates = position_updates(records, "position", start=0)
        if updates:
            logger.warning(
                "List %s had %d misplaced item(s); renumbering", list_id, len(updates)
            )
            items = _renumbered([ListItemView.from_record(record) for record in records])
            await self._write_positions(
                list_id,
                [item for item in items if item.id in updates],
                label="repair",
            )
        else:
            items = tuple(ListItemView.from_record(record) for record in records)
        self._views.open(list_id).reset(items)
        return items

    async def _write_positions(self, list_id: int, items, *, label: str) -> None:
        if not items:
            return
        await write_batch(
            {
                item.id: partial(
                    self._store.update, LIST_ITEMS, item.id, {"position": item.position}
                )
                for item in items
            },
            attempts=self._attempts,
            backoff_seconds=self._backoff,
            label=f"list {list_id} {label}",
        )


__all__ = ["ListCollectionManager"]
