"""Ordering helpers shared by the favorites ranking and list collections."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from gamediary.store.base import Record

T = TypeVar("T")


def _timestamp(value: datetime | None) -> float:
    if value is None:
        return 0.0
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp()


def favorite_sort_key(record: Mapping[str, Any]) -> tuple[bool, int, float]:
    """Positioned favorites first by slot, the rest most recently updated first."""

    position = record.get("favorite_position")
    return (
        position is None,
        position if position is not None else 0,
        -_timestamp(record.get("updated_at")),
    )


def sort_favorites(records: Iterable[Record]) -> list[Record]:
    return sorted(records, key=favorite_sort_key)


def position_updates(
    records: Sequence[Mapping[str, Any]], column: str, *, start: int
) -> dict[Any, int]:
    """Map record id to the absolute position it needs, skipping ones already there."""

    updates: dict[Any, int] = {}
    for index, record in enumerate(records, start=start):
        if record.get(column) != index:
            updates[record["id"]] = index
    return updates


def moved(sequence: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Copy of ``sequence`` with the element at ``from_index`` reinserted at ``to_index``."""

    items = list(sequence)
    item = items.pop(from_index)
    items.insert(to_index, item)
    return items


def in_range(sequence: Sequence[Any], index: int) -> bool:
    return 0 <= index < len(sequence)


__all__ = [
    "favorite_sort_key",
    "in_range",
    "moved",
    "position_updates",
    "sort_favorites",
]
