"""Record store contract consumed by the curation services.

The services never talk to SQLAlchemy directly.  They see the persistence layer
as a keyed record store: ``get``/``insert``/``update``/``delete`` by primary key
plus equality and range filtered ``query`` calls.  Records are plain
dictionaries so any backend (SQL, a hosted table API, an in-memory double)
can satisfy the protocol.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

Record = dict[str, Any]
Filters = Mapping[str, Any]

GAME_LOGS = "game_logs"
LISTS = "lists"
LIST_ITEMS = "list_items"


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive/exclusive bounds applied to a single column in ``query``."""

    gt: Any = None
    ge: Any = None
    lt: Any = None
    le: Any = None

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        if self.gt is not None and not value > self.gt:
            return False
        if self.ge is not None and not value >= self.ge:
            return False
        if self.lt is not None and not value < self.lt:
            return False
        if self.le is not None and not value <= self.le:
            return False
        return True


def matches_filters(record: Mapping[str, Any], filters: Filters | None) -> bool:
    """Return ``True`` when ``record`` satisfies every filter in ``filters``."""

    if not filters:
        return True
    for column, expected in filters.items():
        value = record.get(column)
        if isinstance(expected, Range):
            if not expected.matches(value):
                return False
        elif value != expected:
            return False
    return True


def split_order_by(order_by: str | None) -> tuple[str | None, bool]:
    """Split ``"-column"`` style ordering into ``(column, descending)``."""

    if not order_by:
        return None, False
    if order_by.startswith("-"):
        return order_by[1:], True
    return order_by, False


class RecordStore(Protocol):
    """Asynchronous keyed CRUD with simple filtered queries.

    Every method may raise :class:`gamediary.errors.RemoteStoreError`.
    ``update`` and ``delete`` raise it as well when ``key`` does not exist.
    """

    async def get(self, table: str, key: Any) -> Record | None: ...

    async def query(
        self,
        table: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
    ) -> list[Record]: ...

    async def insert(self, table: str, fields: Mapping[str, Any]) -> Record: ...

    async def update(self, table: str, key: Any, fields: Mapping[str, Any]) -> Record: ...

    async def delete(self, table: str, key: Any) -> None: ...


__all__ = [
    "Filters",
    "GAME_LOGS",
    "LISTS",
    "LIST_ITEMS",
    "Range",
    "Record",
    "RecordStore",
    "matches_filters",
    "split_order_by",
]
