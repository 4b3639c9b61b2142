"""Record store contract and its SQLAlchemy implementation."""

from .base import (
    GAME_LOGS,
    LIST_ITEMS,
    LISTS,
    Filters,
    Range,
    Record,
    RecordStore,
    matches_filters,
    split_order_by,
)
from .sqlalchemy_store import SqlAlchemyRecordStore

__all__ = [
    "Filters",
    "GAME_LOGS",
    "LISTS",
    "LIST_ITEMS",
    "Range",
    "Record",
    "RecordStore",
    "SqlAlchemyRecordStore",
    "matches_filters",
    "split_order_by",
]
