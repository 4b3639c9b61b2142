"""SQLAlchemy-backed implementation of :class:`~gamediary.store.base.RecordStore`."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gamediary.db.models import Base, GameList, GameLog, ListItem
from gamediary.errors import RemoteStoreError
from gamediary.store.base import (
    GAME_LOGS,
    LIST_ITEMS,
    LISTS,
    Filters,
    Range,
    Record,
    split_order_by,
)

logger = logging.getLogger(__name__)

_MODELS: dict[str, type[Base]] = {
    GAME_LOGS: GameLog,
    LISTS: GameList,
    LIST_ITEMS: ListItem,
}


def _to_record(instance: Base) -> Record:
    mapper = inspect(type(instance))
    return {attr.key: getattr(instance, attr.key) for attr in mapper.column_attrs}


class SqlAlchemyRecordStore:
    """Each call runs in its own short transaction, like an independent remote write."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    def _model(self, table: str) -> type[Base]:
        try:
            return _MODELS[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    @asynccontextmanager
    async def _session(self, action: str, table: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except IntegrityError as exc:
            logger.warning("Integrity conflict during %s on %s: %s", action, table, exc)
            raise RemoteStoreError(
                f"{action} on {table} violates a constraint", conflict=True
            ) from exc
        except SQLAlchemyError as exc:
            logger.error("Database failure during %s on %s: %s", action, table, exc)
            raise RemoteStoreError(f"{action} on {table} failed") from exc

    async def get(self, table: str, key: Any) -> Record | None:
        model = self._model(table)
        async with self._session("get", table) as session:
            instance = await session.get(model, key)
            return _to_record(instance) if instance is not None else None

    async def query(
        self,
        table: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
    ) -> list[Record]:
        model = self._model(table)
        statement = select(model)
        for column_name, expected in (filters or {}).items():
            column = getattr(model, column_name, None)
            if column is None:
                raise ValueError(f"Unknown column {column_name} for {table}")
            if isinstance(expected, Range):
                if expected.gt is not None:
                    statement = statement.where(column > expected.gt)
                if expected.ge is not None:
                    statement = statement.where(column >= expected.ge)
                if expected.lt is not None:
                    statement = statement.where(column < expected.lt)
                if expected.le is not None:
                    statement = statement.where(column <= expected.le)
            elif expected is None:
                statement = statement.where(column.is_(None))
            else:
                statement = statement.where(column == expected)

        order_column, descending = split_order_by(order_by)
        if order_column is not None:
            column = getattr(model, order_column)
            statement = statement.order_by(column.desc() if descending else column.asc())
        statement = statement.order_by(model.id.asc())

        async with self._session("query", table) as session:
            result = await session.execute(statement)
            return [_to_record(instance) for instance in result.scalars().all()]

    async def insert(self, table: str, fields: Mapping[str, Any]) -> Record:
        model = self._model(table)
        async with self._session("insert", table) as session:
            instance = model(**fields)
            session.add(instance)
            await session.commit()
            return _to_record(instance)

    async def update(self, table: str, key: Any, fields: Mapping[str, Any]) -> Record:
        model = self._model(table)
        async with self._session("update", table) as session:
            instance = await session.get(model, key)
            if instance is None:
                raise RemoteStoreError(f"{table} row {key} does not exist")
            for column_name, value in fields.items():
                setattr(instance, column_name, value)
            await session.commit()
            return _to_record(instance)

    async def delete(self, table: str, key: Any) -> None:
        model = self._model(table)
        async with self._session("delete", table) as session:
            instance = await session.get(model, key)
            if instance is None:
                raise RemoteStoreError(f"{table} row {key} does not exist")
            await session.delete(instance)
            await session.commit()


__all__ = ["SqlAlchemyRecordStore"]
