"""Shared fixtures for the curation engine tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gamediary.db.models import Base
from gamediary.services.engine import CurationEngine
from gamediary.services.types import GameRef
from gamediary.settings import AppSettings
from tests.gamediary.support.in_memory_store import InMemoryRecordStore

USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def app_settings() -> AppSettings:
    """Settings with retries enabled but no backoff so tests stay fast."""

    return AppSettings(
        use_sqlite=True,
        favorite_slots=5,
        batch_write_attempts=3,
        batch_write_backoff_seconds=0,
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def engine(store: InMemoryRecordStore, app_settings: AppSettings) -> CurationEngine:
    return CurationEngine(store, app_settings)


@pytest.fixture
def game() -> Callable[[int], GameRef]:
    """Factory producing deterministic game references."""

    def _make(game_id: int) -> GameRef:
        return GameRef(
            game_id=game_id,
            slug=f"game-{game_id}",
            name=f"Game {game_id}",
            cover_id=f"co{game_id}",
        )

    return _make


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory bound to a fresh in-memory SQLite database."""
    pytest.importorskip("aiosqlite")
    db_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", future=True, poolclass=StaticPool
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(db_engine, expire_on_commit=False)
    await db_engine.dispose()
