"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from archivist.repository import (
    InMemoryRepositoryStore,
    RepositoryResolver,
    SqlRepositoryStore,
    init_repository_storage,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def sqlite_url(tmp_path: Path, name: str = "archivist_test.db") -> str:
    """Return an aiosqlite URL for a database file under ``tmp_path``."""
    return f"sqlite+aiosqlite:///{tmp_path / name}"


async def _setup_sqlite(tmp_path: Path) -> AsyncEngine:
    """Create a SQLite engine and initialise the repository tables."""
    engine = create_async_engine(sqlite_url(tmp_path))
    try:
        await init_repository_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a fresh async session factory backed by sqlite."""
    engine = await _setup_sqlite(tmp_path)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def sql_store(
    session_factory: async_sessionmaker[AsyncSession],
) -> SqlRepositoryStore:
    """Return a SQL repository store over the test database."""
    return SqlRepositoryStore(session_factory)


@pytest.fixture
def memory_store() -> InMemoryRepositoryStore:
    """Return an empty in-memory repository store."""
    return InMemoryRepositoryStore()


@pytest.fixture
def resolver(memory_store: InMemoryRepositoryStore) -> RepositoryResolver:
    """Return a resolver with the default policy over ``memory_store``."""
    return RepositoryResolver(memory_store)
