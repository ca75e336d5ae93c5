"""Unit tests for the SQLAlchemy repository store."""

from __future__ import annotations

import dataclasses
import typing as typ
import uuid

import pytest
from sqlalchemy import func, select

from archivist.errors import RepositoryNotFoundError, UnknownRepositoryFieldError
from archivist.repository import (
    RepositoryEndpointRow,
    RepositoryField,
    RepositoryInfo,
    RepositoryResolver,
    RepositoryRow,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from archivist.repository import SqlRepositoryStore

FIRST_ID = uuid.UUID("10000000-0000-4000-8000-000000000000")
SECOND_ID = uuid.UUID("20000000-0000-4000-8000-000000000000")


async def _seed(store: SqlRepositoryStore) -> None:
    await store.insert(
        RepositoryInfo(id=SECOND_ID, endpoints=("b", "c"), is_fork=False)
    )
    await store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a", "b")))


@pytest.mark.asyncio
async def test_insert_round_trips_through_find(sql_store: SqlRepositoryStore) -> None:
    """An inserted repository is found by any of its endpoints."""
    repository = RepositoryInfo(id=FIRST_ID, endpoints=("a", "b"), is_fork=True)
    await sql_store.insert(repository)

    matches = await sql_store.find_by_endpoint_overlap(["b"])

    assert matches == [repository]


@pytest.mark.asyncio
async def test_find_returns_every_overlap_ordered_by_id(
    sql_store: SqlRepositoryStore,
) -> None:
    """Repositories sharing any endpoint come back once each, lowest id first."""
    await _seed(sql_store)

    matches = await sql_store.find_by_endpoint_overlap(["b", "c", "zz"])

    assert [repo.id for repo in matches] == [FIRST_ID, SECOND_ID]
    assert matches[1].is_fork is False


@pytest.mark.asyncio
async def test_find_without_overlap_is_empty(sql_store: SqlRepositoryStore) -> None:
    """Unknown endpoints match nothing."""
    await _seed(sql_store)

    assert await sql_store.find_by_endpoint_overlap(["nope"]) == []


@pytest.mark.asyncio
async def test_update_endpoints_leaves_fork_flag(
    sql_store: SqlRepositoryStore,
) -> None:
    """A partial endpoints update does not write the fork flag."""
    await sql_store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a",), is_fork=True))

    await sql_store.update_fields(
        RepositoryInfo(id=FIRST_ID, endpoints=("a", "b"), is_fork=False),
        [RepositoryField.ENDPOINTS],
    )

    [stored] = await sql_store.find_by_endpoint_overlap(["a"])
    assert set(stored.endpoints) == {"a", "b"}
    assert stored.is_fork is True


@pytest.mark.asyncio
async def test_update_fork_flag_by_name(sql_store: SqlRepositoryStore) -> None:
    """Field names are accepted as plain strings."""
    await sql_store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a",)))

    await sql_store.update_fields(
        RepositoryInfo(id=FIRST_ID, endpoints=(), is_fork=True), ["is_fork"]
    )

    [stored] = await sql_store.find_by_endpoint_overlap(["a"])
    assert stored.endpoints == ("a",)
    assert stored.is_fork is True


@pytest.mark.asyncio
async def test_update_endpoints_touches_only_the_difference(
    sql_store: SqlRepositoryStore,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Existing endpoint rows keep their primary keys across an update."""
    await sql_store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a", "b")))
    async with session_factory() as session:
        before = dict(
            (
                await session.execute(
                    select(RepositoryEndpointRow.endpoint, RepositoryEndpointRow.id)
                )
            ).all()
        )

    await sql_store.update_fields(
        RepositoryInfo(id=FIRST_ID, endpoints=("a", "b", "c")),
        [RepositoryField.ENDPOINTS],
    )

    async with session_factory() as session:
        after = dict(
            (
                await session.execute(
                    select(RepositoryEndpointRow.endpoint, RepositoryEndpointRow.id)
                )
            ).all()
        )
    assert after["a"] == before["a"]
    assert after["b"] == before["b"]
    assert set(after) == {"a", "b", "c"}


@pytest.mark.asyncio
async def test_update_stamps_updated_at(
    sql_store: SqlRepositoryStore,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Updates refresh the row's updated_at timestamp."""
    await sql_store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a",)))
    async with session_factory() as session:
        created = await session.get(RepositoryRow, str(FIRST_ID))
        assert created is not None
        first_updated = created.updated_at

    await sql_store.update_fields(
        RepositoryInfo(id=FIRST_ID, endpoints=("a", "b")),
        [RepositoryField.ENDPOINTS],
    )

    async with session_factory() as session:
        updated = await session.get(RepositoryRow, str(FIRST_ID))
        assert updated is not None
        assert updated.updated_at >= first_updated
        assert updated.updated_at.tzinfo is not None


@pytest.mark.asyncio
async def test_update_missing_repository_raises(
    sql_store: SqlRepositoryStore,
) -> None:
    """Updating an unknown id is reported instead of silently ignored."""
    with pytest.raises(RepositoryNotFoundError) as exc_info:
        await sql_store.update_fields(
            RepositoryInfo(id=FIRST_ID, endpoints=("a",)),
            [RepositoryField.ENDPOINTS],
        )

    assert exc_info.value.repository_id == FIRST_ID


@pytest.mark.asyncio
async def test_update_unknown_field_raises(sql_store: SqlRepositoryStore) -> None:
    """Fields outside the repository schema are refused."""
    await sql_store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a",)))

    with pytest.raises(UnknownRepositoryFieldError) as exc_info:
        await sql_store.update_fields(
            RepositoryInfo(id=FIRST_ID, endpoints=("a",)), ["owner"]
        )

    assert exc_info.value.field == "owner"


@pytest.mark.asyncio
async def test_resolver_over_sql_store(
    sql_store: SqlRepositoryStore,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """The resolver creates once and merges aliases into the same row."""
    resolver = RepositoryResolver(sql_store)

    first = await resolver.resolve(["a", "b"], is_fork=False)
    second = await resolver.resolve(["b", "c"], is_fork=True)
    third = await resolver.resolve(["c", "a"])

    assert first == second == third
    [stored] = await sql_store.find_by_endpoint_overlap(["c"])
    assert set(stored.endpoints) == {"a", "b", "c"}
    assert stored.is_fork is False
    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(RepositoryRow))
    assert count == 1


@pytest.mark.asyncio
async def test_insert_duplicate_endpoints_collapse(
    sql_store: SqlRepositoryStore,
) -> None:
    """Repeated endpoints in an insert are stored once."""
    repository = RepositoryInfo(id=FIRST_ID, endpoints=("a", "a"))

    await sql_store.insert(repository)

    [stored] = await sql_store.find_by_endpoint_overlap(["a"])
    assert stored == dataclasses.replace(repository, endpoints=("a",))


@pytest.mark.asyncio
async def test_update_from_stale_snapshots_keeps_every_alias(
    sql_store: SqlRepositoryStore,
) -> None:
    """Two merges computed from the same snapshot both land on the row."""
    await sql_store.insert(RepositoryInfo(id=FIRST_ID, endpoints=("a", "b")))
    [first_view] = await sql_store.find_by_endpoint_overlap(["a"])
    [second_view] = await sql_store.find_by_endpoint_overlap(["b"])

    await sql_store.update_fields(
        first_view.with_endpoints(("a", "b", "c")), [RepositoryField.ENDPOINTS]
    )
    await sql_store.update_fields(
        second_view.with_endpoints(("a", "b", "d")), [RepositoryField.ENDPOINTS]
    )

    [stored] = await sql_store.find_by_endpoint_overlap(["a"])
    assert set(stored.endpoints) == {"a", "b", "c", "d"}

