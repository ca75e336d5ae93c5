"""SQLAlchemy implementation of the repository persistence port."""

from __future__ import annotations

import typing as typ
import uuid

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from archivist.clock import utcnow
from archivist.errors import RepositoryNotFoundError
from archivist.repository.endpoints import unique_endpoints
from archivist.repository.models import RepositoryField, RepositoryInfo, coerce_fields
from archivist.repository.storage import RepositoryEndpointRow, RepositoryRow

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

type SessionFactory = async_sessionmaker[AsyncSession]


class SqlRepositoryStore:
    """Repository store backed by an async SQLAlchemy session factory.

    Every call opens its own session and transaction, so concurrent workers
    only ever contend inside the database.

    Parameters
    ----------
    session_factory:
        Async session factory bound to a database holding the tables from
        :func:`~archivist.repository.storage.init_repository_storage`.

    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Bind the store to a session factory."""
        self._session_factory = session_factory

    async def find_by_endpoint_overlap(
        self, endpoints: cabc.Sequence[str]
    ) -> list[RepositoryInfo]:
        """Return repositories listing any of ``endpoints``, ordered by id."""
        owners = select(RepositoryEndpointRow.repository_id).where(
            RepositoryEndpointRow.endpoint.in_(unique_endpoints(endpoints))
        )
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(RepositoryRow)
                .where(RepositoryRow.id.in_(owners))
                .options(selectinload(RepositoryRow.endpoint_rows))
                .order_by(RepositoryRow.id)
            )
            return [_to_repository_info(row) for row in rows]

    async def insert(self, repository: RepositoryInfo) -> None:
        """Insert ``repository`` together with its endpoint rows."""
        row = RepositoryRow(
            id=str(repository.id),
            is_fork=repository.is_fork,
            endpoint_rows=[
                RepositoryEndpointRow(endpoint=endpoint)
                for endpoint in unique_endpoints(repository.endpoints)
            ],
        )
        async with self._session_factory() as session, session.begin():
            session.add(row)

    async def update_fields(
        self,
        repository: RepositoryInfo,
        fields: cabc.Collection[RepositoryField],
    ) -> None:
        """Write only ``fields`` of ``repository`` to its stored row.

        ``repository.endpoints`` is unioned into the locked row; stored
        endpoints are never removed.

        Raises
        ------
        RepositoryNotFoundError
            If no row exists for ``repository.id``.
        UnknownRepositoryFieldError
            If ``fields`` names something other than a :class:`RepositoryField`.

        """
        requested = coerce_fields(fields)
        if not requested:
            return

        async with self._session_factory() as session, session.begin():
            row = await session.scalar(
                select(RepositoryRow)
                .where(RepositoryRow.id == str(repository.id))
                .options(selectinload(RepositoryRow.endpoint_rows))
                .with_for_update()
            )
            if row is None:
                raise RepositoryNotFoundError(repository.id)

            if RepositoryField.ENDPOINTS in requested:
                _add_endpoint_rows(row, repository.endpoints)
            if RepositoryField.IS_FORK in requested:
                row.is_fork = repository.is_fork
            row.updated_at = utcnow()


def _add_endpoint_rows(row: RepositoryRow, endpoints: cabc.Iterable[str]) -> None:
    """Append the endpoints ``row`` does not list yet; existing rows stay."""
    desired = unique_endpoints(endpoints)
    present = {endpoint_row.endpoint for endpoint_row in row.endpoint_rows}
    row.endpoint_rows.extend(
        RepositoryEndpointRow(endpoint=endpoint)
        for endpoint in desired
        if endpoint not in present
    )


def _to_repository_info(row: RepositoryRow) -> RepositoryInfo:
    return RepositoryInfo(
        id=uuid.UUID(row.id),
        endpoints=row.endpoints,
        is_fork=row.is_fork,
    )
