"""In-process repository store for tests and single-process tooling."""

from __future__ import annotations

import dataclasses
import typing as typ

from archivist.errors import RepositoryNotFoundError
from archivist.repository.endpoints import unique_endpoints
from archivist.repository.models import RepositoryField, RepositoryInfo, coerce_fields

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import uuid


class InMemoryRepositoryStore:
    """Dictionary-backed implementation of the repository store port.

    Operations never await, so each one is atomic with respect to other
    coroutines on the same event loop.
    """

    def __init__(self, repositories: cabc.Iterable[RepositoryInfo] = ()) -> None:
        """Seed the store with ``repositories``."""
        self._repositories: dict[uuid.UUID, RepositoryInfo] = {
            repo.id: repo for repo in repositories
        }

    async def find_by_endpoint_overlap(
        self, endpoints: cabc.Sequence[str]
    ) -> list[RepositoryInfo]:
        """Return repositories listing any of ``endpoints``, ordered by id."""
        wanted = set(endpoints)
        matches = [
            repo
            for repo in self._repositories.values()
            if wanted.intersection(repo.endpoints)
        ]
        return sorted(matches, key=lambda repo: repo.id)

    async def insert(self, repository: RepositoryInfo) -> None:
        """Store a new repository; identifiers must be unique."""
        if repository.id in self._repositories:
            msg = f"repository already exists: {repository.id}"
            raise ValueError(msg)
        self._repositories[repository.id] = repository.with_endpoints(
            unique_endpoints(repository.endpoints)
        )

    async def update_fields(
        self,
        repository: RepositoryInfo,
        fields: cabc.Collection[RepositoryField],
    ) -> None:
        """Copy only ``fields`` from ``repository``; endpoints are only added."""
        requested = coerce_fields(fields)
        stored = self._repositories.get(repository.id)
        if stored is None:
            raise RepositoryNotFoundError(repository.id)
        if RepositoryField.ENDPOINTS in requested:
            stored = stored.with_endpoints(
                unique_endpoints((*stored.endpoints, *repository.endpoints))
            )
        if RepositoryField.IS_FORK in requested:
            stored = dataclasses.replace(stored, is_fork=repository.is_fork)
        self._repositories[repository.id] = stored

    def get(self, repository_id: uuid.UUID) -> RepositoryInfo | None:
        """Return the stored repository for ``repository_id``, if any."""
        return self._repositories.get(repository_id)

    def all(self) -> list[RepositoryInfo]:
        """Return every stored repository ordered by id."""
        return sorted(self._repositories.values(), key=lambda repo: repo.id)
