"""Persistence port consumed by :class:`~archivist.repository.RepositoryResolver`."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from archivist.repository.models import RepositoryField, RepositoryInfo


class RepositoryStore(typ.Protocol):
    """Storage operations the resolver needs.

    Implementations run each call in its own transaction and must be safe to
    call concurrently from several workers.
    """

    async def find_by_endpoint_overlap(
        self, endpoints: cabc.Sequence[str]
    ) -> list[RepositoryInfo]:
        """Return repositories sharing any endpoint, ordered by identifier."""
        ...

    async def insert(self, repository: RepositoryInfo) -> None:
        """Persist a new repository."""
        ...

    async def update_fields(
        self,
        repository: RepositoryInfo,
        fields: cabc.Collection[RepositoryField],
    ) -> None:
        """Write only ``fields`` of ``repository`` to the stored repository.

        Endpoints are unioned into the stored set and never removed.
        """
        ...
