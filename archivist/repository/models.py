"""Data transfer objects for repository identity resolution."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from archivist.errors import UnknownRepositoryFieldError

if typ.TYPE_CHECKING:
    import uuid


class RepositoryField(enum.StrEnum):
    """Repository fields a store can update in place."""

    ENDPOINTS = "endpoints"
    IS_FORK = "is_fork"


@dataclasses.dataclass(slots=True, frozen=True)
class RepositoryInfo:
    """Persisted repository as seen by the resolver.

    ``endpoints`` has set semantics; the tuple order carries no meaning.
    ``is_fork`` is ``None`` when the producer did not know.
    """

    id: uuid.UUID
    endpoints: tuple[str, ...]
    is_fork: bool | None = None

    def with_endpoints(self, endpoints: typ.Iterable[str]) -> RepositoryInfo:
        """Return a copy carrying ``endpoints``."""
        return dataclasses.replace(self, endpoints=tuple(endpoints))


def coerce_fields(
    fields: typ.Iterable[RepositoryField | str],
) -> frozenset[RepositoryField]:
    """Validate field names passed to ``update_fields``.

    Raises
    ------
    UnknownRepositoryFieldError
        If a name does not match a :class:`RepositoryField` member.

    """
    coerced: set[RepositoryField] = set()
    for field in fields:
        try:
            coerced.add(RepositoryField(field))
        except ValueError as exc:
            raise UnknownRepositoryFieldError(str(field)) from exc
    return frozenset(coerced)
