"""Error taxonomy shared by the resolver, job iterators, and workers."""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import uuid


class ArchivistErrorReason(enum.StrEnum):
    """Machine-readable reasons carried by every :class:`ArchivistError`."""

    ALREADY_STOPPED = "already_stopped"
    REFERENCED_OBJECT_TYPE_NOT_SUPPORTED = "referenced_object_type_not_supported"
    EMPTY_ENDPOINTS = "empty_endpoints"
    AMBIGUOUS_REPOSITORY = "ambiguous_repository"
    UNKNOWN_REPOSITORY_FIELD = "unknown_repository_field"
    REPOSITORY_NOT_FOUND = "repository_not_found"


class ArchivistError(Exception):
    """Base class for archivist errors."""

    reason: ArchivistErrorReason

    def __init__(self, message: str, reason: ArchivistErrorReason) -> None:
        """Store the reason alongside the message."""
        super().__init__(message)
        self.reason = reason


class AlreadyStoppedError(ArchivistError):
    """Raised when an operation targets a session that was already closed."""

    def __init__(self, resource: str) -> None:
        """Record the name of the closed resource."""
        self.resource = resource
        super().__init__(
            f"already stopped: {resource}", ArchivistErrorReason.ALREADY_STOPPED
        )


class ReferencedObjectTypeNotSupportedError(ArchivistError):
    """Raised when a reference points at an object kind archival cannot handle."""

    def __init__(self, object_type: str, reference: str) -> None:
        """Record the offending reference and the kind it points at."""
        self.object_type = object_type
        self.reference = reference
        super().__init__(
            f"referenced object type not supported: {reference} -> {object_type}",
            ArchivistErrorReason.REFERENCED_OBJECT_TYPE_NOT_SUPPORTED,
        )


class EmptyEndpointsError(ArchivistError):
    """Raised when a repository is resolved without any endpoint."""

    def __init__(self) -> None:
        """Attach the fixed message."""
        super().__init__(
            "at least one endpoint is required to resolve a repository",
            ArchivistErrorReason.EMPTY_ENDPOINTS,
        )


class AmbiguousRepositoryError(ArchivistError):
    """Raised under the strict policy when several repositories share endpoints."""

    def __init__(
        self,
        repository_ids: cabc.Sequence[uuid.UUID],
        endpoints: cabc.Sequence[str],
    ) -> None:
        """Record the conflicting repository ids and the queried endpoints."""
        self.repository_ids = tuple(repository_ids)
        self.endpoints = tuple(endpoints)
        ids = ", ".join(str(repo_id) for repo_id in self.repository_ids)
        super().__init__(
            f"{len(self.repository_ids)} repositories match endpoints "
            f"{list(self.endpoints)}: {ids}",
            ArchivistErrorReason.AMBIGUOUS_REPOSITORY,
        )


class UnknownRepositoryFieldError(ArchivistError):
    """Raised when a store is asked to update a field it does not manage."""

    def __init__(self, field: str) -> None:
        """Record the rejected field name."""
        self.field = field
        super().__init__(
            f"repository field cannot be updated: {field}",
            ArchivistErrorReason.UNKNOWN_REPOSITORY_FIELD,
        )


class RepositoryNotFoundError(ArchivistError):
    """Raised when a stored repository cannot be found by identifier."""

    def __init__(self, repository_id: uuid.UUID) -> None:
        """Record the missing identifier."""
        self.repository_id = repository_id
        super().__init__(
            f"repository not found: {repository_id}",
            ArchivistErrorReason.REPOSITORY_NOT_FOUND,
        )
