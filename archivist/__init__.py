"""Repository identity resolution and job consumption for archive workers."""

from __future__ import annotations

from archivist.errors import (
    AlreadyStoppedError,
    AmbiguousRepositoryError,
    ArchivistError,
    ArchivistErrorReason,
    EmptyEndpointsError,
    ReferencedObjectTypeNotSupportedError,
    RepositoryNotFoundError,
    UnknownRepositoryFieldError,
)

__all__ = [
    "AlreadyStoppedError",
    "AmbiguousRepositoryError",
    "ArchivistError",
    "ArchivistErrorReason",
    "EmptyEndpointsError",
    "ReferencedObjectTypeNotSupportedError",
    "RepositoryNotFoundError",
    "UnknownRepositoryFieldError",
]
