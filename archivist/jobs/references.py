"""Git references attached to archiving jobs.

Archival walks references to reach commits. Annotated tags are followed to
their commit; references pointing straight at a tree or a blob have no
history to archive and are rejected permanently.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from archivist.errors import ReferencedObjectTypeNotSupportedError
from archivist.logging import get_logger, log_warning

logger = get_logger(__name__)


class ObjectType(enum.StrEnum):
    """Kinds of git object a reference can point at."""

    COMMIT = "commit"
    TAG = "tag"
    TREE = "tree"
    BLOB = "blob"


SUPPORTED_OBJECT_TYPES: typ.Final = frozenset({ObjectType.COMMIT, ObjectType.TAG})


@dataclasses.dataclass(frozen=True, slots=True)
class Reference:
    """Named pointer to a git object."""

    name: str
    hash: str
    object_type: ObjectType


class Referencer(typ.Protocol):
    """Anything able to list the references of a repository."""

    async def references(self) -> list[Reference]:
        """Return every reference known for the repository."""
        ...


def check_reference(reference: Reference) -> Reference:
    """Return ``reference`` if archival can follow it.

    Raises
    ------
    ReferencedObjectTypeNotSupportedError
        If the reference targets a tree or a blob.

    """
    if reference.object_type not in SUPPORTED_OBJECT_TYPES:
        raise ReferencedObjectTypeNotSupportedError(
            reference.object_type, reference.name
        )
    return reference


async def collect_references(referencer: Referencer) -> list[Reference]:
    """Return the supported references of ``referencer``.

    Unsupported references are logged and skipped; they never fail the whole
    collection.
    """
    supported: list[Reference] = []
    for reference in await referencer.references():
        try:
            supported.append(check_reference(reference))
        except ReferencedObjectTypeNotSupportedError as exc:
            log_warning(
                logger,
                "[reference.rejected] name=%s hash=%s object_type=%s",
                exc.reference,
                reference.hash,
                exc.object_type,
            )
    return supported
