"""Structured log events emitted while resolving repository identities."""

from __future__ import annotations

import enum
import typing as typ

from archivist.logging import get_logger, log_debug, log_info, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import uuid

logger = get_logger(__name__)


class ResolutionEventType(enum.StrEnum):
    """Event identifiers for repository resolution."""

    REPOSITORY_CREATED = "repository.created"
    ENDPOINTS_MERGED = "repository.endpoints_merged"
    REPOSITORY_MATCHED = "repository.matched"
    AMBIGUOUS_MATCH = "repository.ambiguous_match"


def _ids(repository_ids: cabc.Iterable[uuid.UUID]) -> str:
    return ",".join(str(repo_id) for repo_id in repository_ids)


class ResolutionEventLogger:
    """Emit resolution events via femtologging."""

    def log_created(
        self,
        repository_id: uuid.UUID,
        endpoints: cabc.Sequence[str],
        *,
        is_fork: bool | None,
    ) -> None:
        """Log creation of a new repository record."""
        log_info(
            logger,
            "[%s] repository_id=%s endpoints=%d is_fork=%s",
            ResolutionEventType.REPOSITORY_CREATED,
            repository_id,
            len(endpoints),
            is_fork,
        )

    def log_merged(self, repository_id: uuid.UUID, added: int) -> None:
        """Log that previously unseen aliases were appended."""
        log_info(
            logger,
            "[%s] repository_id=%s endpoints_added=%d",
            ResolutionEventType.ENDPOINTS_MERGED,
            repository_id,
            added,
        )

    def log_matched(self, repository_id: uuid.UUID) -> None:
        """Log a resolution that found every endpoint already stored."""
        log_debug(
            logger,
            "[%s] repository_id=%s",
            ResolutionEventType.REPOSITORY_MATCHED,
            repository_id,
        )

    def log_ambiguous(
        self,
        canonical_id: uuid.UUID,
        repository_ids: cabc.Sequence[uuid.UUID],
        endpoints: cabc.Sequence[str],
    ) -> None:
        """Log several repositories claiming overlapping endpoints."""
        log_warning(
            logger,
            "[%s] canonical_id=%s repository_ids=%s match_count=%d endpoints=%s",
            ResolutionEventType.AMBIGUOUS_MATCH,
            canonical_id,
            _ids(repository_ids),
            len(repository_ids),
            ",".join(endpoints),
        )
