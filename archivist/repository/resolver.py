"""Find-or-create resolution of repository identities from endpoint aliases.

The same repository is often discovered through several endpoints: mirrors,
renamed remotes, or the same host over different protocols. The resolver
folds every endpoint seen together into one repository record and returns
that record's stable identifier.

Concurrent resolutions are not serialised here. Two workers resolving
disjoint aliases of one repository at the same moment may both create a
record; a later call that touches both records reports the conflict through
the multiple-match policy instead of failing.
"""

from __future__ import annotations

import typing as typ
import uuid

from archivist.errors import AmbiguousRepositoryError, EmptyEndpointsError
from archivist.repository.config import MultipleMatchPolicy, ResolverConfig
from archivist.repository.endpoints import merge_endpoints, unique_endpoints
from archivist.repository.models import RepositoryField, RepositoryInfo
from archivist.repository.observability import ResolutionEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from archivist.repository.ports import RepositoryStore


class RepositoryResolver:
    """Resolve endpoint lists to stable repository identifiers.

    Parameters
    ----------
    store:
        Persistence port used to query, insert, and update repositories.
    config:
        Optional resolver configuration; defaults to the canonical policy.
    event_logger:
        Optional structured event logger.

    """

    def __init__(
        self,
        store: RepositoryStore,
        *,
        config: ResolverConfig | None = None,
        event_logger: ResolutionEventLogger | None = None,
    ) -> None:
        """Bind the resolver to a store."""
        self._store = store
        self._config = config or ResolverConfig()
        self._event_logger = event_logger or ResolutionEventLogger()

    async def resolve(
        self,
        endpoints: cabc.Sequence[str],
        is_fork: bool | None = None,
    ) -> uuid.UUID:
        """Return the identifier of the repository owning ``endpoints``.

        Parameters
        ----------
        endpoints:
            Endpoints believed to name the same repository. Compared verbatim.
        is_fork:
            Fork flag recorded only when a new repository is created.

        Returns
        -------
        uuid.UUID
            Identifier of the existing or newly created repository.

        Raises
        ------
        EmptyEndpointsError
            If ``endpoints`` is empty.
        AmbiguousRepositoryError
            If several repositories match and the policy is ``strict``.

        """
        wanted = unique_endpoints(endpoints)
        if not wanted:
            raise EmptyEndpointsError

        matches = await self._store.find_by_endpoint_overlap(wanted)
        if not matches:
            return await self._create(wanted, is_fork)

        canonical = self._select_canonical(matches, wanted)
        await self._merge_into(canonical, wanted)
        return canonical.id

    async def _create(
        self, endpoints: tuple[str, ...], is_fork: bool | None
    ) -> uuid.UUID:
        repository = RepositoryInfo(
            id=uuid.uuid4(), endpoints=endpoints, is_fork=is_fork
        )
        await self._store.insert(repository)
        self._event_logger.log_created(repository.id, endpoints, is_fork=is_fork)
        return repository.id

    def _select_canonical(
        self, matches: list[RepositoryInfo], endpoints: tuple[str, ...]
    ) -> RepositoryInfo:
        """Pick the record to merge into when one or more repositories match."""
        ordered = sorted(matches, key=lambda repo: repo.id)
        if len(ordered) == 1:
            return ordered[0]

        repository_ids = [repo.id for repo in ordered]
        if self._config.multiple_match_policy is MultipleMatchPolicy.STRICT:
            raise AmbiguousRepositoryError(repository_ids, endpoints)

        canonical = ordered[0]
        self._event_logger.log_ambiguous(canonical.id, repository_ids, endpoints)
        return canonical

    async def _merge_into(
        self, repository: RepositoryInfo, endpoints: tuple[str, ...]
    ) -> None:
        """Append unseen ``endpoints`` to ``repository``; never touches is_fork."""
        merged, changed = merge_endpoints(repository.endpoints, endpoints)
        if not changed:
            self._event_logger.log_matched(repository.id)
            return

        await self._store.update_fields(
            repository.with_endpoints(merged), (RepositoryField.ENDPOINTS,)
        )
        self._event_logger.log_merged(
            repository.id, len(merged) - len(repository.endpoints)
        )
