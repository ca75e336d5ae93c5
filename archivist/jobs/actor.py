"""Dramatiq actor resolving discovered repositories to stable identifiers.

Producers enqueue what they observed; the actor validates the payload,
resolves its endpoints against the database, and returns the repository
identifier for the archival stage.

Usage
-----
>>> resolve_discovery_job.send(
...     "postgresql+asyncpg://archive@db/archive",
...     {"endpoints": ["https://github.com/octo/reef"], "is_fork": False},
... )

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from archivist.jobs._broker import ensure_broker_configured
from archivist.jobs.models import decode_discovery
from archivist.logging import get_logger, log_info
from archivist.repository import (
    RepositoryResolver,
    ResolverConfig,
    SqlRepositoryStore,
    init_repository_storage,
)

if typ.TYPE_CHECKING:
    import uuid

    from archivist.jobs.models import Discovery

logger = get_logger(__name__)

_ENGINE_CACHE: dict[str, AsyncEngine] = {}
_RESOLVER_CACHE: dict[str, RepositoryResolver] = {}
_SCHEMA_READY: set[str] = set()
_CACHE_LOCK = threading.Lock()


def _get_or_create_engine(database_url: str) -> AsyncEngine:
    """Return the cached engine for ``database_url``.

    Thread-safe: Dramatiq runs actors on several worker threads. Each
    message runs in its own event loop, so connections are not pooled.
    """
    with _CACHE_LOCK:
        if database_url not in _ENGINE_CACHE:
            _ENGINE_CACHE[database_url] = create_async_engine(
                database_url, poolclass=NullPool
            )
        return _ENGINE_CACHE[database_url]


def _get_or_create_resolver(database_url: str) -> RepositoryResolver:
    """Return the cached resolver for ``database_url``."""
    engine = _get_or_create_engine(database_url)
    with _CACHE_LOCK:
        if database_url not in _RESOLVER_CACHE:
            session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
                engine, expire_on_commit=False
            )
            _RESOLVER_CACHE[database_url] = RepositoryResolver(
                SqlRepositoryStore(session_factory),
                config=ResolverConfig.from_env(),
            )
        return _RESOLVER_CACHE[database_url]


async def _ensure_schema(database_url: str) -> None:
    """Create the repository tables once per database URL.

    ``_CACHE_LOCK`` guards the ready set only; table creation is idempotent
    and runs outside it.
    """
    with _CACHE_LOCK:
        if database_url in _SCHEMA_READY:
            return
    await init_repository_storage(_get_or_create_engine(database_url))
    with _CACHE_LOCK:
        _SCHEMA_READY.add(database_url)


async def _resolve_discovery_async(
    resolver: RepositoryResolver, discovery: Discovery
) -> uuid.UUID:
    """Resolve one discovery with ``resolver``."""
    return await resolver.resolve(discovery.endpoints, discovery.is_fork)


ensure_broker_configured()


@dramatiq.actor
def resolve_discovery_job(database_url: str, discovery: dict[str, object]) -> str:
    """Resolve a discovery payload and return the repository identifier.

    Parameters
    ----------
    database_url
        SQLAlchemy async URL of the archive database.
    discovery
        JSON object with ``endpoints`` (list of strings) and optional
        ``is_fork`` (bool or null).

    Returns
    -------
    str
        The repository identifier.

    Raises
    ------
    msgspec.ValidationError
        If ``discovery`` is malformed.
    EmptyEndpointsError
        If ``discovery`` lists no endpoints.

    """
    payload = decode_discovery(discovery)
    resolver = _get_or_create_resolver(database_url)

    async def run() -> uuid.UUID:
        await _ensure_schema(database_url)
        return await _resolve_discovery_async(resolver, payload)

    repository_id = asyncio.run(run())
    log_info(
        logger,
        "[discovery.resolved] repository_id=%s endpoints=%d",
        repository_id,
        len(payload.endpoints),
    )
    return str(repository_id)
