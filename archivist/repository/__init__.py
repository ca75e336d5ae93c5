"""Repository identity resolution.

A repository is known to the archive by a stable UUID and a set of endpoint
aliases. :class:`RepositoryResolver` maps any list of aliases to that UUID,
creating the repository on first sight and appending unseen aliases later.

Usage
-----
Resolve endpoints against a SQL database::

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from archivist.repository import (
        RepositoryResolver,
        SqlRepositoryStore,
        init_repository_storage,
    )

    engine = create_async_engine("sqlite+aiosqlite:///archive.db")
    await init_repository_storage(engine)
    store = SqlRepositoryStore(async_sessionmaker(engine, expire_on_commit=False))
    resolver = RepositoryResolver(store)
    repo_id = await resolver.resolve(
        ["https://github.com/octo/reef", "git://github.com/octo/reef.git"]
    )

Test against the in-memory store::

    resolver = RepositoryResolver(InMemoryRepositoryStore())

"""

from __future__ import annotations

from .config import MultipleMatchPolicy, ResolverConfig
from .endpoints import EndpointMerge, merge_endpoints, unique_endpoints
from .memory import InMemoryRepositoryStore
from .models import RepositoryField, RepositoryInfo
from .ports import RepositoryStore
from .resolver import RepositoryResolver
from .sql import SqlRepositoryStore
from .storage import (
    RepositoryEndpointRow,
    RepositoryRow,
    init_repository_storage,
)

__all__ = [
    "EndpointMerge",
    "InMemoryRepositoryStore",
    "MultipleMatchPolicy",
    "RepositoryEndpointRow",
    "RepositoryField",
    "RepositoryInfo",
    "RepositoryResolver",
    "RepositoryRow",
    "RepositoryStore",
    "ResolverConfig",
    "SqlRepositoryStore",
    "init_repository_storage",
    "merge_endpoints",
    "unique_endpoints",
]
