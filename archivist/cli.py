"""Resolve a file of repository endpoints into stable repository identifiers."""

from __future__ import annotations

import argparse
import asyncio
import os
import typing as typ
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from archivist.errors import ArchivistError
from archivist.jobs import LineJobIter, Worker, WorkerConfig, categorize_error
from archivist.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_exception,
    log_warning,
)
from archivist.repository import (
    RepositoryResolver,
    ResolverConfig,
    SqlRepositoryStore,
    init_repository_storage,
)

if typ.TYPE_CHECKING:
    from archivist.jobs import Job

logger = get_logger(__name__)


async def resolve_file(endpoints_file: Path, database_url: str) -> list[str]:
    """Resolve every line of ``endpoints_file`` and return the identifiers.

    Identifiers are returned in input order, one per non-comment line.
    """
    engine = create_async_engine(database_url)
    try:
        await init_repository_storage(engine)
        store = SqlRepositoryStore(async_sessionmaker(engine, expire_on_commit=False))
        resolver = RepositoryResolver(store, config=ResolverConfig.from_env())
        resolved: list[str] = []

        async def record(job: Job) -> None:
            resolved.append(str(job.repository_id))

        worker = Worker(
            LineJobIter(endpoints_file.open(encoding="utf-8"), resolver),
            record,
            config=WorkerConfig(name="archivist-resolve"),
        )
        await worker.run()
        return resolved
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """Run the resolver over an endpoints file.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on invalid input, an unusable database URL,
        or a resolution failure.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "endpoints_file",
        type=Path,
        help="Text file with one repository per line (aliases space-separated)",
    )
    parser.add_argument(
        "--database-url",
        default=os.environ.get("ARCHIVIST_DATABASE_URL"),
        help="SQLAlchemy async URL (defaults to ARCHIVIST_DATABASE_URL)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("ARCHIVIST_LOG_LEVEL", "INFO"),
        help="Log level (defaults to ARCHIVIST_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(argv)

    normalized_level, invalid_level = configure_logging(args.log_level, force=True)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            args.log_level,
            normalized_level,
        )

    if not args.database_url:
        print("a database URL is required (--database-url or ARCHIVIST_DATABASE_URL)")
        return 1

    endpoints_file: Path = args.endpoints_file
    if not endpoints_file.is_file():
        print(f"endpoints file {endpoints_file} does not exist")
        return 1

    try:
        resolved = asyncio.run(resolve_file(endpoints_file, args.database_url))
    except (ArchivistError, ValueError) as exc:
        log_exception(logger, f"resolution failed for {endpoints_file}", exc)
        print(f"resolution failed for {endpoints_file}: {exc}")
        return 1
    except SQLAlchemyError as exc:
        log_error(
            logger,
            "resolution failed for %s error_category=%s",
            endpoints_file,
            categorize_error(exc),
            exc_info=exc,
        )
        print(f"resolution failed for {endpoints_file}: {exc}")
        return 1

    for repository_id in resolved:
        print(repository_id)
    print(
        f"resolved {len(resolved)} lines into "
        f"{len(set(resolved))} repositories from {endpoints_file}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
