"""Relational storage for repositories and their endpoint aliases.

Endpoints live in their own table so the "shares any endpoint" lookup is a
plain ``IN`` sub-query that behaves the same on SQLite in tests and on
PostgreSQL in production. No uniqueness constraint is placed on endpoints;
keeping each alias on a single repository is the resolver's job.
"""

from __future__ import annotations

import datetime as dt
import typing as typ
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from archivist.clock import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class Base(DeclarativeBase):
    """Declarative base for archivist tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """Timezone-aware DateTime that reads back as UTC on SQLite too."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Reject naive datetimes and convert aware ones to UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            msg = "repository timestamps must be timezone aware"
            raise ValueError(msg)
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Attach UTC to values SQLite returns without tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class RepositoryRow(Base):
    """Repository known to the archive under one or more endpoints."""

    __tablename__ = "repositories"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    is_fork: Mapped[bool | None] = mapped_column(Boolean, default=None)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )

    endpoint_rows: Mapped[list[RepositoryEndpointRow]] = relationship(
        back_populates="repository",
        cascade="all, delete-orphan",
        order_by="RepositoryEndpointRow.id",
    )

    @property
    def endpoints(self) -> tuple[str, ...]:
        """Return the endpoint aliases in insertion order."""
        return tuple(row.endpoint for row in self.endpoint_rows)


class RepositoryEndpointRow(Base):
    """Single endpoint alias owned by a repository."""

    __tablename__ = "repository_endpoints"
    __table_args__ = (
        UniqueConstraint(
            "repository_id", "endpoint", name="uq_repository_endpoints_repo_endpoint"
        ),
        Index("ix_repository_endpoints_endpoint", "endpoint"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    repository_id: Mapped[str] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False
    )
    endpoint: Mapped[str] = mapped_column(String(2048))
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    repository: Mapped[RepositoryRow] = relationship(back_populates="endpoint_rows")


async def init_repository_storage(engine: AsyncEngine) -> None:
    """Create the repository tables if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
