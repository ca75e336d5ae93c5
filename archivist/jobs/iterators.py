"""Job iterators: sessions over a queue of archiving jobs.

A job iterator is not a plain sequence. Besides a job, ``next()`` can report
that the source is finished for good (:data:`EXHAUSTED`) or merely empty for
now (:data:`WAIT_FOR_JOBS`), and the two call for different reactions from a
worker. Iterators are async context managers; leaving the ``async with``
block closes the session on every exit path.

Usage
-----
>>> async with LineJobIter(open("endpoints.txt"), resolver) as jobs:
...     while isinstance(outcome := await jobs.next(), Job):
...         await archive(outcome)

"""

from __future__ import annotations

import abc
import asyncio
import collections
import typing as typ

from archivist.errors import AlreadyStoppedError
from archivist.jobs.models import EXHAUSTED, WAIT_FOR_JOBS, Job

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import types
    import uuid

    from archivist.jobs.models import Discovery, JobOutcome
    from archivist.repository.resolver import RepositoryResolver


class JobIter(typ.Protocol):
    """Session over a job source."""

    async def next(self) -> JobOutcome:
        """Return the next job, :data:`EXHAUSTED`, or :data:`WAIT_FOR_JOBS`.

        Any raised exception is fatal for the session.
        """
        ...

    async def close(self) -> None:
        """Release the underlying source. Closing twice is a no-op."""
        ...

    async def __aenter__(self) -> typ.Self:
        """Enter the session."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Close the session."""
        ...


class BaseJobIter(abc.ABC):
    """Shared session bookkeeping for job iterators.

    Subclasses implement :meth:`_next` and, when they hold resources,
    :meth:`_release`. Once :meth:`_next` returns :data:`EXHAUSTED` the base
    class keeps returning it without consulting the subclass again.
    """

    def __init__(self) -> None:
        """Start an open, unexhausted session."""
        self._closed = False
        self._exhausted = False

    @property
    def closed(self) -> bool:
        """Return whether :meth:`close` has been called."""
        return self._closed

    async def next(self) -> JobOutcome:
        """Return the next outcome of the session.

        Raises
        ------
        AlreadyStoppedError
            If the iterator was closed.

        """
        self._ensure_open()
        if self._exhausted:
            return EXHAUSTED
        outcome = await self._next()
        if outcome is EXHAUSTED:
            self._exhausted = True
        return outcome

    async def close(self) -> None:
        """Release the source; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        await self._release()

    async def __aenter__(self) -> typ.Self:
        """Return the iterator; raises if it was already closed."""
        self._ensure_open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Close the iterator."""
        await self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise AlreadyStoppedError(type(self).__name__)

    @abc.abstractmethod
    async def _next(self) -> JobOutcome:
        """Produce the next outcome from the underlying source."""

    async def _release(self) -> None:  # noqa: B027 - optional hook
        """Release resources held by the source."""


class RepositoryJobIter(BaseJobIter):
    """Yield jobs for repositories that are already known by identifier."""

    def __init__(self, repository_ids: cabc.Iterable[uuid.UUID]) -> None:
        """Queue one job per identifier, in order."""
        super().__init__()
        self._pending = collections.deque(repository_ids)

    async def _next(self) -> JobOutcome:
        if not self._pending:
            return EXHAUSTED
        return Job(repository_id=self._pending.popleft())

    async def _release(self) -> None:
        self._pending.clear()


class LineJobIter(BaseJobIter):
    """Yield a job per line of a text stream of endpoints.

    Each non-blank line names one repository; several whitespace-separated
    endpoints on a line are aliases of that repository. Lines starting with
    ``#`` are comments. Every line is resolved to a repository identifier
    before its job is returned. The stream is closed with the iterator.
    """

    def __init__(self, stream: typ.TextIO, resolver: RepositoryResolver) -> None:
        """Read endpoints from ``stream`` and resolve them with ``resolver``."""
        super().__init__()
        self._stream = stream
        self._resolver = resolver

    async def _next(self) -> JobOutcome:
        while True:
            line = await asyncio.to_thread(self._stream.readline)
            if not line:
                return EXHAUSTED
            endpoints = parse_endpoint_line(line)
            if endpoints:
                repository_id = await self._resolver.resolve(endpoints)
                return Job(repository_id=repository_id)

    async def _release(self) -> None:
        self._stream.close()


def parse_endpoint_line(line: str) -> list[str]:
    """Split a line into endpoints, ignoring blanks and ``#`` comments.

    Examples
    --------
    >>> parse_endpoint_line("https://a/x git://a/x.git\\n")
    ['https://a/x', 'git://a/x.git']
    >>> parse_endpoint_line("# mirrors")
    []

    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return []
    return stripped.split()


class DiscoveryFeed:
    """In-process queue of discoveries shared by a producer and a consumer.

    The producer calls :meth:`put` and finally :meth:`finish`; until then an
    empty feed means "more may come".
    """

    def __init__(self) -> None:
        """Create an empty, unfinished feed."""
        self._queue: asyncio.Queue[Discovery] = asyncio.Queue()
        self._finished = False

    @property
    def finished(self) -> bool:
        """Return whether the producer has finished."""
        return self._finished

    def put(self, discovery: Discovery) -> None:
        """Append a discovery.

        Raises
        ------
        AlreadyStoppedError
            If the feed was already finished.

        """
        if self._finished:
            raise AlreadyStoppedError(type(self).__name__)
        self._queue.put_nowait(discovery)

    def finish(self) -> None:
        """Mark the producer as done; idempotent."""
        self._finished = True

    def poll(self) -> Discovery | None:
        """Return the next discovery without waiting, or ``None`` if empty."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None


class DiscoveryJobIter(BaseJobIter):
    """Resolve discoveries from a :class:`DiscoveryFeed` into jobs."""

    def __init__(self, feed: DiscoveryFeed, resolver: RepositoryResolver) -> None:
        """Consume ``feed`` and resolve each discovery with ``resolver``."""
        super().__init__()
        self._feed = feed
        self._resolver = resolver

    async def _next(self) -> JobOutcome:
        discovery = self._feed.poll()
        if discovery is None:
            return EXHAUSTED if self._feed.finished else WAIT_FOR_JOBS
        repository_id = await self._resolver.resolve(
            discovery.endpoints, discovery.is_fork
        )
        return Job(repository_id=repository_id)
