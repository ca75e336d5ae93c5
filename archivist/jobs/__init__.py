"""Job consumption: iterators, outcomes, and the worker loop.

Workers pull :class:`Job` values from a job iterator. ``next()`` returns a
job, :data:`WAIT_FOR_JOBS` when the source is empty for now, or
:data:`EXHAUSTED` when it is done for good.

Quick examples
--------------

Drain a file of endpoints::

    >>> from archivist.jobs import LineJobIter, Worker
    >>> worker = Worker(LineJobIter(open("endpoints.txt"), resolver), archive)
    >>> result = await worker.run()

Feed discoveries from a producer coroutine::

    >>> feed = DiscoveryFeed()
    >>> feed.put(Discovery(endpoints=["https://github.com/octo/reef"]))
    >>> feed.finish()
    >>> await Worker(DiscoveryJobIter(feed, resolver), archive).run()

The Dramatiq actor lives in :mod:`archivist.jobs.actor` and is not imported
here, because declaring it requires a configured broker.
"""

from __future__ import annotations

from .config import WorkerConfig
from .iterators import (
    BaseJobIter,
    DiscoveryFeed,
    DiscoveryJobIter,
    JobIter,
    LineJobIter,
    RepositoryJobIter,
    parse_endpoint_line,
)
from .models import (
    EXHAUSTED,
    WAIT_FOR_JOBS,
    Discovery,
    Exhausted,
    Job,
    JobOutcome,
    WaitForJobs,
    decode_discovery,
)
from .observability import (
    ErrorCategory,
    WorkerEventLogger,
    WorkerEventType,
    categorize_error,
)
from .references import (
    ObjectType,
    Reference,
    Referencer,
    check_reference,
    collect_references,
)
from .worker import JobHandler, StopReason, Worker, WorkerResult

__all__ = [
    "EXHAUSTED",
    "WAIT_FOR_JOBS",
    "BaseJobIter",
    "Discovery",
    "DiscoveryFeed",
    "DiscoveryJobIter",
    "ErrorCategory",
    "Exhausted",
    "Job",
    "JobHandler",
    "JobIter",
    "JobOutcome",
    "LineJobIter",
    "ObjectType",
    "Reference",
    "Referencer",
    "RepositoryJobIter",
    "StopReason",
    "WaitForJobs",
    "Worker",
    "WorkerConfig",
    "WorkerEventLogger",
    "WorkerEventType",
    "WorkerResult",
    "categorize_error",
    "check_reference",
    "collect_references",
    "decode_discovery",
    "parse_endpoint_line",
]
