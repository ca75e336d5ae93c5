"""Worker loop draining a job iterator into an archival handler.

The worker treats the three iterator outcomes differently:

- a :class:`~archivist.jobs.models.Job` goes to the handler;
- ``WAIT_FOR_JOBS`` backs off for ``WorkerConfig.wait_interval`` seconds and
  asks again;
- ``EXHAUSTED`` ends the run.

A handler raising :class:`~archivist.errors.ReferencedObjectTypeNotSupportedError`
rejects that job permanently and the loop moves on. Anything else the
handler or the iterator raises aborts the run after being logged.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import enum
import typing as typ

from archivist.clock import elapsed_since, utcnow
from archivist.errors import ReferencedObjectTypeNotSupportedError
from archivist.jobs.config import WorkerConfig
from archivist.jobs.models import Exhausted, WaitForJobs
from archivist.jobs.observability import WorkerEventLogger, WorkerRunContext

if typ.TYPE_CHECKING:
    from archivist.jobs.iterators import JobIter
    from archivist.jobs.models import Job


class StopReason(enum.StrEnum):
    """Why a worker run ended without an error."""

    EXHAUSTED = "exhausted"
    STOPPED = "stopped"
    IDLE = "idle"


@dataclasses.dataclass(slots=True)
class WorkerResult:
    """Counters collected over a worker run."""

    jobs_processed: int = 0
    jobs_rejected: int = 0
    waits: int = 0
    stop_reason: StopReason | None = None


class JobHandler(typ.Protocol):
    """Archival step invoked for every job."""

    async def __call__(self, job: Job) -> None:
        """Process ``job``."""
        ...


class Worker:
    """Consume a job iterator until it is exhausted, idle, or stopped."""

    def __init__(
        self,
        job_iter: JobIter,
        handler: JobHandler,
        *,
        config: WorkerConfig | None = None,
        event_logger: WorkerEventLogger | None = None,
    ) -> None:
        """Bind the worker to its job source and handler."""
        self._job_iter = job_iter
        self._handler = handler
        self._config = config or WorkerConfig()
        self._event_logger = event_logger or WorkerEventLogger()
        self._stop_requested = asyncio.Event()

    def stop(self) -> None:
        """Ask the run loop to end before fetching another job."""
        self._stop_requested.set()

    async def run(self) -> WorkerResult:
        """Drain the iterator and return the run counters.

        The iterator is closed when the run ends, whatever the reason.
        Cancellation propagates without a failure event.
        """
        context = WorkerRunContext(
            worker_name=self._config.name, started_at=utcnow()
        )
        self._event_logger.log_run_started(context)
        try:
            result = await self._run_inner(context)
        except Exception as exc:
            self._event_logger.log_run_failed(
                context, exc, elapsed_since(context.started_at)
            )
            raise

        self._event_logger.log_run_completed(
            context, result, elapsed_since(context.started_at)
        )
        return result

    async def _run_inner(self, context: WorkerRunContext) -> WorkerResult:
        result = WorkerResult()
        idle_waits = 0
        async with self._job_iter as jobs:
            while not self._stop_requested.is_set():
                outcome = await jobs.next()
                if isinstance(outcome, Exhausted):
                    result.stop_reason = StopReason.EXHAUSTED
                    return result
                if isinstance(outcome, WaitForJobs):
                    if self._idle_limit_reached(idle_waits):
                        result.stop_reason = StopReason.IDLE
                        return result
                    idle_waits += 1
                    result.waits += 1
                    await self._back_off(context, idle_waits)
                    continue

                idle_waits = 0
                await self._dispatch(context, outcome, result)

        result.stop_reason = StopReason.STOPPED
        return result

    def _idle_limit_reached(self, idle_waits: int) -> bool:
        limit = self._config.max_idle_waits
        return limit is not None and idle_waits >= limit

    async def _back_off(self, context: WorkerRunContext, idle_waits: int) -> None:
        """Sleep for the wait interval, waking early if stop() is called."""
        self._event_logger.log_waiting(context, self._config.wait_interval, idle_waits)
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(
                self._stop_requested.wait(), timeout=self._config.wait_interval
            )

    async def _dispatch(
        self, context: WorkerRunContext, job: Job, result: WorkerResult
    ) -> None:
        try:
            await self._handler(job)
        except ReferencedObjectTypeNotSupportedError as exc:
            self._event_logger.log_job_rejected(context, job, exc)
            result.jobs_rejected += 1
            return
        result.jobs_processed += 1
