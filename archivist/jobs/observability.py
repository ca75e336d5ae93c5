"""Observability primitives for job workers.

Worker lifecycle events are emitted as structured ``[event] key=value`` log
lines, and failures carry an :class:`ErrorCategory` so alerting can tell a
flaky database apart from a caller bug.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from archivist.errors import (
    AlreadyStoppedError,
    AmbiguousRepositoryError,
    ArchivistError,
    ReferencedObjectTypeNotSupportedError,
)
from archivist.logging import get_logger, log_debug, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from archivist.jobs.models import Job
    from archivist.jobs.worker import WorkerResult

logger = get_logger(__name__)


class WorkerEventType(enum.StrEnum):
    """Structured log event types for worker runs."""

    RUN_STARTED = "worker.run.started"
    RUN_COMPLETED = "worker.run.completed"
    RUN_FAILED = "worker.run.failed"
    JOB_REJECTED = "worker.job.rejected"
    QUEUE_WAITING = "worker.queue.waiting"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    PERMANENT_REJECTION = "permanent_rejection"
    SESSION_STOPPED = "session_stopped"
    DATA_INCONSISTENCY = "data_inconsistency"
    CALLER_ERROR = "caller_error"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (ReferencedObjectTypeNotSupportedError, ErrorCategory.PERMANENT_REJECTION),
    (AlreadyStoppedError, ErrorCategory.SESSION_STOPPED),
    (AmbiguousRepositoryError, ErrorCategory.DATA_INCONSISTENCY),
    (ArchivistError, ErrorCategory.CALLER_ERROR),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Return the alerting category for ``exc``.

    The first matching entry wins, so subclasses are listed before their
    bases.
    """
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


@dataclasses.dataclass(frozen=True, slots=True)
class WorkerRunContext:
    """Identity of one worker run, repeated on every event."""

    worker_name: str
    started_at: dt.datetime


class WorkerEventLogger:
    """Emit worker events via femtologging."""

    def log_run_started(self, context: WorkerRunContext) -> None:
        """Log the start of a worker run."""
        log_info(
            logger,
            "[%s] worker=%s started_at=%s",
            WorkerEventType.RUN_STARTED,
            context.worker_name,
            context.started_at.isoformat(),
        )

    def log_run_completed(
        self,
        context: WorkerRunContext,
        result: WorkerResult,
        duration: dt.timedelta,
    ) -> None:
        """Log a worker run that drained or was stopped cleanly."""
        log_info(
            logger,
            "[%s] worker=%s duration_seconds=%.3f jobs_processed=%d "
            "jobs_rejected=%d waits=%d stop_reason=%s",
            WorkerEventType.RUN_COMPLETED,
            context.worker_name,
            duration.total_seconds(),
            result.jobs_processed,
            result.jobs_rejected,
            result.waits,
            result.stop_reason,
        )

    def log_run_failed(
        self,
        context: WorkerRunContext,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a worker run aborted by ``error``."""
        log_error(
            logger,
            "[%s] worker=%s duration_seconds=%.3f error_type=%s "
            "error_category=%s error_message=%s",
            WorkerEventType.RUN_FAILED,
            context.worker_name,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_job_rejected(
        self,
        context: WorkerRunContext,
        job: Job,
        error: BaseException,
    ) -> None:
        """Log a job skipped because it can never be processed."""
        log_warning(
            logger,
            "[%s] worker=%s repository_id=%s error_category=%s error_message=%s",
            WorkerEventType.JOB_REJECTED,
            context.worker_name,
            job.repository_id,
            categorize_error(error),
            str(error),
        )

    def log_waiting(
        self, context: WorkerRunContext, wait_seconds: float, idle_waits: int
    ) -> None:
        """Log a back-off while the queue is temporarily empty."""
        log_debug(
            logger,
            "[%s] worker=%s wait_seconds=%.3f idle_waits=%d",
            WorkerEventType.QUEUE_WAITING,
            context.worker_name,
            wait_seconds,
            idle_waits,
        )
