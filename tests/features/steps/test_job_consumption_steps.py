"""Behavioural tests for draining job sources with a worker."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from archivist.errors import AlreadyStoppedError, ReferencedObjectTypeNotSupportedError
from archivist.jobs import (
    Discovery,
    DiscoveryFeed,
    DiscoveryJobIter,
    Job,
    StopReason,
    Worker,
    WorkerConfig,
    WorkerResult,
)
from archivist.repository import InMemoryRepositoryStore, RepositoryResolver


def run_async[T](coro: typ.Coroutine[typ.Any, typ.Any, T]) -> T:
    """Run async coroutines in sync BDD step functions."""
    return asyncio.run(coro)


class ConsumptionContext(typ.TypedDict, total=False):
    """Shared state used by BDD steps."""

    store: InMemoryRepositoryStore
    feed: DiscoveryFeed
    jobs: DiscoveryJobIter
    rejected_endpoints: set[str]
    archived: list[Job]
    result: WorkerResult


@scenario("../job_consumption.feature", "Worker waits for late discoveries")
def test_worker_waits_for_late_discoveries() -> None:
    """Behavioural test: an empty feed is waited on, not abandoned."""


@scenario(
    "../job_consumption.feature",
    "Worker skips jobs with unsupported references",
)
def test_worker_skips_unsupported_references() -> None:
    """Behavioural test: permanent rejections do not stop the worker."""


@scenario("../job_consumption.feature", "Closed sessions refuse further use")
def test_closed_sessions_refuse_use() -> None:
    """Behavioural test: a closed job session reports it is stopped."""


@pytest.fixture
def consumption_context() -> ConsumptionContext:
    """Provision an in-memory store and discovery feed per scenario."""
    store = InMemoryRepositoryStore()
    feed = DiscoveryFeed()
    return {
        "store": store,
        "feed": feed,
        "jobs": DiscoveryJobIter(feed, RepositoryResolver(store)),
        "rejected_endpoints": set(),
        "archived": [],
    }


def _worker(context: ConsumptionContext) -> Worker:
    """Build a worker whose handler archives or rejects by endpoint."""

    async def archive(job: Job) -> None:
        stored = context["store"].get(job.repository_id)
        assert stored is not None
        if context["rejected_endpoints"].intersection(stored.endpoints):
            raise ReferencedObjectTypeNotSupportedError("tree", "refs/heads/main")
        context["archived"].append(job)

    return Worker(
        context["jobs"],
        archive,
        config=WorkerConfig(wait_interval=0.01, name="bdd-worker"),
    )


@given("a discovery feed with no discoveries yet")
def empty_feed(consumption_context: ConsumptionContext) -> None:
    """Validate the feed starts empty and unfinished."""
    assert consumption_context["feed"].poll() is None
    assert consumption_context["feed"].finished is False


@given(parsers.parse('a discovery feed with discoveries "{first}" and "{second}"'))
def feed_with_discoveries(
    consumption_context: ConsumptionContext, first: str, second: str
) -> None:
    """Queue two discoveries."""
    consumption_context["feed"].put(Discovery(endpoints=[first]))
    consumption_context["feed"].put(Discovery(endpoints=[second]))


@given("the feed is finished")
def finish_feed(consumption_context: ConsumptionContext) -> None:
    """Mark the producer as done."""
    consumption_context["feed"].finish()


@given(parsers.parse('the archiver rejects "{endpoint}" as a tree reference'))
def reject_endpoint(consumption_context: ConsumptionContext, endpoint: str) -> None:
    """Make the archival handler reject jobs for ``endpoint``."""
    consumption_context["rejected_endpoints"].add(endpoint)


@when(
    parsers.parse('the worker runs while a discovery for "{endpoint}" arrives late')
)
def run_with_late_discovery(
    consumption_context: ConsumptionContext, endpoint: str
) -> None:
    """Start the worker, then feed it once it has had to wait."""

    async def _run() -> WorkerResult:
        task = asyncio.create_task(_worker(consumption_context).run())
        await asyncio.sleep(0.05)
        consumption_context["feed"].put(Discovery(endpoints=[endpoint]))
        consumption_context["feed"].finish()
        return await asyncio.wait_for(task, timeout=5.0)

    consumption_context["result"] = run_async(_run())


@when("the worker runs to completion")
def run_to_completion(consumption_context: ConsumptionContext) -> None:
    """Drain the feed."""
    consumption_context["result"] = run_async(_worker(consumption_context).run())


@when("the job session is closed")
def close_session(consumption_context: ConsumptionContext) -> None:
    """Close the job iterator."""
    run_async(consumption_context["jobs"].close())


@then(parsers.parse("the worker archives {count:d} repository"))
def archived_count(consumption_context: ConsumptionContext, count: int) -> None:
    """Check how many jobs reached the archiver."""
    assert len(consumption_context["archived"]) == count
    assert consumption_context["result"].jobs_processed == count


@then("the worker waited at least once")
def waited(consumption_context: ConsumptionContext) -> None:
    """Check the empty feed caused back-off rather than termination."""
    assert consumption_context["result"].waits >= 1


@then("the worker stopped because the source was exhausted")
def stopped_exhausted(consumption_context: ConsumptionContext) -> None:
    """Check the run ended on exhaustion."""
    assert consumption_context["result"].stop_reason is StopReason.EXHAUSTED


@then(parsers.parse("the worker rejected {count:d} job"))
def rejected_count(consumption_context: ConsumptionContext, count: int) -> None:
    """Check how many jobs were permanently rejected."""
    assert consumption_context["result"].jobs_rejected == count


@then("asking for the next job fails because the session is stopped")
def next_fails(consumption_context: ConsumptionContext) -> None:
    """Check the closed iterator refuses further calls."""
    with pytest.raises(AlreadyStoppedError):
        run_async(consumption_context["jobs"].next())
