"""Jobs and the outcomes a job iterator can produce."""

from __future__ import annotations

import dataclasses
import typing as typ
import uuid  # noqa: TC003

import msgspec


@dataclasses.dataclass(frozen=True, slots=True)
class Job:
    """Request to fetch and archive one repository."""

    repository_id: uuid.UUID


@dataclasses.dataclass(frozen=True, slots=True)
class Exhausted:
    """The job source is permanently done; stop iterating."""


@dataclasses.dataclass(frozen=True, slots=True)
class WaitForJobs:
    """The job source is empty for now but may produce more later."""


EXHAUSTED: typ.Final = Exhausted()
WAIT_FOR_JOBS: typ.Final = WaitForJobs()

type JobOutcome = Job | Exhausted | WaitForJobs


class Discovery(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Repository observed by a producer under one or more endpoints."""

    endpoints: list[str]
    is_fork: bool | None = None


def decode_discovery(payload: object) -> Discovery:
    """Validate a decoded JSON payload as a :class:`Discovery`.

    Raises
    ------
    msgspec.ValidationError
        If the payload does not match the discovery shape.

    """
    return msgspec.convert(payload, type=Discovery)
