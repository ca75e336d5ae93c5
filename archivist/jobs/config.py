"""Configuration for job workers.

Usage
-----
>>> config = WorkerConfig()
>>> config.wait_interval
5.0

>>> import os
>>> os.environ["ARCHIVIST_WAIT_INTERVAL_SECONDS"] = "0.5"
>>> WorkerConfig.from_env().wait_interval
0.5

"""

from __future__ import annotations

import dataclasses as dc
import os

_DEFAULT_WAIT_INTERVAL = 5.0
_DEFAULT_NAME = "archivist"


@dc.dataclass(frozen=True, slots=True)
class WorkerConfig:
    """Runtime knobs for :class:`~archivist.jobs.worker.Worker`.

    Attributes
    ----------
    wait_interval
        Seconds to back off after the iterator reports ``WAIT_FOR_JOBS``.
    max_idle_waits
        Stop after this many consecutive waits. ``None`` waits forever.
    name
        Worker name used in log events.

    """

    wait_interval: float = _DEFAULT_WAIT_INTERVAL
    max_idle_waits: int | None = None
    name: str = _DEFAULT_NAME

    @staticmethod
    def _parse_positive_float(env_var: str, default: float) -> float:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value <= 0:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_optional_positive_int(env_var: str) -> int | None:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return None
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> WorkerConfig:
        """Create configuration from environment variables.

        Reads ``ARCHIVIST_WAIT_INTERVAL_SECONDS``, ``ARCHIVIST_MAX_IDLE_WAITS``
        and ``ARCHIVIST_WORKER_NAME``.

        Raises
        ------
        ValueError
            If a numeric variable is malformed or not positive.

        """
        name = os.environ.get("ARCHIVIST_WORKER_NAME", "").strip() or _DEFAULT_NAME
        return cls(
            wait_interval=cls._parse_positive_float(
                "ARCHIVIST_WAIT_INTERVAL_SECONDS", _DEFAULT_WAIT_INTERVAL
            ),
            max_idle_waits=cls._parse_optional_positive_int(
                "ARCHIVIST_MAX_IDLE_WAITS"
            ),
            name=name,
        )
