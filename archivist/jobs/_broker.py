"""Dramatiq broker selection for the archivist actors.

Actors are bound to a broker when they are declared, so
:func:`ensure_broker_configured` runs when :mod:`archivist.jobs.actor` is
imported. Production deployments configure a RabbitMQ or Redis broker
before that import; tests and local runs fall back to a ``StubBroker``.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

_BROKER_LOCK = threading.Lock()
_broker_configured = False

_TRUTHY = frozenset({"1", "true", "yes"})


def _is_running_tests() -> bool:
    """Return True under pytest or pytest-xdist."""
    return "pytest" in sys.modules or any(
        key in os.environ for key in ("PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER")
    )


def stub_broker_allowed() -> bool:
    """Return whether a ``StubBroker`` may stand in for a real broker.

    True when ``ARCHIVIST_ALLOW_STUB_BROKER`` is truthy or tests are running.
    """
    allow_stub = os.environ.get("ARCHIVIST_ALLOW_STUB_BROKER", "").strip().lower()
    return allow_stub in _TRUTHY or _is_running_tests()


def ensure_broker_configured() -> None:
    """Make sure a Dramatiq broker exists; safe to call from many threads.

    Raises
    ------
    RuntimeError
        If no broker is available and a stub broker is not allowed.

    """
    global _broker_configured  # noqa: PLW0603

    if _broker_configured:
        return

    with _BROKER_LOCK:
        if _broker_configured:
            return

        try:
            current_broker = dramatiq.get_broker()
        except (ImportError, LookupError):
            # the default RabbitMQ broker needs pika, which is optional
            current_broker = None

        if current_broker is None:
            if not stub_broker_allowed():
                message = (
                    "No Dramatiq broker configured. Set "
                    "ARCHIVIST_ALLOW_STUB_BROKER=1 for local/test runs or "
                    "configure a real broker before importing archivist.jobs.actor."
                )
                raise RuntimeError(message)
            dramatiq.set_broker(StubBroker())

        _broker_configured = True
