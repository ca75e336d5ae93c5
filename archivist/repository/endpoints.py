"""Endpoint set arithmetic used when merging repository aliases."""

from __future__ import annotations

import typing as typ


class EndpointMerge(typ.NamedTuple):
    """Outcome of :func:`merge_endpoints`.

    ``merged`` is only meaningful when ``changed`` is true; it is empty
    otherwise.
    """

    merged: tuple[str, ...]
    changed: bool


_UNCHANGED = EndpointMerge(merged=(), changed=False)


def unique_endpoints(endpoints: typ.Iterable[str]) -> tuple[str, ...]:
    """Drop repeated endpoints while keeping first-seen order.

    Examples
    --------
    >>> unique_endpoints(["a", "b", "a"])
    ('a', 'b')

    """
    return tuple(dict.fromkeys(endpoints))


def merge_endpoints(
    current: typ.Iterable[str], incoming: typ.Iterable[str]
) -> EndpointMerge:
    """Union ``incoming`` into ``current`` and report whether anything was added.

    Endpoints are compared verbatim, so ``https://host/x`` and
    ``https://host/x/`` are different aliases.

    Parameters
    ----------
    current:
        Endpoints already stored for the repository.
    incoming:
        Newly observed endpoints.

    Returns
    -------
    EndpointMerge
        ``changed`` is true iff ``incoming`` holds an endpoint missing from
        ``current``. ``merged`` lists ``current`` first, then the new
        endpoints in first-seen order.

    Examples
    --------
    >>> merge_endpoints(["a", "b"], ["b", "c"])
    EndpointMerge(merged=('a', 'b', 'c'), changed=True)
    >>> merge_endpoints(["a", "b"], ["b"]).changed
    False

    """
    existing = unique_endpoints(current)
    known = set(existing)
    added = [
        endpoint for endpoint in unique_endpoints(incoming) if endpoint not in known
    ]
    if not added:
        return _UNCHANGED
    return EndpointMerge(merged=(*existing, *added), changed=True)
