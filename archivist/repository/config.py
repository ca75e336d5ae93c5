"""Configuration for repository identity resolution.

Usage
-----
>>> config = ResolverConfig()
>>> config.multiple_match_policy
<MultipleMatchPolicy.CANONICAL: 'canonical'>

>>> import os
>>> os.environ["ARCHIVIST_MULTIPLE_MATCH_POLICY"] = "strict"
>>> ResolverConfig.from_env().multiple_match_policy
<MultipleMatchPolicy.STRICT: 'strict'>

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os


class MultipleMatchPolicy(enum.StrEnum):
    """How the resolver reacts when several repositories share endpoints."""

    CANONICAL = "canonical"
    STRICT = "strict"


@dc.dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Runtime knobs for :class:`~archivist.repository.RepositoryResolver`.

    Attributes
    ----------
    multiple_match_policy
        ``canonical`` (default) merges into the match with the lowest
        identifier and logs a warning. ``strict`` raises
        :class:`~archivist.errors.AmbiguousRepositoryError` instead.

    """

    multiple_match_policy: MultipleMatchPolicy = MultipleMatchPolicy.CANONICAL

    @classmethod
    def from_env(cls) -> ResolverConfig:
        """Read ``ARCHIVIST_MULTIPLE_MATCH_POLICY``.

        Raises
        ------
        ValueError
            If the variable names an unknown policy.

        """
        raw = os.environ.get("ARCHIVIST_MULTIPLE_MATCH_POLICY", "").strip().lower()
        if not raw:
            return cls()
        try:
            policy = MultipleMatchPolicy(raw)
        except ValueError as exc:
            allowed = ", ".join(member.value for member in MultipleMatchPolicy)
            msg = (
                f"ARCHIVIST_MULTIPLE_MATCH_POLICY must be one of {allowed}, "
                f"got: {raw!r}"
            )
            raise ValueError(msg) from exc
        return cls(multiple_match_policy=policy)
