"""Unit tests for reference object-type checks."""

from __future__ import annotations

import dataclasses

import pytest

from archivist.errors import ReferencedObjectTypeNotSupportedError
from archivist.jobs import ObjectType, Reference, check_reference, collect_references
from tests.helpers.femtologging_capture import capture_femto_logs, is_warning


@dataclasses.dataclass(slots=True)
class StaticReferencer:
    """Referencer returning a fixed list."""

    refs: list[Reference]

    async def references(self) -> list[Reference]:
        return list(self.refs)


MAIN = Reference("refs/heads/main", "1a2b3c", ObjectType.COMMIT)
RELEASE = Reference("refs/tags/v1.0", "4d5e6f", ObjectType.TAG)
SNAPSHOT = Reference("refs/snapshots/tree", "777777", ObjectType.TREE)
LOGO = Reference("refs/tags/logo", "888888", ObjectType.BLOB)


@pytest.mark.parametrize("reference", [MAIN, RELEASE])
def test_commits_and_tags_are_supported(reference: Reference) -> None:
    """Commit and tag references pass through unchanged."""
    assert check_reference(reference) is reference


@pytest.mark.parametrize("reference", [SNAPSHOT, LOGO])
def test_trees_and_blobs_are_rejected(reference: Reference) -> None:
    """Trees and blobs have no history to archive."""
    with pytest.raises(ReferencedObjectTypeNotSupportedError) as exc_info:
        check_reference(reference)

    assert exc_info.value.reference == reference.name
    assert exc_info.value.object_type == reference.object_type


@pytest.mark.asyncio
async def test_collect_references_skips_and_logs_unsupported() -> None:
    """Unsupported references are dropped with a warning each."""
    referencer = StaticReferencer([MAIN, SNAPSHOT, RELEASE, LOGO])

    with capture_femto_logs("archivist.jobs.references") as capture:
        supported = await collect_references(referencer)
        capture.wait_for_count(2)

    assert supported == [MAIN, RELEASE]
    assert all(is_warning(record) for record in capture.records)
    messages = [record.message for record in capture.records]
    assert any("name=refs/snapshots/tree" in msg for msg in messages)
    assert any("object_type=blob" in msg for msg in messages)


@pytest.mark.asyncio
async def test_collect_references_of_empty_referencer() -> None:
    """No references means nothing to archive, not an error."""
    assert await collect_references(StaticReferencer([])) == []
