"""Per-key revision index for point-in-time restores.

Groups the flat, key-interleaved version listing returned by the backing store
into one sequence per logical key, ordered most recent first. Nothing is
dropped or deduplicated here; delete markers are indexed like any other
revision. The index performs no I/O.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from dynamo_incremental_restore.errors import MalformedRevision
from dynamo_incremental_restore.time_machine.revisions import Revision

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MICROSECOND = timedelta(microseconds=1)

# Accepted spellings for each field of a raw listing entry: our own snake_case,
# the camelCase used by JSON fixtures and the S3 ListObjectVersions shape.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "key": ("key", "Key"),
    "version_id": ("version_id", "versionId", "VersionId"),
    "modified_at": ("modified_at", "modifiedAt", "LastModified"),
    "is_delete_marker": ("is_delete_marker", "isDeleteMarker", "IsDeleteMarker"),
    "sequence": ("sequence",),
    "source_key": ("source_key",),
}

_REQUIRED_FIELDS = ("key", "version_id", "modified_at")


def _recency_key(revision: Revision) -> tuple[int, int]:
    """Sort key placing the most recent revision first.

    Integer microseconds keep the ordering exact; a tie falls back to the
    store's listing position.
    """
    micros = (revision.modified_at - _EPOCH) // _ONE_MICROSECOND
    return (-micros, revision.sequence)


def _pick(entry: Mapping[str, Any], field_name: str) -> Any:
    for alias in _FIELD_ALIASES[field_name]:
        value = entry.get(alias)
        if value is not None:
            return value
    return None


def coerce_revision(entry: Revision | Mapping[str, Any], position: int = 0) -> Revision:
    """Validate one raw listing entry and return it as a Revision.

    Args:
        entry: A Revision, or a mapping using any of the accepted field spellings.
        position: Listing position, used as the sequence when the entry has none.

    Returns:
        The validated, immutable Revision.

    Raises:
        MalformedRevision: If key, version_id or modified_at is missing or empty,
            or if a present field cannot be parsed.
    """
    if isinstance(entry, Revision):
        return entry
    if not isinstance(entry, Mapping):
        raise MalformedRevision(entry, list(_REQUIRED_FIELDS))

    values = {name: _pick(entry, name) for name in _FIELD_ALIASES}
    missing = [name for name in _REQUIRED_FIELDS if values[name] in (None, "")]
    if missing:
        raise MalformedRevision(entry, missing)

    if values["sequence"] is None:
        values["sequence"] = position
    if values["is_delete_marker"] is None:
        values["is_delete_marker"] = False

    try:
        return Revision.model_validate({k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        bad_fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        raise MalformedRevision(entry, bad_fields or list(_REQUIRED_FIELDS)) from exc


class RevisionIndex:
    """Mapping from logical key to its revisions, most recent first.

    Revisions are kept in order on insertion with bisect, so the per-key
    sequences are always sorted and the result does not depend on the order
    in which the listing delivered the entries.
    """

    def __init__(self) -> None:
        """Initialize an empty index."""
        # { key: list[Revision] } sorted by modified_at descending
        self._revisions: dict[str, list[Revision]] = {}

    @classmethod
    def build(cls, entries: Iterable[Revision | Mapping[str, Any]]) -> RevisionIndex:
        """Build an index from a raw revision listing.

        Args:
            entries: Revisions or raw listing entries in any order, keys interleaved.

        Returns:
            A populated RevisionIndex.

        Raises:
            MalformedRevision: If any entry lacks key, version_id or modified_at.
        """
        index = cls()
        for position, entry in enumerate(entries):
            index.add(coerce_revision(entry, position))
        return index

    def add(self, revision: Revision) -> None:
        """Insert a revision at its ordered position within its key's history.

        Args:
            revision: The revision to index.
        """
        history = self._revisions.setdefault(revision.key, [])
        bisect.insort_right(history, revision, key=_recency_key)

    def revisions_for(self, key: str) -> tuple[Revision, ...]:
        """Return a key's revisions, most recent first (empty if unknown)."""
        return tuple(self._revisions.get(key, ()))

    def keys(self) -> list[str]:
        """Return every indexed logical key in sorted order."""
        return sorted(self._revisions)

    def items(self) -> Iterator[tuple[str, tuple[Revision, ...]]]:
        for key in self.keys():
            yield key, self.revisions_for(key)

    @property
    def revision_count(self) -> int:
        return sum(len(history) for history in self._revisions.values())

    def __len__(self) -> int:
        return len(self._revisions)

    def __contains__(self, key: object) -> bool:
        return key in self._revisions
