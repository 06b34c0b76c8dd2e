"""In-memory version store and destination.

Hermetic implementations of IRevisionSource, IBodyFetcher and
IDestinationWriter. Used by the test-suite and by the API when no bucket is
configured.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from dynamo_incremental_restore.errors import BodyNotFound
from dynamo_incremental_restore.time_machine.revisions import RecordSnapshot, Revision, as_utc


class InMemoryVersionStore:
    """Append-only versioned store keeping every body ever written.

    Versions are listed newest first, the way a versioned bucket lists them.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._revisions: list[Revision] = []
        # { (key, version_id): body }
        self._bodies: dict[tuple[str, str], Any] = {}

    def put(self, key: str, body: Any, modified_at: datetime) -> str:
        """Record a new version of a key and return its version_id."""
        version_id = self._next_version_id(key)
        self._bodies[(key, version_id)] = body
        self._append(key, version_id, modified_at, is_delete_marker=False)
        return version_id

    def delete(self, key: str, modified_at: datetime) -> str:
        """Record a delete marker for a key and return its version_id."""
        version_id = self._next_version_id(key)
        self._append(key, version_id, modified_at, is_delete_marker=True)
        return version_id

    def purge(self, key: str, version_id: str) -> None:
        """Drop a stored body, leaving its listing entry behind."""
        self._bodies.pop((key, version_id), None)

    def _next_version_id(self, key: str) -> str:
        count = sum(1 for revision in self._revisions if revision.key == key)
        return f"{key}-v{count + 1}"

    def _append(self, key: str, version_id: str, modified_at: datetime, is_delete_marker: bool) -> None:
        self._revisions.append(
            Revision(
                key=key,
                version_id=version_id,
                modified_at=as_utc(modified_at),
                is_delete_marker=is_delete_marker,
            )
        )

    async def list_revisions(self) -> list[Revision]:
        """Return every revision, newest first, with listing positions assigned."""
        # later appends win timestamp ties
        ordered = [
            revision
            for _, revision in sorted(
                enumerate(self._revisions), key=lambda item: (item[1].modified_at, item[0]), reverse=True
            )
        ]
        return [revision.model_copy(update={"sequence": position}) for position, revision in enumerate(ordered)]

    async def fetch_body(self, key: str, version_id: str) -> Any:
        """Return the stored body for a version.

        Raises:
            BodyNotFound: If the version is a delete marker, unknown, or purged.
        """
        try:
            return copy.deepcopy(self._bodies[(key, version_id)])
        except KeyError:
            raise BodyNotFound(key, version_id) from None


class InMemoryDestination:
    """Destination writer collecting serialized snapshots per key."""

    def __init__(self) -> None:
        """Initialize an empty destination."""
        self.items: dict[str, Any] = {}

    async def write(self, key: str, snapshot: RecordSnapshot) -> None:
        """Store the live record, or remove the key for a tombstone."""
        if snapshot.is_tombstone:
            self.items.pop(key, None)
        else:
            self.items[key] = snapshot.body
