"""Turns a winning revision into a RecordSnapshot."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dynamo_incremental_restore.errors import BodyFetchFailed, RestoreError
from dynamo_incremental_restore.observability import get_logger
from dynamo_incremental_restore.time_machine.revisions import RecordSnapshot, Revision

if TYPE_CHECKING:
    from dynamo_incremental_restore.core.interfaces import IBodyFetcher

logger = get_logger(__name__)


class RecordMaterializer:
    """Materializes selected revisions, fetching bodies for live records.

    Delete markers become tombstones without touching the store. Any other
    revision needs its body, which is requested from the fetcher by
    (key, version_id).

    Args:
        fetcher: The collaborator that returns stored payloads.
    """

    def __init__(self, fetcher: IBodyFetcher) -> None:
        self._fetcher = fetcher

    async def materialize(self, revision: Revision) -> RecordSnapshot:
        """Build the snapshot for a winning revision.

        Args:
            revision: The revision selected for the key.

        Returns:
            A tombstone for delete markers, otherwise a snapshot with the body.

        Raises:
            BodyFetchFailed: If the fetcher could not return the body.
        """
        if revision.is_delete_marker:
            return RecordSnapshot.tombstone(revision.key)

        try:
            body = await self._fetcher.fetch_body(revision.key, revision.version_id)
            snapshot = RecordSnapshot(key=revision.key, body=body)
        except RestoreError as exc:
            raise BodyFetchFailed(revision.key, revision.version_id, exc.message) from exc
        except Exception as exc:
            # CancelledError is a BaseException and still propagates
            raise BodyFetchFailed(revision.key, revision.version_id, f"{type(exc).__name__}: {exc}") from exc

        logger.debug(
            "Fetched revision body",
            key=revision.key,
            version_id=revision.version_id,
        )
        return snapshot
