"""Restore orchestrator: reconstructs the record set at a point in time.

Fetches the full revision listing once, indexes it per key, selects the
winning revision for every key and materializes the winners concurrently.
Body fetches are bounded by a semaphore so a large restore does not exceed
the backing store's request-rate limits. A failed fetch only removes its own
key from the result; it is reported in RestoreResult.failed_keys.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from dynamo_incremental_restore.errors import (
    BodyFetchFailed,
    MalformedRevision,
    RestoreFailed,
    StoreUnavailable,
)
from dynamo_incremental_restore.observability import get_logger
from dynamo_incremental_restore.time_machine.materializer import RecordMaterializer
from dynamo_incremental_restore.time_machine.revision_index import RevisionIndex
from dynamo_incremental_restore.time_machine.revisions import (
    RecordSnapshot,
    RestoreResult,
    Revision,
    as_utc,
)
from dynamo_incremental_restore.time_machine.selector import select_revision

if TYPE_CHECKING:
    from dynamo_incremental_restore.core.interfaces import (
        IBodyFetcher,
        IDestinationWriter,
        IRevisionSource,
    )

logger = get_logger(__name__)

PreCreationPolicy = Literal["omit", "tombstone"]

_DEFAULT_MAX_CONCURRENCY = 10


class RestoreOrchestrator:
    """Reconstructs every backed-up record as of a cutoff (or the latest state).

    Args:
        source: Lists every stored revision, delete markers included.
        fetcher: Returns the stored body of a (key, version_id).
        max_concurrency: Maximum number of body fetches in flight.
        pre_creation_policy: "omit" leaves out keys created after the cutoff;
            "tombstone" reports them as deleted so a destination that already
            holds them will remove them.
    """

    def __init__(
        self,
        source: IRevisionSource,
        fetcher: IBodyFetcher,
        max_concurrency: int = _DEFAULT_MAX_CONCURRENCY,
        pre_creation_policy: PreCreationPolicy = "omit",
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        if pre_creation_policy not in ("omit", "tombstone"):
            raise ValueError(f"Unknown pre_creation_policy: {pre_creation_policy!r}")
        self._source = source
        self._materializer = RecordMaterializer(fetcher)
        self._max_concurrency = max_concurrency
        self._pre_creation_policy = pre_creation_policy

    async def load_index(self) -> RevisionIndex:
        """Fetch the revision listing and index it per key.

        Returns:
            The populated RevisionIndex.

        Raises:
            RestoreFailed: If the listing cannot be obtained or contains a
                malformed entry. The original error is chained as the cause.
        """
        try:
            revisions = await self._list_revisions()
        except StoreUnavailable as exc:
            logger.error("Revision listing unavailable", error=exc.message)
            raise RestoreFailed(exc.message) from exc

        try:
            return RevisionIndex.build(revisions)
        except MalformedRevision as exc:
            logger.error("Malformed revision in listing", missing=exc.missing)
            raise RestoreFailed(exc.message) from exc

    async def restore(self, cutoff: datetime | None = None) -> RestoreResult:
        """Reconstruct the record set as of a point in time.

        Args:
            cutoff: Restore the state at this instant (inclusive). None restores
                the latest state. Naive datetimes are treated as UTC.

        Returns:
            RestoreResult holding the snapshots of every key that existed at the
            cutoff (tombstones for deleted keys) and the keys that failed.

        Raises:
            RestoreFailed: If the restore could not start.
            asyncio.CancelledError: If the caller cancels the restore. Every pending
                fetch is cancelled with it and no partial result is returned; a
                snapshot is only recorded once its fetch has fully completed.
        """
        if cutoff is not None:
            cutoff = as_utc(cutoff)

        index = await self.load_index()
        logger.info(
            "Starting restore",
            cutoff=cutoff.isoformat() if cutoff else "latest",
            keys=len(index),
            revisions=index.revision_count,
        )

        records: dict[str, RecordSnapshot] = {}
        failed_keys: dict[str, str] = {}
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def restore_key(key: str, history: tuple[Revision, ...]) -> None:
            winner = select_revision(history, cutoff)
            if winner is None:
                if self._pre_creation_policy == "tombstone":
                    records[key] = RecordSnapshot.tombstone(key)
                return

            async with semaphore:
                try:
                    snapshot = await self._materializer.materialize(winner)
                except BodyFetchFailed as exc:
                    logger.warning(
                        "Skipping record whose body could not be fetched",
                        key=key,
                        version_id=exc.version_id,
                        reason=exc.reason,
                    )
                    failed_keys[key] = exc.reason
                    return
            records[key] = snapshot

        await asyncio.gather(*(restore_key(key, history) for key, history in index.items()))

        result = RestoreResult(
            cutoff=cutoff,
            records={key: records[key] for key in sorted(records)},
            failed_keys={key: failed_keys[key] for key in sorted(failed_keys)},
            revision_count=index.revision_count,
        )
        logger.info(
            "Restore complete",
            restored=len(result.records),
            tombstones=sum(1 for s in result.records.values() if s.is_tombstone),
            failed=len(result.failed_keys),
            partial=result.is_partial,
        )
        return result

    async def restore_into(
        self,
        writer: IDestinationWriter,
        cutoff: datetime | None = None,
    ) -> RestoreResult:
        """Restore and hand every reconstructed record to a destination writer.

        Writes run with the same concurrency bound as fetches. A key whose
        write fails is moved from ``records`` to ``failed_keys``.

        Args:
            writer: The destination that applies each snapshot.
            cutoff: See restore().

        Returns:
            The RestoreResult describing what was written.

        Raises:
            RestoreFailed: If the restore could not start.
        """
        result = await self.restore(cutoff)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        write_failures: dict[str, str] = {}

        async def write_one(key: str, snapshot: RecordSnapshot) -> None:
            async with semaphore:
                try:
                    await writer.write(key, snapshot)
                except Exception as exc:
                    logger.warning("Failed to write restored record", key=key, error=str(exc))
                    write_failures[key] = f"write failed: {type(exc).__name__}: {exc}"

        await asyncio.gather(*(write_one(key, snapshot) for key, snapshot in result.records.items()))

        if not write_failures:
            return result
        failed = {**result.failed_keys, **write_failures}
        return RestoreResult(
            cutoff=result.cutoff,
            records={k: v for k, v in result.records.items() if k not in write_failures},
            failed_keys={key: failed[key] for key in sorted(failed)},
            revision_count=result.revision_count,
        )

    async def _list_revisions(self) -> list[Revision]:
        try:
            return list(await self._source.list_revisions())
        except StoreUnavailable:
            raise
        except OSError as exc:
            raise StoreUnavailable(f"Revision listing failed: {exc}") from exc
