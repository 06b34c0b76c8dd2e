"""Abstract interfaces (Protocol classes) for the restore core.

Defines the contracts between the time machine and the storage adapters
using Python's typing.Protocol. The orchestrator depends on these protocols,
never on a concrete adapter, so tests can run against in-memory stores or
mocks.

Protocols defined:
- IRevisionSource
- IBodyFetcher
- IDestinationWriter
"""

from typing import Any, Protocol

from dynamo_incremental_restore.time_machine.revisions import RecordSnapshot, Revision


class IRevisionSource(Protocol):
    """Lists every stored version of every backed-up object."""

    async def list_revisions(self) -> list[Revision]:
        """Return all revisions, delete markers included.

        Returns:
            Revisions in the store's listing order, keys possibly interleaved.

        Raises:
            StoreUnavailable: If the listing call fails.
        """
        ...


class IBodyFetcher(Protocol):
    """Fetches the stored payload of one object version."""

    async def fetch_body(self, key: str, version_id: str) -> Any:
        """Return the payload stored for a key at a given version.

        Args:
            key: The logical record key.
            version_id: The version to fetch.

        Returns:
            The decoded record payload, passed through without validation.

        Raises:
            BodyNotFound: If the version no longer exists.
        """
        ...


class IDestinationWriter(Protocol):
    """Receives reconstructed records. Writes must be idempotent per key."""

    async def write(self, key: str, snapshot: RecordSnapshot) -> None:
        """Apply one reconstructed record to the destination.

        Args:
            key: The logical record key.
            snapshot: The record to write, or a tombstone to delete.
        """
        ...
