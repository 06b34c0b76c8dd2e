"""Test fixtures for dynamo-incremental-restore.

Provides:
- backup_history: the four-record backup timeline used across the suite
- version_store: an InMemoryVersionStore replaying that timeline
- orchestrator: a RestoreOrchestrator over version_store
- listing_page: the same timeline in S3 ListObjectVersions shape
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from dynamo_incremental_restore.adapters.memory import InMemoryVersionStore
from dynamo_incremental_restore.time_machine.reconstructor import RestoreOrchestrator

DATA_DIR = Path(__file__).parent / "data"


def utc(value: str) -> datetime:
    """Parse an ISO 8601 'Z' timestamp into an aware datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(timezone.utc)


# (key, action, timestamp, body): body is None for deletes.
BACKUP_HISTORY: list[tuple[str, str, str, dict[str, Any] | None]] = [
    ("updatedRecord", "put", "2016-03-24T08:30:00Z", {"id": "updatedRecord", "name": "before"}),
    ("restoredRecord", "put", "2016-03-24T12:00:00Z", {"id": "restoredRecord", "generation": 1}),
    ("originalRecord", "put", "2016-03-25T10:00:00Z", {"id": "originalRecord", "name": "original"}),
    ("restoredRecord", "delete", "2016-03-26T12:00:00Z", None),
    ("updatedRecord", "put", "2016-03-27T08:30:00Z", {"id": "updatedRecord", "name": "after"}),
    ("restoredRecord", "put", "2016-03-28T12:00:00Z", {"id": "restoredRecord", "generation": 2}),
    ("deletedRecord", "put", "2016-03-28T23:56:30Z", {"id": "deletedRecord", "name": "short-lived"}),
    ("deletedRecord", "delete", "2016-03-29T23:56:50Z", None),
]


@pytest.fixture()
def backup_history() -> list[tuple[str, str, str, dict[str, Any] | None]]:
    """Return the backup timeline: create, update, delete and re-create events."""
    return list(BACKUP_HISTORY)


@pytest.fixture()
def version_store(backup_history) -> InMemoryVersionStore:
    """Build an InMemoryVersionStore that replays the backup timeline.

    Returns:
        A store holding every version and delete marker of the four records.
    """
    store = InMemoryVersionStore()
    for key, action, timestamp, body in backup_history:
        if action == "put":
            store.put(key, body, utc(timestamp))
        else:
            store.delete(key, utc(timestamp))
    return store


@pytest.fixture()
def orchestrator(version_store: InMemoryVersionStore) -> RestoreOrchestrator:
    """Create a RestoreOrchestrator over the in-memory version store."""
    return RestoreOrchestrator(source=version_store, fetcher=version_store, max_concurrency=2)


@pytest.fixture()
def listing_page() -> dict[str, Any]:
    """Load the S3 ListObjectVersions page for the same timeline."""
    return json.loads((DATA_DIR / "list_object_versions.json").read_text())
