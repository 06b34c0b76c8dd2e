"""Point-in-time reconstruction of backed-up records.

Replays the stored revision history of every logical key up to a cutoff and
materializes the record set that existed at that moment, including deleted
records as tombstones.
"""

from __future__ import annotations

from dynamo_incremental_restore.time_machine.revisions import (
    RecordSnapshot,
    RestoreResult,
    Revision,
)
from dynamo_incremental_restore.time_machine.revision_index import RevisionIndex
from dynamo_incremental_restore.time_machine.selector import select_revision
from dynamo_incremental_restore.time_machine.materializer import RecordMaterializer
from dynamo_incremental_restore.time_machine.reconstructor import RestoreOrchestrator

__all__ = [
    "RecordMaterializer",
    "RecordSnapshot",
    "RestoreOrchestrator",
    "RestoreResult",
    "Revision",
    "RevisionIndex",
    "select_revision",
]
