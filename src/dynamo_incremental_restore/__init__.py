"""Point-in-time restore for DynamoDB incremental backups stored in versioned S3."""

from dynamo_incremental_restore.errors import (
    BodyFetchFailed,
    BodyNotFound,
    MalformedRevision,
    RestoreError,
    RestoreFailed,
    StoreUnavailable,
)
from dynamo_incremental_restore.time_machine import (
    RecordSnapshot,
    RestoreOrchestrator,
    RestoreResult,
    Revision,
    RevisionIndex,
    select_revision,
)

__version__ = "0.1.0"

__all__ = [
    "BodyFetchFailed",
    "BodyNotFound",
    "MalformedRevision",
    "RecordSnapshot",
    "RestoreError",
    "RestoreFailed",
    "RestoreOrchestrator",
    "RestoreResult",
    "Revision",
    "RevisionIndex",
    "StoreUnavailable",
    "select_revision",
]
