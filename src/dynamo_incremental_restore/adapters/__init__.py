"""Storage adapters implementing the restore core's collaborator protocols."""

from dynamo_incremental_restore.adapters.memory import InMemoryDestination, InMemoryVersionStore
from dynamo_incremental_restore.adapters.s3_versions import S3VersionStore

__all__ = ["InMemoryDestination", "InMemoryVersionStore", "S3VersionStore"]
