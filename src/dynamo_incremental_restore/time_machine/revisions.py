"""Revision and snapshot schema for point-in-time restores.

Every insert, update and delete the incremental backup observed is stored as a
new version of an object in a versioned bucket. A Revision is the metadata of
one such version; a RecordSnapshot is the materialized state of one logical
key as of the requested cutoff.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime, treating naive values as UTC.

    Args:
        value: A datetime, naive or aware.

    Returns:
        The same instant as an aware datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Revision(BaseModel):
    """Immutable metadata for one historical write of a logical key.

    Attributes:
        key: Logical record identifier (the object key minus the backup prefix).
        version_id: Opaque store version identifier, unique within the key's history.
        modified_at: When the write was committed (UTC).
        is_delete_marker: True if the record was deleted at this time.
        sequence: Position of the entry in the store's listing. The listing is
            newest-first per key, so a lower sequence wins a modified_at tie.
        source_key: The raw object key the revision was listed under, if different.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Logical record identifier")
    version_id: str = Field(..., min_length=1, description="Opaque store version identifier")
    modified_at: datetime = Field(..., description="Commit time of the write (UTC)")
    is_delete_marker: bool = Field(default=False, description="True for a deletion")
    sequence: int = Field(default=0, ge=0, description="Store listing position")
    source_key: str | None = Field(default=None, description="Raw object key in the store")

    @field_validator("modified_at")
    @classmethod
    def _normalize_modified_at(cls, value: datetime) -> datetime:
        return as_utc(value)


class RecordSnapshot(BaseModel):
    """The reconstructed state of one key as of the requested cutoff.

    Exactly one of ``body`` and ``deleted_marker`` is set. ``deleted_marker``
    is None (absent on the wire) for live records rather than False, so
    callers can tell a restored record from a tombstone.

    Attributes:
        key: The logical record key.
        body: The stored payload of the winning revision, passed through as-is.
            None for tombstones.
        deleted_marker: True when the winning revision was a delete marker.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str
    body: Any = None
    deleted_marker: bool | None = Field(default=None, alias="deletedMarker")

    @classmethod
    def tombstone(cls, key: str) -> RecordSnapshot:
        """Build a deletion tombstone for a key."""
        return cls(key=key, deleted_marker=True)

    @property
    def is_tombstone(self) -> bool:
        return self.deleted_marker is True

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the destination writer, omitting absent fields.

        Returns:
            ``{"body": {...}}`` for live records or ``{"deletedMarker": True}``
            for tombstones.
        """
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"key"})


class RestoreResult(BaseModel):
    """Outcome of one restore invocation.

    Attributes:
        cutoff: The requested point in time, or None for "latest".
        records: Reconstructed snapshots keyed by logical key.
        failed_keys: Keys whose materialization failed, mapped to the reason.
        revision_count: Number of revisions the listing contained.
    """

    cutoff: datetime | None = None
    records: dict[str, RecordSnapshot] = Field(default_factory=dict)
    failed_keys: dict[str, str] = Field(default_factory=dict)
    revision_count: int = 0

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_keys)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Return the key -> serialized snapshot mapping."""
        return {key: snapshot.to_dict() for key, snapshot in self.records.items()}
