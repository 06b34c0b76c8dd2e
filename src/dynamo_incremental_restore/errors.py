"""Error taxonomy for point-in-time restores.

Two kinds of failure exist. Fatal errors (MalformedRevision, StoreUnavailable)
mean there is nothing trustworthy to reconstruct from and abort the whole
restore. Per-key errors (BodyFetchFailed) are isolated to a single record so
one purged object cannot poison an otherwise successful restore.
"""


class RestoreError(Exception):
    """Base error for all restore failures.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize RestoreError.

        Args:
            message: Error description.
        """
        super().__init__(message)
        self.message = message


class MalformedRevision(RestoreError):
    """Raised when a revision listing entry lacks key, version_id or modified_at.

    Attributes:
        entry: The offending raw entry (as received from the listing).
        missing: Names of the required fields that were absent or empty.
    """

    def __init__(self, entry: object, missing: list[str]) -> None:
        """Initialize MalformedRevision.

        Args:
            entry: The raw listing entry that failed validation.
            missing: Required field names that were absent.
        """
        super().__init__(f"Revision entry is missing required fields: {', '.join(missing)}")
        self.entry = entry
        self.missing = missing


class StoreUnavailable(RestoreError):
    """Raised when the revision listing cannot be obtained from the backing store."""


class BodyNotFound(RestoreError):
    """Raised by a body fetcher when a (key, version_id) payload does not exist.

    Attributes:
        key: The logical record key.
        version_id: The requested version identifier.
    """

    def __init__(self, key: str, version_id: str, message: str | None = None) -> None:
        """Initialize BodyNotFound.

        Args:
            key: The logical record key.
            version_id: The requested version identifier.
            message: Optional override for the default description.
        """
        super().__init__(message or f"No body stored for {key!r} at version {version_id!r}")
        self.key = key
        self.version_id = version_id


class BodyFetchFailed(RestoreError):
    """Raised when materializing one key fails because its body could not be fetched.

    Attributes:
        key: The logical record key whose body could not be fetched.
        version_id: The winning revision's version identifier.
        reason: Description of the underlying failure.
    """

    def __init__(self, key: str, version_id: str, reason: str) -> None:
        """Initialize BodyFetchFailed.

        Args:
            key: The logical record key.
            version_id: The winning revision's version identifier.
            reason: Description of the underlying failure.
        """
        super().__init__(f"Failed to fetch body for {key!r} (version {version_id!r}): {reason}")
        self.key = key
        self.version_id = version_id
        self.reason = reason


class RestoreFailed(RestoreError):
    """Raised by the restore entry point when the restore could not even start.

    Attributes:
        reason: Why the restore was aborted.
    """

    def __init__(self, reason: str) -> None:
        """Initialize RestoreFailed.

        Args:
            reason: Why the restore was aborted.
        """
        super().__init__(f"Restore failed: {reason}")
        self.reason = reason
