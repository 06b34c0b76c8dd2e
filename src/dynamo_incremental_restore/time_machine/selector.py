"""Point-in-time selection of the current revision of one key."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from dynamo_incremental_restore.time_machine.revisions import Revision, as_utc


def select_revision(
    revisions: Sequence[Revision],
    cutoff: datetime | None = None,
) -> Revision | None:
    """Return the revision that was current for a key as of the cutoff.

    Without a cutoff the most recent revision wins, delete marker or not.
    With a cutoff the first revision committed at or before it wins; the
    boundary is inclusive. Ties are not re-broken here: the sequence is
    expected to come from RevisionIndex, which already ordered them.

    Args:
        revisions: One key's revisions, most recent first.
        cutoff: The point in time to restore to. Naive values are treated as UTC.

    Returns:
        The winning revision, or None if the key did not exist yet at the cutoff.
    """
    if not revisions:
        return None
    if cutoff is None:
        return revisions[0]

    cutoff = as_utc(cutoff)
    for revision in revisions:
        if revision.modified_at <= cutoff:
            return revision
    return None
