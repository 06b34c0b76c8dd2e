"""FastAPI routes for point-in-time restores.

Routes are thin: all reconstruction logic lives in RestoreOrchestrator, which
is wired onto app.state by main.py and resolved through get_orchestrator so
tests can override it.

Routes:
    POST /restore/preview - reconstruct the record set at a cutoff (or latest)
    GET  /restore/keys    - list the logical keys found in the backup
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from dynamo_incremental_restore.errors import RestoreFailed
from dynamo_incremental_restore.observability import get_logger
from dynamo_incremental_restore.time_machine.reconstructor import RestoreOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/restore", tags=["Point-in-time restore"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class RestoreRequest(BaseModel):
    """Request body for a restore preview.

    Attributes:
        cutoff: ISO 8601 point in time to restore to. Omit or null for latest.
    """

    model_config = ConfigDict(frozen=True)

    cutoff: datetime | None = Field(
        default=None, description="Point in time to restore to (inclusive). Null means latest."
    )


class RestoreResponse(BaseModel):
    """Reconstructed record set.

    Attributes:
        cutoff: The cutoff used, or null for latest.
        restored_at: When the reconstruction ran.
        revision_count: Number of revisions in the backup listing.
        records: key -> {"body": {...}} or {"deletedMarker": true}.
        failed_keys: key -> reason, for records whose body could not be fetched.
        partial: True when any key failed.
    """

    model_config = ConfigDict(frozen=True)

    cutoff: datetime | None
    restored_at: datetime
    revision_count: int
    records: dict[str, dict[str, Any]]
    failed_keys: dict[str, str]
    partial: bool


class KeySummary(BaseModel):
    """History summary of one logical key."""

    model_config = ConfigDict(frozen=True)

    key: str
    revision_count: int
    latest_modified_at: datetime
    is_deleted: bool


class KeyListResponse(BaseModel):
    """All logical keys present in the backup."""

    model_config = ConfigDict(frozen=True)

    keys: list[KeySummary]
    total: int


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_orchestrator(request: Request) -> RestoreOrchestrator:
    """Return the orchestrator wired at startup."""
    return request.app.state.orchestrator


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.post(
    "/preview",
    response_model=RestoreResponse,
    status_code=status.HTTP_200_OK,
    summary="Reconstruct the record set at a point in time",
)
async def preview_restore(
    body: RestoreRequest,
    orchestrator: Annotated[RestoreOrchestrator, Depends(get_orchestrator)],
) -> RestoreResponse:
    """Reconstruct every record as of the requested cutoff without writing it.

    Args:
        body: The restore request carrying the optional cutoff.
        orchestrator: The wired RestoreOrchestrator.

    Returns:
        RestoreResponse with the reconstructed records and any failed keys.

    Raises:
        HTTPException: 503 if the backup listing could not be read.
    """
    logger.info("POST /restore/preview", cutoff=body.cutoff.isoformat() if body.cutoff else "latest")
    try:
        result = await orchestrator.restore(body.cutoff)
    except RestoreFailed as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc

    return RestoreResponse(
        cutoff=result.cutoff,
        restored_at=datetime.now(timezone.utc),
        revision_count=result.revision_count,
        records=result.to_dict(),
        failed_keys=result.failed_keys,
        partial=result.is_partial,
    )


@router.get(
    "/keys",
    response_model=KeyListResponse,
    summary="List the logical keys found in the backup",
)
async def list_keys(
    orchestrator: Annotated[RestoreOrchestrator, Depends(get_orchestrator)],
) -> KeyListResponse:
    """Summarize the revision history of every backed-up key.

    Raises:
        HTTPException: 503 if the backup listing could not be read.
    """
    try:
        index = await orchestrator.load_index()
    except RestoreFailed as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc

    summaries = [
        KeySummary(
            key=key,
            revision_count=len(history),
            latest_modified_at=history[0].modified_at,
            is_deleted=history[0].is_delete_marker,
        )
        for key, history in index.items()
    ]
    return KeyListResponse(keys=summaries, total=len(summaries))
