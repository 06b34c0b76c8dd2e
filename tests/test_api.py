"""Tests for the restore API and application wiring.

Routes are exercised through httpx's ASGITransport with the orchestrator
dependency overridden, so no bucket is needed.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dynamo_incremental_restore.adapters.memory import InMemoryVersionStore
from dynamo_incremental_restore.adapters.s3_versions import S3VersionStore
from dynamo_incremental_restore.api.routes import get_orchestrator
from dynamo_incremental_restore.errors import RestoreFailed
from dynamo_incremental_restore.main import build_orchestrator, create_app
from dynamo_incremental_restore.settings import Settings


@pytest.fixture()
def app(orchestrator):
    """Create the app with the in-memory orchestrator injected."""
    application = create_app(Settings())
    application.dependency_overrides[get_orchestrator] = lambda: orchestrator
    return application


@pytest_asyncio.fixture()
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.mark.asyncio
async def test_preview_latest_restore(client):
    response = await client.post("/api/v1/restore/preview", json={})

    assert response.status_code == 200
    payload = response.json()
    assert payload["cutoff"] is None
    assert payload["revision_count"] == 8
    assert set(payload["records"]) == {"originalRecord", "updatedRecord", "restoredRecord", "deletedRecord"}
    assert payload["records"]["deletedRecord"] == {"deletedMarker": True}
    assert "deletedMarker" not in payload["records"]["originalRecord"]
    assert payload["failed_keys"] == {}
    assert payload["partial"] is False


@pytest.mark.asyncio
async def test_preview_point_in_time_restore(client):
    response = await client.post("/api/v1/restore/preview", json={"cutoff": "2016-03-28T23:56:40Z"})

    assert response.status_code == 200
    records = response.json()["records"]
    assert records["deletedRecord"]["body"]["name"] == "short-lived"
    assert "deletedMarker" not in records["deletedRecord"]


@pytest.mark.asyncio
async def test_preview_rejects_invalid_cutoff(client):
    response = await client.post("/api/v1/restore/preview", json={"cutoff": "not-a-date"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_preview_returns_503_when_listing_unavailable(app, client):
    failing = AsyncMock()
    failing.restore.side_effect = RestoreFailed("bucket unreachable")
    app.dependency_overrides[get_orchestrator] = lambda: failing

    response = await client.post("/api/v1/restore/preview", json={})

    assert response.status_code == 503
    assert "bucket unreachable" in response.json()["detail"]


@pytest.mark.asyncio
async def test_list_keys_summarizes_histories(client):
    response = await client.get("/api/v1/restore/keys")

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 4
    by_key = {entry["key"]: entry for entry in payload["keys"]}
    assert by_key["restoredRecord"]["revision_count"] == 3
    assert by_key["deletedRecord"]["is_deleted"] is True
    assert by_key["originalRecord"]["is_deleted"] is False


def test_build_orchestrator_without_bucket_uses_memory_store():
    orchestrator = build_orchestrator(Settings(s3_bucket=""))
    assert isinstance(orchestrator._source, InMemoryVersionStore)


def test_build_orchestrator_with_bucket_uses_s3_store():
    settings = Settings(s3_bucket="dynamo-backups", s3_prefix="users-table", max_concurrent_fetches=4)
    with patch("dynamo_incremental_restore.adapters.s3_versions.boto3.client") as boto_client:
        orchestrator = build_orchestrator(settings)

    assert isinstance(orchestrator._source, S3VersionStore)
    assert boto_client.call_args.args == ("s3",)
    assert boto_client.call_args.kwargs["region_name"] == "us-east-1"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DYNAMO_RESTORE_S3_BUCKET", "from-env")
    monkeypatch.setenv("DYNAMO_RESTORE_MAX_CONCURRENT_FETCHES", "4")
    monkeypatch.setenv("DYNAMO_RESTORE_PRE_CREATION_POLICY", "tombstone")

    settings = Settings()

    assert settings.s3_bucket == "from-env"
    assert settings.max_concurrent_fetches == 4
    assert settings.pre_creation_policy == "tombstone"
