"""Versioned S3 bucket adapter for the restore core.

The incremental backup writes each DynamoDB item to one S3 object and relies
on bucket versioning to keep its history: an insert or update is a new object
version, a delete is a delete marker. This adapter implements both
IRevisionSource (ListObjectVersions) and IBodyFetcher (GetObject with a
VersionId).

boto3 is synchronous, so every call is run in a worker thread with
asyncio.to_thread to keep the event loop free for concurrent fetches.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from dynamo_incremental_restore.errors import BodyNotFound, StoreUnavailable
from dynamo_incremental_restore.observability import get_logger
from dynamo_incremental_restore.time_machine.revisions import Revision

logger = get_logger(__name__)

# S3 error codes meaning the requested version is gone
_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchVersion", "404", "NotFound"})


class S3VersionStore:
    """Lists and fetches object versions from a versioned S3 bucket.

    Args:
        bucket: The versioned bucket written by the incremental backup.
        prefix: Key prefix of the backed-up table; stripped to get the logical key.
        client: Optional pre-built boto3 S3 client (tests inject a stub).
        region: AWS region used when building the client.
        endpoint_url: Optional S3-compatible endpoint.
        max_pool_connections: Size of the client's HTTP connection pool. Should
            be at least the restore's fetch concurrency.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        client: Any | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        max_pool_connections: int = 10,
    ) -> None:
        self._bucket = bucket
        self._prefix = prefix
        # { logical key: object key } as seen by the last listing
        self._object_keys: dict[str, str] = {}
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url or None,
            config=Config(max_pool_connections=max_pool_connections),
        )

    def _logical_key(self, object_key: str) -> str:
        if not self._prefix or not object_key.startswith(self._prefix):
            return object_key
        logical_key = object_key[len(self._prefix):]
        # "users-table" over "users-table/rec1" yields "rec1"
        if not self._prefix.endswith("/") and logical_key.startswith("/"):
            logical_key = logical_key[1:]
        return logical_key or object_key

    def _object_key(self, key: str) -> str:
        listed = self._object_keys.get(key)
        if listed is not None:
            return listed
        if not self._prefix or self._prefix.endswith("/"):
            return self._prefix + key
        return f"{self._prefix}/{key}"

    async def list_revisions(self) -> list[Revision]:
        """List every version and delete marker under the prefix.

        Within each page, a key's IsLatest entry is listed first so that the
        store's own notion of "current" wins a LastModified tie.

        Returns:
            Revisions in listing order.

        Raises:
            StoreUnavailable: If S3 rejects or fails the listing.
        """
        try:
            pages = await asyncio.to_thread(self._list_pages)
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailable(f"Could not list versions of s3://{self._bucket}/{self._prefix}: {exc}") from exc

        revisions: list[Revision] = []
        for page in pages:
            entries = [(entry, False) for entry in page.get("Versions", [])]
            entries += [(entry, True) for entry in page.get("DeleteMarkers", [])]
            entries.sort(key=lambda item: (item[0]["Key"], not item[0].get("IsLatest", False)))
            for entry, is_delete_marker in entries:
                revisions.append(
                    Revision(
                        key=self._logical_key(entry["Key"]),
                        version_id=entry["VersionId"],
                        modified_at=entry["LastModified"],
                        is_delete_marker=is_delete_marker,
                        sequence=len(revisions),
                        source_key=entry["Key"],
                    )
                )
                self._object_keys[revisions[-1].key] = entry["Key"]

        logger.info("Listed object versions", bucket=self._bucket, prefix=self._prefix, revisions=len(revisions))
        return revisions

    def _list_pages(self) -> list[dict[str, Any]]:
        paginator = self._client.get_paginator("list_object_versions")
        return list(paginator.paginate(Bucket=self._bucket, Prefix=self._prefix))

    async def fetch_body(self, key: str, version_id: str) -> Any:
        """Fetch and decode the JSON body stored for a key at a version.

        The object key is the one the listing reported for the logical key, so
        any prefix layout round-trips exactly.

        Args:
            key: The logical record key.
            version_id: The S3 version identifier.

        Returns:
            The decoded JSON payload.

        Raises:
            BodyNotFound: If the version no longer exists.
            StoreUnavailable: If S3 fails the request for another reason.
        """
        object_key = self._object_key(key)
        try:
            raw = await asyncio.to_thread(self._get_object_bytes, object_key, version_id)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                raise BodyNotFound(key, version_id) from exc
            raise StoreUnavailable(f"GetObject failed for {object_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreUnavailable(f"GetObject failed for {object_key}: {exc}") from exc

        return json.loads(raw.decode("utf-8"))

    def _get_object_bytes(self, object_key: str, version_id: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=object_key, VersionId=version_id)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()
