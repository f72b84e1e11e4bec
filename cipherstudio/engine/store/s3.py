"""S3 document store.

Stores each project as a JSON object with optional namespace prefix::

    s3://{bucket}/{prefix}/artifacts/{namespace}/users/{owner_id}/projects/{project_id}.json

When prefix is None, the key collapses to::

    s3://{bucket}/artifacts/{namespace}/users/{owner_id}/projects/{project_id}.json

Uses ``anyio.to_thread.run_sync`` to run boto3 calls in the thread pool,
matching the same async pattern as LocalDocumentStore.  S3 has no partial
update, so a merge write is a get + put executed in the same worker call.
"""

from __future__ import annotations

import json
from functools import partial
from typing import Any

import boto3
from anyio import to_thread
from botocore.config import Config

from cipherstudio.engine.store.base import DocumentKey, merge_document, owner_collection


def _create_s3_client(
    endpoint_url: str,
    access_key: str,
    secret_key: str,
    region: str | None = None,
    path_style: bool = False,
) -> Any:
    """Create a boto3 S3 client.

    Args:
        endpoint_url: S3 endpoint URL.
        access_key: AWS access key ID.
        secret_key: AWS secret access key.
        region: AWS region name (optional, some endpoints require it).
        path_style: Use path-style addressing instead of virtual-hosted.
            Required by MinIO and some S3-compatible services.
    """
    config = Config(
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
        s3={"addressing_style": "path" if path_style else "auto"},
    )

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
        config=config,
    )


class S3DocumentStore:
    """S3 implementation of the DocumentStore protocol."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        prefix: str | None = None,
        region: str | None = None,
        path_style: bool = False,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._client = client or _create_s3_client(
            endpoint_url, access_key, secret_key, region=region, path_style=path_style
        )
        self._key_prefix = f"{prefix}/" if prefix else ""

    @property
    def available(self) -> bool:
        return True

    def _collection_prefix(self, namespace: str, owner_id: str) -> str:
        return self._key_prefix + "/".join(owner_collection(namespace, owner_id)) + "/"

    def _object_key(self, key: DocumentKey) -> str:
        return f"{self._collection_prefix(key.namespace, key.owner_id)}{key.project_id}.json"

    # -- Write -----------------------------------------------------------------

    async def write(self, key: DocumentKey, data: dict[str, Any], *, merge: bool = True) -> None:
        await to_thread.run_sync(partial(self._merge_put, self._object_key(key), data, merge))

    def _merge_put(self, object_key: str, data: dict[str, Any], merge: bool) -> None:
        existing = self._get_json(object_key) if merge else None
        body = json.dumps(merge_document(existing, data, merge=merge), indent=2)
        self._client.put_object(
            Bucket=self._bucket,
            Key=object_key,
            Body=body.encode("utf-8"),
            ContentType="application/json",
        )

    # -- Read ------------------------------------------------------------------

    async def read(self, key: DocumentKey) -> dict[str, Any] | None:
        return await to_thread.run_sync(partial(self._get_json, self._object_key(key)))

    async def list_documents(self, namespace: str, owner_id: str) -> list[dict[str, Any]]:
        return await to_thread.run_sync(partial(self._list_json, self._collection_prefix(namespace, owner_id)))

    def _get_json(self, object_key: str) -> dict[str, Any] | None:
        """Get object and read body in the same thread.

        Reading the streaming body must happen in the same thread as
        get_object to avoid issues with chunked transfer encoding.
        """
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=object_key)
        except self._client.exceptions.NoSuchKey:
            return None
        return json.loads(resp["Body"].read().decode("utf-8"))

    def _list_json(self, prefix: str) -> list[dict[str, Any]]:
        paginator = self._client.get_paginator("list_objects_v2")
        docs = []
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            for item in page.get("Contents", []):
                if not item["Key"].endswith(".json"):
                    continue
                doc = self._get_json(item["Key"])
                if doc is not None:
                    docs.append(doc)
        return docs

    # -- Utilities -------------------------------------------------------------

    async def delete(self, key: DocumentKey) -> None:
        # S3 delete is idempotent -- no error if key doesn't exist.
        await to_thread.run_sync(partial(self._client.delete_object, Bucket=self._bucket, Key=self._object_key(key)))
