"""
Google Cloud Storage backend for pastures.

Uses gcloud-aio-storage for async data I/O. Auth via Application Default
Credentials, the same credentials terraform uses.
"""

from __future__ import annotations

from typing import Any

from pastures.logging_config import get_logger
from pastures.storage.protocol import (
    ObjectMeta,
    ObjectNotFoundError,
    ObjectStoreError,
    ObjectStorePermissionError,
)

logger = get_logger(__name__)


def _status(exc: Exception) -> int | None:
    # gcloud-aio surfaces HTTP failures as aiohttp.ClientResponseError
    return getattr(exc, "status", None)


class GCSStore:
    """Object store backed by a single Google Cloud Storage bucket."""

    def __init__(self, bucket: str, project_id: str = "") -> None:
        self._bucket_name = bucket
        self._project_id = project_id or None
        self._aio_storage: Any = None

    @property
    def bucket(self) -> str:
        return self._bucket_name

    async def _get_aio_storage(self) -> Any:
        if self._aio_storage is None:
            from gcloud.aio.storage import Storage

            self._aio_storage = Storage()
            logger.debug("GCS async client initialized", bucket=self._bucket_name)
        return self._aio_storage

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> ObjectMeta:
        storage = await self._get_aio_storage()

        try:
            response = await storage.upload(
                self._bucket_name,
                key,
                data,
                headers={"Content-Type": content_type},
            )
        except Exception as e:
            if _status(e) in (401, 403):
                raise ObjectStorePermissionError(str(e)) from e
            raise ObjectStoreError(str(e)) from e

        return ObjectMeta(
            bucket=self._bucket_name,
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            etag=(response or {}).get("etag", ""),
        )

    async def get(self, key: str) -> bytes:
        storage = await self._get_aio_storage()

        try:
            return await storage.download(self._bucket_name, key)
        except Exception as e:
            status = _status(e)
            if status == 404:
                raise ObjectNotFoundError(key) from e
            if status in (401, 403):
                raise ObjectStorePermissionError(str(e)) from e
            raise ObjectStoreError(str(e)) from e

    async def close(self) -> None:
        if self._aio_storage is not None:
            await self._aio_storage.close()
            self._aio_storage = None
            logger.debug("GCS client closed", bucket=self._bucket_name)
