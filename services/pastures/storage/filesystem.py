"""
Filesystem storage backend for pastures.

Uses aiofiles for async I/O against a local directory, one subdirectory per
bucket. Handy for offline dry runs and for tests.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import aiofiles

from pastures.logging_config import get_logger
from pastures.storage.protocol import (
    ObjectMeta,
    ObjectNotFoundError,
    ObjectStoreError,
)

logger = get_logger(__name__)


class FilesystemStore:
    """Object store backed by a directory on the local filesystem."""

    def __init__(self, root_dir: str | Path, bucket: str) -> None:
        self._bucket_name = bucket
        self._root = Path(root_dir).expanduser() / bucket
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def bucket(self) -> str:
        return self._bucket_name

    def _full_path(self, key: str) -> Path:
        """Resolve key to a full filesystem path, preventing path traversal."""
        clean = Path(key)
        if clean.is_absolute() or ".." in clean.parts:
            raise ObjectStoreError(f"Invalid key: {key}")
        return self._root / clean

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> ObjectMeta:
        path = self._full_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

        etag = hashlib.md5(data).hexdigest()  # noqa: S324

        return ObjectMeta(
            bucket=self._bucket_name,
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            etag=etag,
        )

    async def get(self, key: str) -> bytes:
        path = self._full_path(key)
        if not path.exists():
            raise ObjectNotFoundError(key)

        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def close(self) -> None:
        pass
