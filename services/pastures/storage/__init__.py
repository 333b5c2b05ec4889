"""
Object storage abstraction layer for pastures.

``open_store()`` returns a store bound to one bucket for the configured
backend. Callers pass it around as a ``StoreFactory``.
"""

from __future__ import annotations

from collections.abc import Callable

from pastures.config import StorageBackend, StorageConfig
from pastures.logging_config import get_logger
from pastures.storage.protocol import ObjectStore

logger = get_logger(__name__)

StoreFactory = Callable[[str], ObjectStore]


def open_store(bucket: str, storage_config: StorageConfig | None = None) -> ObjectStore:
    """Open an object store for ``bucket`` using the configured backend."""
    cfg = storage_config or StorageConfig()

    match cfg.backend:
        case StorageBackend.FILESYSTEM:
            from pastures.storage.filesystem import FilesystemStore

            logger.debug("Opening store", backend="filesystem", bucket=bucket)
            return FilesystemStore(root_dir=cfg.filesystem.root_dir, bucket=bucket)

        case StorageBackend.GCS:
            from pastures.storage.gcs import GCSStore

            logger.debug("Opening store", backend="gcs", bucket=bucket)
            return GCSStore(bucket=bucket, project_id=cfg.gcs.project_id)

    raise ValueError(f"Unsupported storage backend: {cfg.backend}")


def store_factory(storage_config: StorageConfig) -> StoreFactory:
    """Bind ``open_store`` to a storage configuration."""

    def _open(bucket: str) -> ObjectStore:
        return open_store(bucket, storage_config)

    return _open
